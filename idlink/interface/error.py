"""Interface layer errors."""

from fastapi import status

from idlink.domain.outcome import LinkErrorKind


class InterfaceError(Exception):
    """Base interface error."""

    pass


class AuthenticationRequiredError(InterfaceError):
    """Request needs a valid session cookie."""

    pass


_STATUS_BY_ERROR = {
    LinkErrorKind.ASSERTION_INVALID: status.HTTP_422_UNPROCESSABLE_ENTITY,
    LinkErrorKind.ALREADY_LINKED: status.HTTP_409_CONFLICT,
    LinkErrorKind.IDENTITY_TAKEN: status.HTTP_409_CONFLICT,
    LinkErrorKind.PROVIDER_ALREADY_LINKED: status.HTTP_409_CONFLICT,
    LinkErrorKind.EMAIL_CONFLICT: status.HTTP_409_CONFLICT,
    LinkErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    LinkErrorKind.STORAGE_FAILURE: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def http_status_for(error: LinkErrorKind) -> int:
    """HTTP status code for a link error kind."""
    return _STATUS_BY_ERROR[error]
