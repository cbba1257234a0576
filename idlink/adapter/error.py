"""Infrastructure layer errors."""


class AdapterError(Exception):
    """Base infrastructure error."""

    pass


class AssertionDecodeError(AdapterError):
    """Provider assertion could not be decoded or trusted."""

    pass
