"""Linked identity routes for the account settings screen."""

from datetime import datetime

from dishka.integrations.fastapi import DishkaRoute, FromDishka
from fastapi import APIRouter, Cookie, HTTPException, Response, status
from pydantic import BaseModel

from idlink.adapter.assertion import AssertionDecoder
from idlink.adapter.error import AssertionDecodeError
from idlink.application.usecase.identity import IdentityLinkingService
from idlink.application.usecase.identity.service import (
    INVALID_ASSERTION_MESSAGE,
    PROVIDER_NOT_LINKED_MESSAGE,
)
from idlink.domain.outcome import Rejected, UnlinkResult
from idlink.domain.service import SessionTokenService
from idlink.domain.value import AccountId
from idlink.interface.error import AuthenticationRequiredError, http_status_for

router = APIRouter(
    prefix="/account/oauth", tags=["identities"], route_class=DishkaRoute
)


class LinkedIdentityResponse(BaseModel):
    """Linked identity entry."""

    provider: str
    provider_id: str
    linked_at: datetime


class LinkedIdentitiesResponse(BaseModel):
    """Linked identities keyed by provider."""

    data: dict[str, LinkedIdentityResponse]


class LinkRequest(BaseModel):
    """Link request carrying the signed assertion for the provider account."""

    assertion: str


class LinkResponse(BaseModel):
    """Link response."""

    success: bool


def _require_account(
    session_token_service: SessionTokenService, auth_token: str | None
) -> AccountId:
    account_id = session_token_service.get_account_id_from_token(auth_token)
    if account_id is None:
        raise AuthenticationRequiredError("Authentication required")
    return account_id


@router.get("", response_model=LinkedIdentitiesResponse)
async def list_linked_identities(
    identity_linking_service: FromDishka[IdentityLinkingService],
    session_token_service: FromDishka[SessionTokenService],
    auth_token: str | None = Cookie(default=None),
) -> LinkedIdentitiesResponse:
    """List the current account's linked identities.

    Example response:
        {"data": {"discord": {"provider": "discord", "provider_id": "42",
                              "linked_at": "..."}}}
    """
    account_id = _require_account(session_token_service, auth_token)
    identities = await identity_linking_service.list_linked_identities(account_id)
    if isinstance(identities, Rejected):
        raise HTTPException(
            status_code=http_status_for(identities.error), detail=identities.message
        )

    return LinkedIdentitiesResponse(
        data={
            identity.provider: LinkedIdentityResponse(**identity.model_dump())
            for identity in identities
        }
    )


@router.post(
    "/{provider}", response_model=LinkResponse, status_code=status.HTTP_201_CREATED
)
async def link_identity(
    provider: str,
    request: LinkRequest,
    assertion_decoder: FromDishka[AssertionDecoder],
    identity_linking_service: FromDishka[IdentityLinkingService],
    session_token_service: FromDishka[SessionTokenService],
    auth_token: str | None = Cookie(default=None),
) -> LinkResponse:
    """Link a provider account to the current account.

    Args:
        provider: Provider key from the path
        request: Signed assertion for the provider account

    Raises:
        HTTPException: 422 for an unusable assertion, 409 for link conflicts
    """
    account_id = _require_account(session_token_service, auth_token)

    try:
        assertion = assertion_decoder.decode(request.assertion)
    except AssertionDecodeError:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=INVALID_ASSERTION_MESSAGE,
        )

    if assertion.provider != provider.lower():
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=INVALID_ASSERTION_MESSAGE,
        )

    result = await identity_linking_service.handle_link_request(assertion, account_id)
    if isinstance(result, Rejected):
        raise HTTPException(
            status_code=http_status_for(result.error), detail=result.message
        )

    return LinkResponse(success=True)


@router.delete("/{provider}", status_code=status.HTTP_204_NO_CONTENT)
async def unlink_identity(
    provider: str,
    identity_linking_service: FromDishka[IdentityLinkingService],
    session_token_service: FromDishka[SessionTokenService],
    auth_token: str | None = Cookie(default=None),
) -> Response:
    """Unlink the current account's identity for a provider.

    Raises:
        HTTPException: 404 if nothing is linked for the provider
    """
    account_id = _require_account(session_token_service, auth_token)

    result = await identity_linking_service.handle_unlink_request(
        provider.lower(), account_id
    )
    if isinstance(result, Rejected):
        raise HTTPException(
            status_code=http_status_for(result.error), detail=result.message
        )
    if result == UnlinkResult.NOT_FOUND:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail=PROVIDER_NOT_LINKED_MESSAGE
        )

    return Response(status_code=status.HTTP_204_NO_CONTENT)
