"""Authentication routes.

The provider-verification step redirects the browser to ``/auth/callback``
with the verified identity as a signed assertion token. The callback ends
in one of three redirects:

    session established     -> home, with the session cookie set
    second factor required  -> checkpoint screen, with the checkpoint token
    login failed            -> login screen, with a message
"""

import logging
from urllib.parse import urlencode

from dishka.integrations.fastapi import DishkaRoute, FromDishka
from fastapi import APIRouter, Response, status
from fastapi.responses import RedirectResponse
from pydantic import BaseModel

from idlink.adapter.assertion import AssertionDecoder
from idlink.adapter.error import AssertionDecodeError
from idlink.application.usecase.identity import IdentityLinkingService
from idlink.application.usecase.identity.service import LOGIN_FAILED_MESSAGE
from idlink.config import Settings
from idlink.domain.outcome import CheckpointIssued, DirectSession
from idlink.domain.service import ProviderRegistry
from idlink.domain.value import ProviderType

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["authentication"], route_class=DishkaRoute)

SESSION_COOKIE = "auth_token"


class ProviderResponse(BaseModel):
    """Enabled provider, as the login screen renders it."""

    key: str
    label: str
    type: ProviderType
    bot_id: str | None = None


class LogoutResponse(BaseModel):
    """Logout response."""

    success: bool
    message: str


def _redirect(url: str, **params: str) -> RedirectResponse:
    if params:
        url = f"{url}?{urlencode(params)}"
    return RedirectResponse(url=url, status_code=status.HTTP_302_FOUND)


def set_session_cookie(
    response: Response, session: DirectSession, settings: Settings
) -> None:
    """Attach the session token as an HTTP-only cookie."""
    is_production = settings.environment == "production"
    response.set_cookie(
        key=SESSION_COOKIE,
        value=session.session_token,
        httponly=True,
        secure=is_production,
        samesite="lax",
        path="/",
        max_age=settings.auth.jwt_expiry_days * 24 * 60 * 60,
    )


@router.get("/providers", response_model=list[ProviderResponse])
async def list_providers(
    provider_registry: FromDishka[ProviderRegistry],
) -> list[ProviderResponse]:
    """List identity providers enabled for login and linking."""
    return [
        ProviderResponse(
            key=descriptor.key,
            label=descriptor.label,
            type=descriptor.type,
            bot_id=descriptor.bot_id,
        )
        for descriptor in provider_registry.enabled()
    ]


@router.get("/callback")
async def login_callback(
    assertion: str,
    assertion_decoder: FromDishka[AssertionDecoder],
    identity_linking_service: FromDishka[IdentityLinkingService],
    settings: FromDishka[Settings],
) -> RedirectResponse:
    """Complete a login from a verified provider assertion.

    Args:
        assertion: Signed assertion token from the provider-verification step
        assertion_decoder: Assertion decoder from DI
        identity_linking_service: Identity linking service from DI
        settings: Application settings from DI

    Returns:
        HTTP 302 redirect (see module docstring)

    Example:
        GET /auth/callback?assertion=eyJhbGciOi...

        Redirects to: http://localhost:3000/
        Sets cookie: auth_token
    """
    try:
        provider_assertion = assertion_decoder.decode(assertion)
    except AssertionDecodeError as e:
        logger.warning(f"Login callback with unusable assertion: {e}")
        return _redirect(settings.auth.login_redirect_url, error=LOGIN_FAILED_MESSAGE)

    result = await identity_linking_service.handle_login_callback(provider_assertion)

    if isinstance(result, DirectSession):
        logger.info(
            f"Login successful: account={result.account_id}, new={result.is_new_account}"
        )
        redirect_response = _redirect(settings.auth.home_redirect_url)
        set_session_cookie(redirect_response, result, settings)
        return redirect_response

    if isinstance(result, CheckpointIssued):
        logger.info(f"Login held at checkpoint: account={result.account_id}")
        return _redirect(settings.auth.checkpoint_redirect_url, token=result.token)

    logger.info(f"Login failed: {result.error.value}")
    return _redirect(settings.auth.login_redirect_url, error=result.message)


@router.post("/logout", response_model=LogoutResponse)
async def logout(response: Response) -> LogoutResponse:
    """Logout by clearing the session cookie."""
    response.delete_cookie(key=SESSION_COOKIE, path="/")
    return LogoutResponse(success=True, message="Successfully logged out")
