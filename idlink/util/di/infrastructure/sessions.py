"""Session and audit infrastructure providers."""

from dishka import Scope, provide

from idlink.adapter.audit import LogfireEventPublisher
from idlink.adapter.session import JWTSessionIssuer
from idlink.config import AuthSettings, Settings
from idlink.domain.event import EventPublisher
from idlink.domain.service import SessionIssuer, SessionTokenService
from idlink.util.di.base import ProviderBase
from idlink.util.error import ConfigurationError

_DEFAULT_SECRET_PREFIX = "change-me"


class SessionsProvider(ProviderBase):
    """Sessions component base: session issuer and audit sink."""

    __mock_component__ = "sessions"


class ProdSessionsProvider(SessionsProvider):
    """Production sessions provider."""

    __is_mock__ = False

    @provide(scope=Scope.APP)
    def get_session_issuer(
        self,
        settings: Settings,
        auth_settings: AuthSettings,
        session_token_service: SessionTokenService,
    ) -> SessionIssuer:
        """Provide JWT session issuer.

        Raises:
            ConfigurationError: If production still runs with default secrets
        """
        if settings.environment == "production" and (
            auth_settings.jwt_secret.startswith(_DEFAULT_SECRET_PREFIX)
            or auth_settings.assertion_secret.startswith(_DEFAULT_SECRET_PREFIX)
        ):
            raise ConfigurationError(
                "AUTH__JWT_SECRET and AUTH__ASSERTION_SECRET must be set in production"
            )
        return JWTSessionIssuer(session_token_service)

    @provide(scope=Scope.APP)
    def get_event_publisher(self) -> EventPublisher:
        """Provide audit publisher writing to Logfire."""
        return LogfireEventPublisher()
