"""Domain layer DI providers."""

from datetime import timedelta

from dishka import Scope, provide

from idlink.config import AuthSettings, Settings
from idlink.domain.event import EventPublisher
from idlink.domain.repository import (
    AccountRepository,
    CheckpointRepository,
    ExternalIdentityRepository,
    UnitOfWork,
)
from idlink.domain.service import (
    AccountProvisioner,
    CredentialService,
    LinkDecisionEngine,
    LoginThrottle,
    ProviderRegistry,
    SessionEstablisher,
    SessionIssuer,
    SessionTokenService,
)
from idlink.util.di.base import ProviderBase


class ProdDomainProvider(ProviderBase):
    """Production domain services provider - concrete, no mocks needed.

    Domain services are REQUEST-scoped to align with repository/session lifecycle.
    Each HTTP request gets fresh service instances with their own transaction.
    """

    scope = Scope.REQUEST

    @provide(scope=Scope.APP)
    def get_provider_registry(self, settings: Settings) -> ProviderRegistry:
        """Provide registry of configured identity providers."""
        return ProviderRegistry(providers=settings.providers)

    @provide(scope=Scope.APP)
    def get_credential_service(self, auth_settings: AuthSettings) -> CredentialService:
        """Provide credential hashing service."""
        return CredentialService(hash_rounds=auth_settings.credential_hash_rounds)

    @provide(scope=Scope.APP)
    def get_session_token_service(
        self, auth_settings: AuthSettings
    ) -> SessionTokenService:
        """Provide session JWT service."""
        return SessionTokenService(auth_settings=auth_settings)

    @provide
    def get_account_provisioner(
        self,
        account_repository: AccountRepository,
        credential_service: CredentialService,
    ) -> AccountProvisioner:
        """Provide account provisioner."""
        return AccountProvisioner(
            account_repository=account_repository,
            credential_service=credential_service,
        )

    @provide
    def get_link_decision_engine(
        self,
        identity_repository: ExternalIdentityRepository,
        account_repository: AccountRepository,
        account_provisioner: AccountProvisioner,
        unit_of_work: UnitOfWork,
    ) -> LinkDecisionEngine:
        """Provide link decision engine."""
        return LinkDecisionEngine(
            identity_repository=identity_repository,
            account_repository=account_repository,
            account_provisioner=account_provisioner,
            unit_of_work=unit_of_work,
        )

    @provide
    def get_session_establisher(
        self,
        account_repository: AccountRepository,
        checkpoint_repository: CheckpointRepository,
        session_issuer: SessionIssuer,
        login_throttle: LoginThrottle,
        event_publisher: EventPublisher,
        auth_settings: AuthSettings,
    ) -> SessionEstablisher:
        """Provide session establisher configured from auth settings."""
        return SessionEstablisher(
            account_repository=account_repository,
            checkpoint_repository=checkpoint_repository,
            session_issuer=session_issuer,
            login_throttle=login_throttle,
            event_publisher=event_publisher,
            require_second_factor_for_external_login=(
                auth_settings.require_second_factor_for_external_login
            ),
            checkpoint_ttl=timedelta(seconds=auth_settings.checkpoint_ttl_seconds),
        )
