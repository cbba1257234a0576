"""Application layer DI providers."""

from dishka import Scope, provide

from idlink.application.usecase.identity import IdentityLinkingService
from idlink.config import AuthSettings
from idlink.domain.event import EventPublisher
from idlink.domain.repository import UnitOfWork
from idlink.domain.service import (
    LinkDecisionEngine,
    ProviderRegistry,
    SessionEstablisher,
)
from idlink.util.di.base import ProviderBase


class ProdApplicationProvider(ProviderBase):
    """Production application use cases provider - concrete, no mocks needed."""

    @provide(scope=Scope.REQUEST)
    def get_identity_linking_service(
        self,
        link_decision_engine: LinkDecisionEngine,
        session_establisher: SessionEstablisher,
        provider_registry: ProviderRegistry,
        event_publisher: EventPublisher,
        unit_of_work: UnitOfWork,
        auth_settings: AuthSettings,
    ) -> IdentityLinkingService:
        """Provide identity linking service."""
        return IdentityLinkingService(
            link_decision_engine=link_decision_engine,
            session_establisher=session_establisher,
            provider_registry=provider_registry,
            event_publisher=event_publisher,
            unit_of_work=unit_of_work,
            request_timeout=auth_settings.request_timeout_seconds,
        )
