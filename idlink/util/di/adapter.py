"""Adapter DI providers."""

from dishka import Scope, provide

from idlink.adapter.assertion import AssertionDecoder
from idlink.config import AuthSettings
from idlink.util.di.base import ProviderBase


class ProdAdapterProvider(ProviderBase):
    """Adapters with no external side effects - concrete, no mocks needed."""

    scope = Scope.APP

    @provide
    def get_assertion_decoder(self, auth_settings: AuthSettings) -> AssertionDecoder:
        """Provide decoder for signed provider assertions."""
        return AssertionDecoder(auth_settings)
