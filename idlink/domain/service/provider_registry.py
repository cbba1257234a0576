"""Registry of enabled identity providers."""

from idlink.config import OAuthProviderSettings
from idlink.domain.value import ProviderDescriptor, ProviderType

from .base import Service


class ProviderRegistry(Service):
    """Answers which providers are enabled.

    A provider is enabled iff its client secret is configured.
    """

    def __init__(self, providers: dict[str, OAuthProviderSettings]) -> None:
        """Initialize provider registry.

        Args:
            providers: Provider settings keyed by provider key
        """
        self.providers = providers

    def is_enabled(self, key: str) -> bool:
        """Check whether a provider is enabled."""
        settings = self.providers.get(key)
        return settings is not None and bool(settings.client_secret)

    def label(self, key: str) -> str:
        """Human-readable provider name."""
        settings = self.providers.get(key)
        if settings and settings.label:
            return settings.label
        return key[:1].upper() + key[1:]

    def enabled(self) -> list[ProviderDescriptor]:
        """Describe all enabled providers in configuration order."""
        descriptors = []
        for key, settings in self.providers.items():
            if not settings.client_secret:
                continue

            provider_type = ProviderType(settings.type)
            bot_id = None
            if provider_type == ProviderType.TELEGRAM:
                # Bot tokens look like "<numeric bot id>:<secret>"
                bot_id = settings.client_secret.split(":", 1)[0] or None

            descriptors.append(
                ProviderDescriptor(
                    key=key,
                    label=self.label(key),
                    type=provider_type,
                    bot_id=bot_id,
                )
            )
        return descriptors
