"""Unit tests for ProviderRegistry."""

from idlink.config import OAuthProviderSettings
from idlink.domain.service import ProviderRegistry
from idlink.domain.value import ProviderType


def build_registry() -> ProviderRegistry:
    return ProviderRegistry(
        providers={
            "discord": OAuthProviderSettings(client_id="id", client_secret="secret"),
            "telegram": OAuthProviderSettings(
                label="Telegram",
                type="telegram",
                client_secret="123456789:AAH-bot-token",
            ),
            "github": OAuthProviderSettings(client_id="id"),
        }
    )


class TestProviderRegistry:
    """Tests for ProviderRegistry."""

    def test_enabled_iff_client_secret_configured(self):
        registry = build_registry()

        assert registry.is_enabled("discord")
        assert registry.is_enabled("telegram")
        assert not registry.is_enabled("github")
        assert not registry.is_enabled("gitlab")

    def test_enabled_lists_descriptors(self):
        # Act
        descriptors = {d.key: d for d in build_registry().enabled()}

        # Assert
        assert set(descriptors) == {"discord", "telegram"}
        assert descriptors["discord"].label == "Discord"
        assert descriptors["discord"].type == ProviderType.REDIRECT
        assert descriptors["discord"].bot_id is None

    def test_telegram_exposes_bot_id(self):
        """Bot id is the numeric prefix of the bot token."""
        descriptors = {d.key: d for d in build_registry().enabled()}

        assert descriptors["telegram"].type == ProviderType.TELEGRAM
        assert descriptors["telegram"].bot_id == "123456789"

    def test_label_prefers_configured_label(self):
        registry = build_registry()

        assert registry.label("telegram") == "Telegram"
        assert registry.label("github") == "Github"
