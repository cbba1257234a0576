"""Domain value objects for identity linking.

Value objects are immutable and defined by their values, not identity.
"""

import re
from enum import Enum

from idlink.domain.value.common import ValueObject

# Both end up in the synthetic email "<provider_id>@<provider>.local"
PROVIDER_KEY_PATTERN = re.compile(r"[a-z0-9][a-z0-9-]*")
PROVIDER_ID_PATTERN = re.compile(r"[A-Za-z0-9._+-]+")


class ProviderType(str, Enum):
    """How the login surface talks to a provider."""

    REDIRECT = "redirect"  # Standard OAuth redirect flow
    TELEGRAM = "telegram"  # Telegram login widget


class ProviderAssertion(ValueObject):
    """Verified identity assertion from an external provider.

    Produced by the provider-verification step and trusted as authentic by
    the time it reaches the domain. Optional fields may be missing or empty,
    depending on what the provider shares.
    """

    provider: str  # Short provider key, e.g. "discord"
    provider_id: str  # Stable ID assigned by the provider
    email: str | None = None
    nickname: str | None = None
    display_name: str | None = None

    def problem(self) -> str | None:
        """Describe why the assertion is unusable, if it is."""
        if not self.provider or not self.provider.strip():
            return "missing provider"
        if not self.provider_id or not self.provider_id.strip():
            return "missing provider id"
        if not PROVIDER_KEY_PATTERN.fullmatch(self.provider):
            return "malformed provider"
        if not PROVIDER_ID_PATTERN.fullmatch(self.provider_id):
            return "malformed provider id"
        return None


class ProviderDescriptor(ValueObject):
    """Public description of an enabled provider."""

    key: str
    label: str
    type: ProviderType
    bot_id: str | None = None  # Telegram only
