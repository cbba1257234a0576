"""Identity linking use cases."""

from idlink.application.usecase.identity.service import (
    IdentityLinkingService,
    LinkedIdentity,
)

__all__ = [
    "IdentityLinkingService",
    "LinkedIdentity",
]
