"""Domain value objects for identity linking."""

from idlink.domain.value.identifiers import AccountId
from idlink.domain.value.types import (
    ProviderAssertion,
    ProviderDescriptor,
    ProviderType,
)

__all__ = [
    # Identifiers
    "AccountId",
    # Types
    "ProviderAssertion",
    "ProviderDescriptor",
    "ProviderType",
]
