"""External identity entity.

Links an account on an external provider to an internal account.
"""

from datetime import datetime, timezone

from pydantic import Field

from idlink.domain.model.common import DomainModel
from idlink.domain.value.identifiers import AccountId


class ExternalIdentity(DomainModel):
    """External provider identity linked to an account.

    One row per (provider, provider_id) and one row per (account_id, provider).
    Created on provisioning or explicit link, removed only by unlink or
    account deletion, never updated.
    """

    provider: str
    provider_id: str  # Stable ID assigned by the provider
    account_id: AccountId
    linked_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
