"""Account aggregate root.

Only the attributes the identity-linking flow reads or assigns are modelled
here; the rest of the account lifecycle belongs to account management.
"""

from datetime import datetime, timezone

from pydantic import Field

from idlink.domain.model.common import DomainModel
from idlink.domain.value.identifiers import AccountId


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Account(DomainModel):
    """Internal user account.

    Email and username are globally unique. Accounts provisioned from an
    external login still carry a credential hash, derived from a random
    secret nobody knows.
    """

    id: AccountId
    email: str
    username: str
    display_name: str
    credential_hash: str = Field(repr=False)
    second_factor_enabled: bool = False
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)
