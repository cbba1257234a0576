"""Second-factor checkpoint token."""

from datetime import datetime

from pydantic import Field

from idlink.domain.model.common import DomainModel
from idlink.domain.value.identifiers import AccountId


class CheckpointToken(DomainModel):
    """Single-use token tying a pending login to an account."""

    token_value: str = Field(repr=False)
    account_id: AccountId
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        """Check whether the token is past its expiry at ``now``."""
        return now >= self.expires_at
