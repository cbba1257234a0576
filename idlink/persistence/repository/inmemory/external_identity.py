"""In-memory external identity repository for testing."""

from typing import Optional

from sqlalchemy.exc import IntegrityError

from idlink.domain.model.external_identity import ExternalIdentity
from idlink.domain.repository.external_identity import ExternalIdentityRepository
from idlink.domain.value import AccountId

from .database import InMemoryDatabase


class InMemoryExternalIdentityRepository(ExternalIdentityRepository):
    """In-memory implementation of ExternalIdentityRepository for testing."""

    def __init__(self, database: InMemoryDatabase | None = None) -> None:
        self._db = database or InMemoryDatabase()

    async def find_by_provider(
        self, provider: str, provider_id: str
    ) -> Optional[ExternalIdentity]:
        """Find identity by provider and provider ID."""
        return self._db.identities.get((provider, provider_id))

    async def find_by_account_and_provider(
        self, account_id: AccountId, provider: str
    ) -> Optional[ExternalIdentity]:
        """Find the identity an account holds for a provider."""
        for identity in self._db.identities.values():
            if identity.account_id == account_id and identity.provider == provider:
                return identity
        return None

    async def find_all_by_account_id(
        self, account_id: AccountId
    ) -> list[ExternalIdentity]:
        """Find all identities for an account."""
        matches = [
            i for i in self._db.identities.values() if i.account_id == account_id
        ]
        matches.sort(key=lambda i: i.linked_at)
        return matches

    async def create(self, identity: ExternalIdentity) -> ExternalIdentity:
        """Insert identity, enforcing both unique pairs and the account FK."""
        if (identity.provider, identity.provider_id) in self._db.identities:
            raise IntegrityError("Duplicate provider identity", None, Exception())
        if await self.find_by_account_and_provider(
            identity.account_id, identity.provider
        ):
            raise IntegrityError("Duplicate provider for account", None, Exception())
        if identity.account_id not in self._db.accounts:
            raise IntegrityError("Unknown account", None, Exception())

        self._db.put(
            self._db.identities, (identity.provider, identity.provider_id), identity
        )
        return identity

    async def delete_by_account_and_provider(
        self, account_id: AccountId, provider: str
    ) -> bool:
        """Delete the identity an account holds for a provider."""
        identity = await self.find_by_account_and_provider(account_id, provider)
        if identity is None:
            return False
        self._db.remove(
            self._db.identities, (identity.provider, identity.provider_id)
        )
        return True
