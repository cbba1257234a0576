"""External identity repository interface."""

from abc import ABC, abstractmethod
from typing import Optional

from idlink.domain.model.external_identity import ExternalIdentity
from idlink.domain.value import AccountId


class ExternalIdentityRepository(ABC):
    """Repository for ExternalIdentity entity.

    Storage enforces two unique constraints: (provider, provider_id) and
    (account_id, provider). Inserts that violate either raise
    ``sqlalchemy.exc.IntegrityError``.
    """

    @abstractmethod
    async def find_by_provider(
        self, provider: str, provider_id: str
    ) -> Optional[ExternalIdentity]:
        """Find an identity by provider and provider ID.

        Args:
            provider: Provider key
            provider_id: The account's ID on that provider

        Returns:
            The identity if found, None otherwise
        """
        pass

    @abstractmethod
    async def find_by_account_and_provider(
        self, account_id: AccountId, provider: str
    ) -> Optional[ExternalIdentity]:
        """Find the identity an account holds for a provider.

        Args:
            account_id: Owning account
            provider: Provider key

        Returns:
            The identity if found, None otherwise
        """
        pass

    @abstractmethod
    async def find_all_by_account_id(
        self, account_id: AccountId
    ) -> list[ExternalIdentity]:
        """Get all identities linked to an account, oldest first.

        Args:
            account_id: Owning account

        Returns:
            List of identities (may be empty)
        """
        pass

    @abstractmethod
    async def create(self, identity: ExternalIdentity) -> ExternalIdentity:
        """Insert a new identity.

        Args:
            identity: The identity to insert

        Returns:
            The inserted identity

        Raises:
            IntegrityError: If a unique constraint is violated
        """
        pass

    @abstractmethod
    async def delete_by_account_and_provider(
        self, account_id: AccountId, provider: str
    ) -> bool:
        """Delete the identity an account holds for a provider.

        Args:
            account_id: Owning account
            provider: Provider key

        Returns:
            True if a row was deleted, False if none matched
        """
        pass
