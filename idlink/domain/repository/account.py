"""Account repository interface."""

from abc import ABC, abstractmethod
from typing import Optional

from idlink.domain.model.account import Account
from idlink.domain.value import AccountId


class AccountRepository(ABC):
    """Repository for Account aggregate.

    Email and username are unique in storage, ignoring case; inserts that
    violate either raise ``sqlalchemy.exc.IntegrityError``. Lookups by email
    or username ignore case as well.
    """

    @abstractmethod
    async def find_by_id(self, account_id: AccountId) -> Optional[Account]:
        """Find an account by ID.

        Args:
            account_id: The account's unique identifier

        Returns:
            The account if found, None otherwise
        """
        pass

    @abstractmethod
    async def exists_by_email(self, email: str) -> bool:
        """Check whether an account uses the given email.

        Args:
            email: Email address

        Returns:
            True if taken, False otherwise
        """
        pass

    @abstractmethod
    async def exists_by_username(self, username: str) -> bool:
        """Check whether an account uses the given username.

        Args:
            username: Username

        Returns:
            True if taken, False otherwise
        """
        pass

    @abstractmethod
    async def create(self, account: Account) -> Account:
        """Insert a new account.

        Args:
            account: The account to insert

        Returns:
            The inserted account

        Raises:
            IntegrityError: If email or username is already taken
        """
        pass

    @abstractmethod
    async def delete(self, account_id: AccountId) -> None:
        """Delete an account together with its identities and checkpoints.

        Args:
            account_id: The account to delete
        """
        pass
