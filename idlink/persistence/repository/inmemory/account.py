"""In-memory account repository for testing."""

from typing import Optional

from sqlalchemy.exc import IntegrityError

from idlink.domain.model.account import Account
from idlink.domain.repository.account import AccountRepository
from idlink.domain.value import AccountId

from .database import InMemoryDatabase


class InMemoryAccountRepository(AccountRepository):
    """In-memory implementation of AccountRepository for testing."""

    def __init__(self, database: InMemoryDatabase | None = None) -> None:
        self._db = database or InMemoryDatabase()

    async def find_by_id(self, account_id: AccountId) -> Optional[Account]:
        """Find an account by ID."""
        return self._db.accounts.get(account_id)

    async def exists_by_email(self, email: str) -> bool:
        """Check whether an account uses the given email, ignoring case."""
        email = email.lower()
        return any(a.email.lower() == email for a in self._db.accounts.values())

    async def exists_by_username(self, username: str) -> bool:
        """Check whether an account uses the given username, ignoring case."""
        username = username.lower()
        return any(
            a.username.lower() == username for a in self._db.accounts.values()
        )

    async def create(self, account: Account) -> Account:
        """Insert a new account, enforcing the unique columns."""
        if account.id in self._db.accounts:
            raise IntegrityError("Duplicate account id", None, Exception())
        if await self.exists_by_email(account.email):
            raise IntegrityError("Duplicate account email", None, Exception())
        if await self.exists_by_username(account.username):
            raise IntegrityError("Duplicate account username", None, Exception())

        self._db.put(self._db.accounts, account.id, account)
        return account

    async def delete(self, account_id: AccountId) -> None:
        """Delete an account with its identities and checkpoint tokens."""
        for key, identity in list(self._db.identities.items()):
            if identity.account_id == account_id:
                self._db.remove(self._db.identities, key)
        for key, token in list(self._db.checkpoints.items()):
            if token.account_id == account_id:
                self._db.remove(self._db.checkpoints, key)
        self._db.remove(self._db.accounts, account_id)
