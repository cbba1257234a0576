"""PostgreSQL implementation of Account repository."""

from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from idlink.domain.model import Account
from idlink.domain.repository import AccountRepository
from idlink.domain.value import AccountId
from idlink.persistence.mappers import account_to_dict, row_to_account
from idlink.persistence.tables import accounts_table


class PostgresAccountRepository(AccountRepository):
    """PostgreSQL implementation of AccountRepository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: SQLAlchemy async session
        """
        self.session = session

    async def find_by_id(self, account_id: AccountId) -> Optional[Account]:
        """Find an account by ID.

        Args:
            account_id: Account ID to look up

        Returns:
            Account if found, None otherwise
        """
        stmt = select(accounts_table).where(accounts_table.c.id == account_id)
        result = await self.session.execute(stmt)
        row = result.mappings().first()
        return row_to_account(dict(row)) if row else None

    async def exists_by_email(self, email: str) -> bool:
        """Check whether an account uses the given email, ignoring case."""
        stmt = select(accounts_table.c.id).where(
            func.lower(accounts_table.c.email) == email.lower()
        )
        result = await self.session.execute(stmt)
        return result.first() is not None

    async def exists_by_username(self, username: str) -> bool:
        """Check whether an account uses the given username, ignoring case."""
        stmt = select(accounts_table.c.id).where(
            func.lower(accounts_table.c.username) == username.lower()
        )
        result = await self.session.execute(stmt)
        return result.first() is not None

    async def create(self, account: Account) -> Account:
        """Insert a new account.

        Args:
            account: Account to insert

        Returns:
            Inserted account

        Raises:
            IntegrityError: If email or username is already taken
        """
        stmt = accounts_table.insert().values(**account_to_dict(account))
        await self.session.execute(stmt)
        await self.session.flush()
        return account

    async def delete(self, account_id: AccountId) -> None:
        """Delete an account.

        Identities and checkpoint tokens go with it (ON DELETE CASCADE).

        Args:
            account_id: Account to delete
        """
        stmt = accounts_table.delete().where(accounts_table.c.id == account_id)
        await self.session.execute(stmt)
        await self.session.flush()
