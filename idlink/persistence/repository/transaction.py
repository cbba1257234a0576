"""UnitOfWork implementation using PostgreSQL savepoints."""

from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncSession

from idlink.domain.repository.transaction import UnitOfWork


class PostgresUnitOfWork(UnitOfWork):
    """Runs each unit of work in a SAVEPOINT of the request session.

    The request-scoped session commits at the end of the request; a failed
    unit rolls back to its savepoint and leaves the session usable, so the
    caller can still read the state that made the write fail.
    """

    def __init__(self, session: AsyncSession) -> None:
        """Initialize unit of work with database session.

        Args:
            session: SQLAlchemy async session
        """
        self.session = session

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        """Open a savepoint; release on success, roll back on any error."""
        async with self.session.begin_nested():
            yield
