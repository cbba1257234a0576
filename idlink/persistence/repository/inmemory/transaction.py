"""In-memory unit of work for testing."""

from contextlib import AbstractAsyncContextManager

from idlink.domain.repository.transaction import UnitOfWork

from .database import InMemoryDatabase


class InMemoryUnitOfWork(UnitOfWork):
    """Transactions over an InMemoryDatabase journal."""

    def __init__(self, database: InMemoryDatabase) -> None:
        self._db = database

    def transaction(self) -> AbstractAsyncContextManager[None]:
        """Open a transaction on the shared in-memory tables."""
        return self._db.transaction()
