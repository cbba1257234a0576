"""Transaction boundary interface."""

from abc import ABC, abstractmethod
from contextlib import AbstractAsyncContextManager


class UnitOfWork(ABC):
    """Groups repository writes into one atomic unit.

    Usage:
        async with unit_of_work.transaction():
            await account_repository.create(account)
            await identity_repository.create(identity)

    Any exception leaving the block (including cancellation) rolls back every
    write made inside it. Nested blocks behave as savepoints.
    """

    @abstractmethod
    def transaction(self) -> AbstractAsyncContextManager[None]:
        """Open a transaction scope."""
        pass
