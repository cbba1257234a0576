"""Shared in-memory tables with transactional undo for testing."""

from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from contextvars import ContextVar
from typing import Any

from idlink.domain.model.account import Account
from idlink.domain.model.checkpoint import CheckpointToken
from idlink.domain.model.external_identity import ExternalIdentity
from idlink.domain.value import AccountId

_MISSING = object()


class InMemoryDatabase:
    """Tables shared by the in-memory repositories.

    Writes made inside ``transaction()`` are journaled per task and undone
    in reverse order if the block raises. Nested blocks act as savepoints and
    only undo their own writes. Writes outside a transaction are applied
    immediately, like autocommit.
    """

    def __init__(self) -> None:
        self.accounts: dict[AccountId, Account] = {}
        # Keyed by (provider, provider_id)
        self.identities: dict[tuple[str, str], ExternalIdentity] = {}
        self.checkpoints: dict[str, CheckpointToken] = {}
        # Failed-login counts keyed by lowercased principal
        self.login_attempts: dict[str, int] = {}
        self._journal: ContextVar[list[Callable[[], None]] | None] = ContextVar(
            f"inmemory_journal_{id(self)}", default=None
        )

    def put(self, table: dict[Any, Any], key: Any, value: Any) -> None:
        """Insert or replace a row, journaling the previous state."""
        previous = table.get(key, _MISSING)
        table[key] = value

        def undo() -> None:
            if previous is _MISSING:
                table.pop(key, None)
            else:
                table[key] = previous

        self._record(undo)

    def remove(self, table: dict[Any, Any], key: Any) -> Any:
        """Delete a row, journaling it for restore. Returns the row or None."""
        value = table.pop(key, None)
        if value is not None:
            self._record(lambda: table.__setitem__(key, value))
        return value

    def _record(self, undo: Callable[[], None]) -> None:
        journal = self._journal.get()
        if journal is not None:
            journal.append(undo)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        """Run a block atomically."""
        journal = self._journal.get()
        if journal is not None:
            savepoint = len(journal)
            try:
                yield
            except BaseException:
                self._undo(journal, savepoint)
                raise
            return

        journal = []
        reset_token = self._journal.set(journal)
        try:
            yield
        except BaseException:
            self._undo(journal, 0)
            raise
        finally:
            self._journal.reset(reset_token)

    @staticmethod
    def _undo(journal: list[Callable[[], None]], savepoint: int) -> None:
        while len(journal) > savepoint:
            journal.pop()()
