"""In-memory checkpoint token repository for testing."""

from datetime import datetime
from typing import Optional

from sqlalchemy.exc import IntegrityError

from idlink.domain.model.checkpoint import CheckpointToken
from idlink.domain.repository.checkpoint import CheckpointRepository

from .database import InMemoryDatabase


class InMemoryCheckpointRepository(CheckpointRepository):
    """In-memory implementation of CheckpointRepository for testing."""

    def __init__(self, database: InMemoryDatabase | None = None) -> None:
        self._db = database or InMemoryDatabase()

    async def save(self, token: CheckpointToken) -> CheckpointToken:
        """Store a new token."""
        if token.token_value in self._db.checkpoints:
            raise IntegrityError("Duplicate checkpoint token", None, Exception())
        if token.account_id not in self._db.accounts:
            raise IntegrityError("Unknown account", None, Exception())
        self._db.put(self._db.checkpoints, token.token_value, token)
        return token

    async def find_valid(
        self, token_value: str, now: datetime
    ) -> Optional[CheckpointToken]:
        """Find a token that has not expired at ``now``."""
        token = self._db.checkpoints.get(token_value)
        if token is None or token.is_expired(now):
            return None
        return token

    async def consume(
        self, token_value: str, now: datetime
    ) -> Optional[CheckpointToken]:
        """Delete a token and return it if it was still valid."""
        token = self._db.remove(self._db.checkpoints, token_value)
        if token is None or token.is_expired(now):
            return None
        return token
