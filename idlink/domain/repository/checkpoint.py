"""Checkpoint token repository interface."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from idlink.domain.model.checkpoint import CheckpointToken


class CheckpointRepository(ABC):
    """Repository for second-factor checkpoint tokens.

    Expiry is enforced when tokens are read: an expired token is never
    returned, whether or not it is still stored.
    """

    @abstractmethod
    async def save(self, token: CheckpointToken) -> CheckpointToken:
        """Store a new token.

        Args:
            token: Token to store

        Returns:
            The stored token
        """
        pass

    @abstractmethod
    async def find_valid(
        self, token_value: str, now: datetime
    ) -> Optional[CheckpointToken]:
        """Find a token that has not expired at ``now``.

        Args:
            token_value: Token value
            now: Reference time

        Returns:
            The token if present and unexpired, None otherwise
        """
        pass

    @abstractmethod
    async def consume(
        self, token_value: str, now: datetime
    ) -> Optional[CheckpointToken]:
        """Delete a token and return it if it was still valid.

        Args:
            token_value: Token value
            now: Reference time

        Returns:
            The consumed token, or None if absent or expired
        """
        pass
