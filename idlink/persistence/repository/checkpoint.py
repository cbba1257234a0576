"""CheckpointToken repository implementation using PostgreSQL."""

from datetime import datetime
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from idlink.domain.model.checkpoint import CheckpointToken
from idlink.domain.repository.checkpoint import CheckpointRepository
from idlink.persistence.mappers import (
    checkpoint_token_to_dict,
    row_to_checkpoint_token,
)
from idlink.persistence.tables import checkpoint_tokens_table


class PostgresCheckpointRepository(CheckpointRepository):
    """PostgreSQL implementation of CheckpointRepository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: SQLAlchemy async session
        """
        self.session = session

    async def save(self, token: CheckpointToken) -> CheckpointToken:
        """Store a new token."""
        stmt = checkpoint_tokens_table.insert().values(
            **checkpoint_token_to_dict(token)
        )
        await self.session.execute(stmt)
        await self.session.flush()
        return token

    async def find_valid(
        self, token_value: str, now: datetime
    ) -> Optional[CheckpointToken]:
        """Find a token that has not expired at ``now``."""
        stmt = select(checkpoint_tokens_table).where(
            checkpoint_tokens_table.c.token_value == token_value,
            checkpoint_tokens_table.c.expires_at > now,
        )
        result = await self.session.execute(stmt)
        row = result.mappings().first()
        return row_to_checkpoint_token(dict(row)) if row else None

    async def consume(
        self, token_value: str, now: datetime
    ) -> Optional[CheckpointToken]:
        """Delete a token and return it if it was still valid.

        Expired tokens are deleted as well, but not returned.
        """
        stmt = (
            checkpoint_tokens_table.delete()
            .where(checkpoint_tokens_table.c.token_value == token_value)
            .returning(*checkpoint_tokens_table.c)
        )
        result = await self.session.execute(stmt)
        row = result.mappings().first()
        await self.session.flush()

        if not row:
            return None

        token = row_to_checkpoint_token(dict(row))
        return None if token.is_expired(now) else token
