"""Login throttle backed by the login_attempts table."""

from sqlalchemy.ext.asyncio import AsyncSession

from idlink.domain.service.session_establisher import LoginThrottle
from idlink.persistence.tables import login_attempts_table


class PostgresLoginThrottle(LoginThrottle):
    """Clears the failed-login counters the password login writes.

    Counters live in the database so every worker sees the same state;
    principals are stored lowercased.
    """

    def __init__(self, session: AsyncSession) -> None:
        """Initialize throttle with database session.

        Args:
            session: SQLAlchemy async session
        """
        self.session = session

    async def clear(self, principal: str) -> None:
        """Delete the counter row for a principal, if any."""
        stmt = login_attempts_table.delete().where(
            login_attempts_table.c.principal == principal.lower()
        )
        await self.session.execute(stmt)
        await self.session.flush()
