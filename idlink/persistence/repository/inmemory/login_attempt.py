"""In-memory login throttle for testing."""

from idlink.domain.service.session_establisher import LoginThrottle

from .database import InMemoryDatabase


class InMemoryLoginThrottle(LoginThrottle):
    """In-memory implementation of LoginThrottle for testing."""

    def __init__(self, database: InMemoryDatabase | None = None) -> None:
        self._db = database or InMemoryDatabase()

    async def clear(self, principal: str) -> None:
        """Delete the counter for a principal, if any."""
        self._db.remove(self._db.login_attempts, principal.lower())
