"""Persistence infrastructure providers."""

from collections.abc import AsyncIterator

from dishka import Scope, provide
import logfire
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from idlink.config import Settings
from idlink.domain.repository import (
    AccountRepository,
    CheckpointRepository,
    ExternalIdentityRepository,
    UnitOfWork,
)
from idlink.domain.service import LoginThrottle
from idlink.persistence.database import create_engine, create_session_factory
from idlink.persistence.repository import (
    PostgresAccountRepository,
    PostgresCheckpointRepository,
    PostgresExternalIdentityRepository,
    PostgresLoginThrottle,
    PostgresUnitOfWork,
)
from idlink.util.di.base import ProviderBase
from idlink.util.observability import instrument_sqlalchemy


class PersistenceProvider(ProviderBase):
    """Persistence component base."""

    __mock_component__ = "persistence"


class ProdPersistenceProvider(PersistenceProvider):
    """Production persistence provider using PostgreSQL."""

    __is_mock__ = False

    scope = Scope.APP

    @provide(scope=Scope.APP)
    def get_engine(self, settings: Settings) -> AsyncEngine:
        """Provide database engine."""
        engine = create_engine(settings)
        instrument_sqlalchemy(engine)
        return engine

    @provide(scope=Scope.APP)
    def get_session_factory(
        self, engine: AsyncEngine
    ) -> async_sessionmaker[AsyncSession]:
        """Provide session factory."""
        return create_session_factory(engine)

    @provide(scope=Scope.REQUEST)
    async def get_session(
        self, session_factory: async_sessionmaker[AsyncSession]
    ) -> AsyncIterator[AsyncSession]:
        """Provide database session for request scope.

        The session is automatically committed at the end of the request
        if no exception occurred, or rolled back if an exception was raised.
        """
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
                logfire.info("Session committed")
            except Exception as e:
                logfire.warn("Session rollback", error=str(e))
                await session.rollback()
                raise

    @provide(scope=Scope.REQUEST)
    def get_account_repository(self, session: AsyncSession) -> AccountRepository:
        """Provide Account repository."""
        return PostgresAccountRepository(session)

    @provide(scope=Scope.REQUEST)
    def get_external_identity_repository(
        self, session: AsyncSession
    ) -> ExternalIdentityRepository:
        """Provide ExternalIdentity repository."""
        return PostgresExternalIdentityRepository(session)

    @provide(scope=Scope.REQUEST)
    def get_checkpoint_repository(self, session: AsyncSession) -> CheckpointRepository:
        """Provide CheckpointToken repository."""
        return PostgresCheckpointRepository(session)

    @provide(scope=Scope.REQUEST)
    def get_login_throttle(self, session: AsyncSession) -> LoginThrottle:
        """Provide login throttle over the login_attempts table."""
        return PostgresLoginThrottle(session)

    @provide(scope=Scope.REQUEST)
    def get_unit_of_work(self, session: AsyncSession) -> UnitOfWork:
        """Provide savepoint-based unit of work on the request session."""
        return PostgresUnitOfWork(session)
