"""PostgreSQL repository implementations."""

from idlink.persistence.repository.account import PostgresAccountRepository
from idlink.persistence.repository.checkpoint import PostgresCheckpointRepository
from idlink.persistence.repository.external_identity import (
    PostgresExternalIdentityRepository,
)
from idlink.persistence.repository.login_attempt import PostgresLoginThrottle
from idlink.persistence.repository.transaction import PostgresUnitOfWork

__all__ = [
    "PostgresAccountRepository",
    "PostgresCheckpointRepository",
    "PostgresExternalIdentityRepository",
    "PostgresLoginThrottle",
    "PostgresUnitOfWork",
]
