"""In-memory repository implementations for testing."""

from .account import InMemoryAccountRepository
from .checkpoint import InMemoryCheckpointRepository
from .database import InMemoryDatabase
from .external_identity import InMemoryExternalIdentityRepository
from .login_attempt import InMemoryLoginThrottle
from .transaction import InMemoryUnitOfWork

__all__ = [
    "InMemoryAccountRepository",
    "InMemoryCheckpointRepository",
    "InMemoryDatabase",
    "InMemoryExternalIdentityRepository",
    "InMemoryLoginThrottle",
    "InMemoryUnitOfWork",
]
