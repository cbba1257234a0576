"""Mock providers for testing."""

from .persistence import MockPersistenceProvider
from .sessions import MockSessionsProvider
from .container import build_test_container

__all__ = [
    "MockPersistenceProvider",
    "MockSessionsProvider",
    "build_test_container",
]
