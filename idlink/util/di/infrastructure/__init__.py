"""Infrastructure providers."""

# Import bases
from .persistence import PersistenceProvider
from .sessions import SessionsProvider

# Import implementations (needed for __subclasses__())
from .persistence import ProdPersistenceProvider  # noqa: F401
from .sessions import ProdSessionsProvider  # noqa: F401

__all__ = [
    "PersistenceProvider",
    "ProdPersistenceProvider",
    "ProdSessionsProvider",
    "SessionsProvider",
]
