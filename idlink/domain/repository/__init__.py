"""Repository interfaces.

Repository interfaces are defined in the domain layer (dependency inversion).
Implementations live in the persistence layer.
"""

from idlink.domain.repository.account import AccountRepository
from idlink.domain.repository.checkpoint import CheckpointRepository
from idlink.domain.repository.external_identity import ExternalIdentityRepository
from idlink.domain.repository.transaction import UnitOfWork

__all__ = [
    "AccountRepository",
    "CheckpointRepository",
    "ExternalIdentityRepository",
    "UnitOfWork",
]
