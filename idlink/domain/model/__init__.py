"""Domain model entities."""

from idlink.domain.model.account import Account
from idlink.domain.model.checkpoint import CheckpointToken
from idlink.domain.model.external_identity import ExternalIdentity

__all__ = [
    "Account",
    "CheckpointToken",
    "ExternalIdentity",
]
