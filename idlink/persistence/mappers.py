"""Mappers for converting between database rows and domain models.

Domain models are immutable pydantic models, so rows are mapped by hand
instead of through SQLAlchemy's ORM.
"""

from typing import Any, Dict
from uuid import UUID

from idlink.domain.model import Account, CheckpointToken, ExternalIdentity
from idlink.domain.value import AccountId


def _account_id(value: Any) -> AccountId:
    return AccountId(UUID(value) if isinstance(value, str) else value)


def row_to_account(row: Dict[str, Any]) -> Account:
    """Convert database row to Account domain model.

    Args:
        row: Database row as dict

    Returns:
        Account domain model
    """
    return Account(
        id=_account_id(row["id"]),
        email=row["email"],
        username=row["username"],
        display_name=row["display_name"],
        credential_hash=row["credential_hash"],
        second_factor_enabled=row["second_factor_enabled"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def account_to_dict(account: Account) -> Dict[str, Any]:
    """Convert Account domain model to database dict.

    Args:
        account: Account domain model

    Returns:
        Dict of column values
    """
    return {
        "id": account.id,
        "email": account.email,
        "username": account.username,
        "display_name": account.display_name,
        "credential_hash": account.credential_hash,
        "second_factor_enabled": account.second_factor_enabled,
        "created_at": account.created_at,
        "updated_at": account.updated_at,
    }


def row_to_external_identity(row: Dict[str, Any]) -> ExternalIdentity:
    """Convert database row to ExternalIdentity domain model."""
    return ExternalIdentity(
        provider=row["provider"],
        provider_id=row["provider_id"],
        account_id=_account_id(row["account_id"]),
        linked_at=row["linked_at"],
    )


def external_identity_to_dict(identity: ExternalIdentity) -> Dict[str, Any]:
    """Convert ExternalIdentity domain model to database dict."""
    return {
        "provider": identity.provider,
        "provider_id": identity.provider_id,
        "account_id": identity.account_id,
        "linked_at": identity.linked_at,
    }


def row_to_checkpoint_token(row: Dict[str, Any]) -> CheckpointToken:
    """Convert database row to CheckpointToken domain model."""
    return CheckpointToken(
        token_value=row["token_value"],
        account_id=_account_id(row["account_id"]),
        expires_at=row["expires_at"],
    )


def checkpoint_token_to_dict(token: CheckpointToken) -> Dict[str, Any]:
    """Convert CheckpointToken domain model to database dict."""
    return {
        "token_value": token.token_value,
        "account_id": token.account_id,
        "expires_at": token.expires_at,
    }
