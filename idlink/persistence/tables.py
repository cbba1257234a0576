"""SQLAlchemy table definitions.

These table definitions match the schema defined in Alembic migrations.
"""

from sqlalchemy import (
    Boolean,
    Column,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.dialects.postgresql import TIMESTAMP, UUID

# Metadata object for all tables
metadata = MetaData()

# Constraint names, shared with the migrations
UQ_ACCOUNTS_EMAIL = "uq_accounts_email"
UQ_ACCOUNTS_USERNAME = "uq_accounts_username"
UQ_PROVIDER_IDENTITY = "uq_provider_identity"
UQ_ACCOUNT_PROVIDER = "uq_account_provider"

# ============================================================================
# ACCOUNTS TABLE
# ============================================================================
accounts_table = Table(
    "accounts",
    metadata,
    Column("id", UUID, primary_key=True, server_default="uuid_generate_v4()"),
    Column("email", String(255), nullable=False),
    Column("username", String(255), nullable=False),
    Column("display_name", String(255), nullable=False),
    Column("credential_hash", Text, nullable=False),
    Column("second_factor_enabled", Boolean, nullable=False, server_default="false"),
    Column(
        "created_at", TIMESTAMP(timezone=True), nullable=False, server_default="NOW()"
    ),
    Column(
        "updated_at", TIMESTAMP(timezone=True), nullable=False, server_default="NOW()"
    ),
)

# Email and username are unique regardless of case
Index(UQ_ACCOUNTS_EMAIL, func.lower(accounts_table.c.email), unique=True)
Index(UQ_ACCOUNTS_USERNAME, func.lower(accounts_table.c.username), unique=True)

# ============================================================================
# EXTERNAL IDENTITIES TABLE
# ============================================================================
external_identities_table = Table(
    "external_identities",
    metadata,
    Column("provider", String(50), nullable=False),  # 'discord', 'telegram'
    Column("provider_id", String(255), nullable=False),
    Column(
        "account_id",
        UUID,
        ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column(
        "linked_at", TIMESTAMP(timezone=True), nullable=False, server_default="NOW()"
    ),
    UniqueConstraint("provider", "provider_id", name=UQ_PROVIDER_IDENTITY),
    UniqueConstraint("account_id", "provider", name=UQ_ACCOUNT_PROVIDER),
)

Index("idx_external_identities_account_id", external_identities_table.c.account_id)

# ============================================================================
# CHECKPOINT TOKENS TABLE
# ============================================================================
checkpoint_tokens_table = Table(
    "checkpoint_tokens",
    metadata,
    Column("token_value", String(128), primary_key=True),
    Column(
        "account_id",
        UUID,
        ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("expires_at", TIMESTAMP(timezone=True), nullable=False),
)

Index("idx_checkpoint_tokens_account_id", checkpoint_tokens_table.c.account_id)

# ============================================================================
# LOGIN ATTEMPTS TABLE
# ============================================================================
# Failed-login counters of the password login, keyed by lowercased principal
login_attempts_table = Table(
    "login_attempts",
    metadata,
    Column("principal", String(255), primary_key=True),
    Column("failed_attempts", Integer, nullable=False, server_default="0"),
    Column("last_failed_at", TIMESTAMP(timezone=True), nullable=True),
)
