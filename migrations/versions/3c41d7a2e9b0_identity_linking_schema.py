"""identity_linking_schema

Create the identity-linking schema:
- Accounts (local accounts; provisioned ones carry an unusable credential)
- External identities (one row per linked provider account)
- Checkpoint tokens (second-factor hand-off, single use, TTL-bound)

Revision ID: 3c41d7a2e9b0
Revises:
Create Date: 2026-10-19 10:12:44.381205

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "3c41d7a2e9b0"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.execute('CREATE EXTENSION IF NOT EXISTS "uuid-ossp"')

    # ========================================================================
    # ACCOUNTS table
    # ========================================================================
    op.create_table(
        "accounts",
        sa.Column(
            "id",
            sa.UUID(),
            server_default=sa.text("uuid_generate_v4()"),
            nullable=False,
        ),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("username", sa.String(255), nullable=False),
        sa.Column("display_name", sa.String(255), nullable=False),
        sa.Column("credential_hash", sa.Text(), nullable=False),
        sa.Column(
            "second_factor_enabled",
            sa.Boolean(),
            nullable=False,
            server_default="false",
        ),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
        sa.Column(
            "updated_at",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email", name="uq_accounts_email"),
        sa.UniqueConstraint("username", name="uq_accounts_username"),
    )

    # ========================================================================
    # EXTERNAL_IDENTITIES table
    # ========================================================================
    op.create_table(
        "external_identities",
        sa.Column("provider", sa.String(50), nullable=False),  # 'discord', 'telegram'
        sa.Column("provider_id", sa.String(255), nullable=False),
        sa.Column("account_id", sa.UUID(), nullable=False),
        sa.Column(
            "linked_at",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
        sa.ForeignKeyConstraint(["account_id"], ["accounts.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("provider", "provider_id", name="uq_provider_identity"),
        sa.UniqueConstraint("account_id", "provider", name="uq_account_provider"),
    )
    op.create_index(
        "idx_external_identities_account_id", "external_identities", ["account_id"]
    )

    # ========================================================================
    # CHECKPOINT_TOKENS table
    # ========================================================================
    op.create_table(
        "checkpoint_tokens",
        sa.Column("token_value", sa.String(128), nullable=False),
        sa.Column("account_id", sa.UUID(), nullable=False),
        sa.Column("expires_at", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["account_id"], ["accounts.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("token_value"),
    )
    op.create_index(
        "idx_checkpoint_tokens_account_id", "checkpoint_tokens", ["account_id"]
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index("idx_checkpoint_tokens_account_id", table_name="checkpoint_tokens")
    op.drop_table("checkpoint_tokens")
    op.drop_index(
        "idx_external_identities_account_id", table_name="external_identities"
    )
    op.drop_table("external_identities")
    op.drop_table("accounts")
