"""case_insensitive_accounts_and_login_attempts

- Email and username uniqueness ignores case (unique indexes on lower())
- Login attempts (failed-login counters shared by all workers)

Revision ID: 5b7e1f0c9d24
Revises: 3c41d7a2e9b0
Create Date: 2026-10-19 16:40:02.118734

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "5b7e1f0c9d24"
down_revision: Union[str, Sequence[str], None] = "3c41d7a2e9b0"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    # Index names reuse the constraint names, so the constraints go first
    op.drop_constraint("uq_accounts_email", "accounts", type_="unique")
    op.drop_constraint("uq_accounts_username", "accounts", type_="unique")
    op.create_index(
        "uq_accounts_email", "accounts", [sa.text("lower(email)")], unique=True
    )
    op.create_index(
        "uq_accounts_username", "accounts", [sa.text("lower(username)")], unique=True
    )

    # ========================================================================
    # LOGIN_ATTEMPTS table
    # ========================================================================
    op.create_table(
        "login_attempts",
        sa.Column("principal", sa.String(255), nullable=False),
        sa.Column(
            "failed_attempts", sa.Integer(), nullable=False, server_default="0"
        ),
        sa.Column("last_failed_at", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("principal"),
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table("login_attempts")
    op.drop_index("uq_accounts_username", table_name="accounts")
    op.drop_index("uq_accounts_email", table_name="accounts")
    op.create_unique_constraint("uq_accounts_username", "accounts", ["username"])
    op.create_unique_constraint("uq_accounts_email", "accounts", ["email"])
