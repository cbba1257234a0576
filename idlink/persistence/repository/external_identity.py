"""ExternalIdentity repository implementation using PostgreSQL."""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from idlink.domain.model.external_identity import ExternalIdentity
from idlink.domain.repository.external_identity import ExternalIdentityRepository
from idlink.domain.value import AccountId
from idlink.persistence.mappers import (
    external_identity_to_dict,
    row_to_external_identity,
)
from idlink.persistence.tables import external_identities_table


class PostgresExternalIdentityRepository(ExternalIdentityRepository):
    """PostgreSQL implementation of ExternalIdentityRepository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: SQLAlchemy async session
        """
        self.session = session

    async def find_by_provider(
        self, provider: str, provider_id: str
    ) -> Optional[ExternalIdentity]:
        """Get identity by provider and provider ID.

        Args:
            provider: Provider key
            provider_id: Provider-specific account ID

        Returns:
            ExternalIdentity if found, None otherwise
        """
        stmt = select(external_identities_table).where(
            external_identities_table.c.provider == provider,
            external_identities_table.c.provider_id == provider_id,
        )
        result = await self.session.execute(stmt)
        row = result.mappings().first()

        if not row:
            return None

        return row_to_external_identity(dict(row))

    async def find_by_account_and_provider(
        self, account_id: AccountId, provider: str
    ) -> Optional[ExternalIdentity]:
        """Get the identity an account holds for a provider."""
        stmt = select(external_identities_table).where(
            external_identities_table.c.account_id == account_id,
            external_identities_table.c.provider == provider,
        )
        result = await self.session.execute(stmt)
        row = result.mappings().first()

        if not row:
            return None

        return row_to_external_identity(dict(row))

    async def find_all_by_account_id(
        self, account_id: AccountId
    ) -> list[ExternalIdentity]:
        """Find all identities for an account, oldest first."""
        stmt = (
            select(external_identities_table)
            .where(external_identities_table.c.account_id == account_id)
            .order_by(external_identities_table.c.linked_at)
        )
        result = await self.session.execute(stmt)
        rows = result.mappings().all()

        return [row_to_external_identity(dict(row)) for row in rows]

    async def create(self, identity: ExternalIdentity) -> ExternalIdentity:
        """Insert a new identity.

        Args:
            identity: Identity to insert

        Returns:
            Inserted identity

        Raises:
            IntegrityError: If (provider, provider_id) or (account_id, provider)
                is already taken
        """
        stmt = external_identities_table.insert().values(
            **external_identity_to_dict(identity)
        )
        await self.session.execute(stmt)
        await self.session.flush()
        return identity

    async def delete_by_account_and_provider(
        self, account_id: AccountId, provider: str
    ) -> bool:
        """Delete the identity an account holds for a provider.

        Returns:
            True if a row was deleted
        """
        stmt = external_identities_table.delete().where(
            external_identities_table.c.account_id == account_id,
            external_identities_table.c.provider == provider,
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount > 0
