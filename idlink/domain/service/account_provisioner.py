"""Account provisioning domain service."""

import asyncio
import secrets
from collections.abc import Callable
from uuid import uuid4

import logfire

from idlink.domain.model.account import Account
from idlink.domain.outcome import LinkDecision, LinkErrorKind, Rejected
from idlink.domain.repository import AccountRepository
from idlink.domain.value import AccountId, ProviderAssertion

from .base import Service
from .credential_service import CredentialService

# No 0/o, 1/l/i: suffixes end up in usernames people read back
USERNAME_SUFFIX_ALPHABET = "abcdefghjkmnpqrstuvwxyz23456789"
USERNAME_SUFFIX_LENGTH = 4
DEFAULT_DISPLAY_NAME = "User"
EMAIL_CONFLICT_MESSAGE = "An account with this email already exists."


def random_username_suffix() -> str:
    """Generate a short random username suffix."""
    return "".join(
        secrets.choice(USERNAME_SUFFIX_ALPHABET) for _ in range(USERNAME_SUFFIX_LENGTH)
    )


class AccountProvisioner(Service):
    """Creates an account from an assertion that matches no linked identity.

    Must run inside the caller's transaction: the account written here is
    only durable together with the identity linked to it afterwards.
    """

    def __init__(
        self,
        account_repository: AccountRepository,
        credential_service: CredentialService,
        suffix_factory: Callable[[], str] = random_username_suffix,
    ) -> None:
        """Initialize account provisioner.

        Args:
            account_repository: Account repository
            credential_service: Credential generation/hashing
            suffix_factory: Source of username collision suffixes
        """
        self.account_repository = account_repository
        self.credential_service = credential_service
        self.suffix_factory = suffix_factory

    @staticmethod
    def derive_email(assertion: ProviderAssertion) -> str:
        """Provider email, or a synthetic address unique per provider identity.

        Lowercased: email addresses compare case-insensitively.
        """
        email = assertion.email or f"{assertion.provider_id}@{assertion.provider}.local"
        return email.lower()

    @staticmethod
    def derive_username(assertion: ProviderAssertion) -> str:
        """Provider nickname, or ``<provider>_<provider_id>``."""
        return assertion.nickname or f"{assertion.provider}_{assertion.provider_id}"

    async def provision(self, assertion: ProviderAssertion) -> Account | Rejected:
        """Derive and insert a new account.

        Steps:
        1. Derive email; abort if it is already taken
        2. Derive username; on collision append one random suffix
        3. Derive display name and an unusable credential
        4. Insert the account

        Args:
            assertion: Verified provider assertion

        Returns:
            The created account, or a rejection if the email is taken

        Raises:
            IntegrityError: If the insert still hits a unique constraint
        """
        with logfire.span(
            "account_provisioner.provision",
            provider=assertion.provider,
            provider_id=assertion.provider_id,
        ):
            email = self.derive_email(assertion)
            if await self.account_repository.exists_by_email(email):
                # Never resolved automatically: linking here would hand the
                # existing account to whoever controls the provider account
                logfire.warn(
                    "Provisioning aborted - email already exists",
                    provider=assertion.provider,
                    provider_id=assertion.provider_id,
                )
                return Rejected(
                    error=LinkErrorKind.EMAIL_CONFLICT,
                    message=EMAIL_CONFLICT_MESSAGE,
                    decision=LinkDecision.PROVISION_AND_LOGIN,
                )

            username = self.derive_username(assertion)
            if await self.account_repository.exists_by_username(username):
                base_username = username
                username = f"{base_username}_{self.suffix_factory()}"
                logfire.info(
                    "Username taken - using suffixed username",
                    base_username=base_username,
                    username=username,
                )

            # bcrypt runs in a worker thread, not on the event loop
            credential_hash = await asyncio.to_thread(
                self.credential_service.create_unusable_credential
            )
            account = Account(
                id=AccountId(uuid4()),
                email=email,
                username=username,
                display_name=assertion.display_name or DEFAULT_DISPLAY_NAME,
                credential_hash=credential_hash,
                second_factor_enabled=False,
            )
            created = await self.account_repository.create(account)

            logfire.info(
                "Account provisioned",
                account_id=str(created.id),
                username=created.username,
                provider=assertion.provider,
            )
            return created
