"""Unit tests for AccountProvisioner."""

import threading

import pytest

from idlink.domain.outcome import LinkDecision, LinkErrorKind, Rejected
from idlink.domain.service import AccountProvisioner, CredentialService
from idlink.persistence.repository.inmemory import InMemoryAccountRepository
from tests.factories import make_account, make_assertion


def build_provisioner(
    account_repo: InMemoryAccountRepository, suffix: str = "x7k2"
) -> AccountProvisioner:
    return AccountProvisioner(
        account_repository=account_repo,
        credential_service=CredentialService(hash_rounds=4),
        suffix_factory=lambda: suffix,
    )


class TestProvision:
    """Tests for AccountProvisioner.provision()."""

    @pytest.mark.asyncio
    async def test_derives_synthetic_email_and_username(self):
        """Should fall back to <id>@<provider>.local and <provider>_<id>."""
        # Arrange
        account_repo = InMemoryAccountRepository()
        provisioner = build_provisioner(account_repo)

        # Act
        account = await provisioner.provision(make_assertion("discord", "42"))

        # Assert
        assert not isinstance(account, Rejected)
        assert account.email == "42@discord.local"
        assert account.username == "discord_42"
        assert account.display_name == "User"
        assert account.second_factor_enabled is False
        assert await account_repo.find_by_id(account.id) == account

    @pytest.mark.asyncio
    async def test_uses_provider_profile_when_present(self):
        """Should prefer provider email, nickname and display name."""
        # Arrange
        account_repo = InMemoryAccountRepository()
        provisioner = build_provisioner(account_repo)
        assertion = make_assertion(
            email="neo@example.com", nickname="neo", display_name="Thomas"
        )

        # Act
        account = await provisioner.provision(assertion)

        # Assert
        assert not isinstance(account, Rejected)
        assert account.email == "neo@example.com"
        assert account.username == "neo"
        assert account.display_name == "Thomas"

    @pytest.mark.asyncio
    async def test_suffixes_username_on_collision(self):
        """Existing discord_555 should push the new account to a suffixed name."""
        # Arrange
        account_repo = InMemoryAccountRepository()
        await account_repo.create(make_account(username="discord_555"))
        provisioner = build_provisioner(account_repo, suffix="ab3d")

        # Act
        account = await provisioner.provision(make_assertion("discord", "555"))

        # Assert
        assert not isinstance(account, Rejected)
        assert account.username == "discord_555_ab3d"
        assert account.email == "555@discord.local"

    @pytest.mark.asyncio
    async def test_username_collision_ignores_case(self):
        # Arrange
        account_repo = InMemoryAccountRepository()
        await account_repo.create(make_account(username="Neo"))
        provisioner = build_provisioner(account_repo, suffix="ab3d")

        # Act
        account = await provisioner.provision(make_assertion(nickname="neo"))

        # Assert
        assert not isinstance(account, Rejected)
        assert account.username == "neo_ab3d"

    @pytest.mark.asyncio
    async def test_rejects_existing_email(self):
        """Should never attach to an account that already owns the email."""
        # Arrange
        account_repo = InMemoryAccountRepository()
        existing = make_account(username="bob", email="bob@example.com")
        await account_repo.create(existing)
        provisioner = build_provisioner(account_repo)

        # Act
        result = await provisioner.provision(make_assertion(email="bob@example.com"))

        # Assert
        assert isinstance(result, Rejected)
        assert result.error == LinkErrorKind.EMAIL_CONFLICT
        assert result.decision == LinkDecision.PROVISION_AND_LOGIN
        assert result.message == "An account with this email already exists."
        assert not await account_repo.exists_by_username("discord_42")

    @pytest.mark.asyncio
    async def test_credential_is_unusable_bcrypt_hash(self):
        """Provisioned accounts get a bcrypt hash of a secret nobody knows."""
        # Arrange
        account_repo = InMemoryAccountRepository()
        provisioner = build_provisioner(account_repo)

        # Act
        account = await provisioner.provision(make_assertion())

        # Assert
        assert not isinstance(account, Rejected)
        assert account.credential_hash.startswith("$2")
        assert not CredentialService(4).verify_secret("", account.credential_hash)

    @pytest.mark.asyncio
    async def test_hashes_credential_off_the_event_loop_thread(self):
        """bcrypt must not block the loop other requests run on."""
        # Arrange
        hashing_threads = []

        class RecordingCredentialService(CredentialService):
            def create_unusable_credential(self) -> str:
                hashing_threads.append(threading.get_ident())
                return super().create_unusable_credential()

        account_repo = InMemoryAccountRepository()
        provisioner = AccountProvisioner(
            account_repository=account_repo,
            credential_service=RecordingCredentialService(hash_rounds=4),
        )

        # Act
        await provisioner.provision(make_assertion())

        # Assert
        assert len(hashing_threads) == 1
        assert hashing_threads[0] != threading.get_ident()


class TestDerivation:
    """Tests for the static derivation helpers."""

    def test_empty_email_counts_as_missing(self):
        assertion = make_assertion("telegram", "99", email="")

        assert AccountProvisioner.derive_email(assertion) == "99@telegram.local"

    def test_email_is_lowercased(self):
        assertion = make_assertion(email="Neo@Example.COM")

        assert AccountProvisioner.derive_email(assertion) == "neo@example.com"

    def test_username_from_nickname(self):
        assertion = make_assertion(nickname="trinity")

        assert AccountProvisioner.derive_username(assertion) == "trinity"
