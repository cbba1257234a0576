"""Unit tests for LinkDecisionEngine."""

import asyncio
from typing import Optional

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from idlink.domain.model.external_identity import ExternalIdentity
from idlink.domain.outcome import (
    LinkDecision,
    LinkErrorKind,
    Rejected,
    Resolved,
    UnlinkResult,
)
from idlink.domain.service import (
    AccountProvisioner,
    CredentialService,
    LinkDecisionEngine,
)
from idlink.domain.value import AccountId
from idlink.persistence.repository.inmemory import (
    InMemoryAccountRepository,
    InMemoryDatabase,
    InMemoryExternalIdentityRepository,
    InMemoryUnitOfWork,
)
from tests.factories import make_account, make_assertion, make_identity


def build_engine(
    database: InMemoryDatabase,
    identity_repo: InMemoryExternalIdentityRepository | None = None,
) -> LinkDecisionEngine:
    account_repo = InMemoryAccountRepository(database)
    return LinkDecisionEngine(
        identity_repository=identity_repo or InMemoryExternalIdentityRepository(database),
        account_repository=account_repo,
        account_provisioner=AccountProvisioner(
            account_repository=account_repo,
            credential_service=CredentialService(hash_rounds=4),
        ),
        unit_of_work=InMemoryUnitOfWork(database),
    )


async def seed(database: InMemoryDatabase, *accounts, identities=()):
    account_repo = InMemoryAccountRepository(database)
    identity_repo = InMemoryExternalIdentityRepository(database)
    for account in accounts:
        await account_repo.create(account)
    for identity in identities:
        await identity_repo.create(identity)


class FailingIdentityRepository(InMemoryExternalIdentityRepository):
    """Fails every identity insert with the given error."""

    def __init__(self, database: InMemoryDatabase, error: Exception) -> None:
        super().__init__(database)
        self.error = error

    async def create(self, identity: ExternalIdentity) -> ExternalIdentity:
        raise self.error


class GatedIdentityRepository(InMemoryExternalIdentityRepository):
    """Holds the first lookup until every racer has done its own."""

    def __init__(self, database: InMemoryDatabase, barrier: asyncio.Barrier) -> None:
        super().__init__(database)
        self.barrier = barrier
        self.gated = True

    async def find_by_provider(
        self, provider: str, provider_id: str
    ) -> Optional[ExternalIdentity]:
        found = await super().find_by_provider(provider, provider_id)
        if self.gated:
            self.gated = False
            await self.barrier.wait()
        return found


class TestEvaluateLogin:
    """Login callbacks (no requesting account)."""

    @pytest.mark.asyncio
    async def test_existing_identity_logs_in_owner(self):
        # Arrange
        database = InMemoryDatabase()
        owner = make_account("owner")
        await seed(database, owner, identities=[make_identity(owner, "discord", "42")])
        engine = build_engine(database)

        # Act
        outcome = await engine.evaluate(make_assertion("discord", "42"))

        # Assert
        assert isinstance(outcome, Resolved)
        assert outcome.decision == LinkDecision.RESOLVED_LOGIN
        assert outcome.account.id == owner.id
        assert len(database.accounts) == 1

    @pytest.mark.asyncio
    async def test_unknown_identity_provisions_account_and_links(self):
        # Arrange
        database = InMemoryDatabase()
        engine = build_engine(database)

        # Act
        outcome = await engine.evaluate(make_assertion("discord", "42"))

        # Assert
        assert isinstance(outcome, Resolved)
        assert outcome.decision == LinkDecision.PROVISION_AND_LOGIN
        assert outcome.account.email == "42@discord.local"
        assert outcome.account.username == "discord_42"
        assert database.identities[("discord", "42")].account_id == outcome.account.id

    @pytest.mark.asyncio
    async def test_email_conflict_is_rejected_without_writes(self):
        # Arrange
        database = InMemoryDatabase()
        await seed(database, make_account("bob", email="bob@example.com"))
        engine = build_engine(database)

        # Act
        outcome = await engine.evaluate(make_assertion(email="bob@example.com"))

        # Assert
        assert isinstance(outcome, Rejected)
        assert outcome.error == LinkErrorKind.EMAIL_CONFLICT
        assert len(database.accounts) == 1
        assert database.identities == {}

    @pytest.mark.asyncio
    async def test_email_conflict_ignores_case(self):
        """A case variant of a taken email is the same mailbox."""
        # Arrange
        database = InMemoryDatabase()
        await seed(database, make_account("alice", email="alice@example.com"))
        engine = build_engine(database)

        # Act
        outcome = await engine.evaluate(
            make_assertion("discord", "77", email="Alice@Example.com")
        )

        # Assert
        assert isinstance(outcome, Rejected)
        assert outcome.error == LinkErrorKind.EMAIL_CONFLICT
        assert len(database.accounts) == 1
        assert database.identities == {}

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "provider,provider_id",
        [
            ("", "42"),
            ("discord", ""),
            ("discord", "   "),
            ("discord", "4 2"),
            ("discord", "neo@example.com"),
            ("dis cord", "42"),
        ],
    )
    async def test_incomplete_assertion_is_invalid(self, provider, provider_id):
        # Arrange
        database = InMemoryDatabase()
        engine = build_engine(database)

        # Act
        outcome = await engine.evaluate(make_assertion(provider, provider_id))

        # Assert
        assert isinstance(outcome, Rejected)
        assert outcome.error == LinkErrorKind.ASSERTION_INVALID
        assert database.accounts == {}


class TestEvaluateLink:
    """Explicit link requests from an authenticated account."""

    @pytest.mark.asyncio
    async def test_links_unknown_identity_to_requester(self):
        # Arrange
        database = InMemoryDatabase()
        alice = make_account("alice")
        await seed(database, alice)
        engine = build_engine(database)

        # Act
        outcome = await engine.evaluate(make_assertion("discord", "7"), alice.id)

        # Assert
        assert isinstance(outcome, Resolved)
        assert outcome.decision == LinkDecision.CREATE_NEW
        assert outcome.identity.account_id == alice.id
        assert len(database.accounts) == 1

    @pytest.mark.asyncio
    async def test_relinking_same_identity_is_idempotently_rejected(self):
        """Second and third attempts both say ALREADY_LINKED, nothing is written."""
        # Arrange
        database = InMemoryDatabase()
        alice = make_account("alice")
        await seed(database, alice)
        engine = build_engine(database)
        await engine.evaluate(make_assertion("discord", "7"), alice.id)

        # Act
        first = await engine.evaluate(make_assertion("discord", "7"), alice.id)
        second = await engine.evaluate(make_assertion("discord", "7"), alice.id)

        # Assert
        for outcome in (first, second):
            assert isinstance(outcome, Rejected)
            assert outcome.error == LinkErrorKind.ALREADY_LINKED
            assert outcome.decision == LinkDecision.LINKED_TO_REQUESTER
            assert outcome.message == "This account is already linked."
        assert len(database.identities) == 1

    @pytest.mark.asyncio
    async def test_identity_owned_by_other_account_is_taken(self):
        # Arrange
        database = InMemoryDatabase()
        alice = make_account("alice")
        bob = make_account("bob")
        await seed(database, alice, bob, identities=[make_identity(bob, "discord", "7")])
        engine = build_engine(database)

        # Act
        outcome = await engine.evaluate(make_assertion("discord", "7"), alice.id)

        # Assert
        assert isinstance(outcome, Rejected)
        assert outcome.error == LinkErrorKind.IDENTITY_TAKEN
        assert outcome.message == "This account is already linked to another user."
        assert await engine.list_identities(alice.id) == []
        bob_identities = await engine.list_identities(bob.id)
        assert [(i.provider, i.provider_id) for i in bob_identities] == [("discord", "7")]

    @pytest.mark.asyncio
    async def test_second_identity_for_same_provider_is_rejected(self):
        # Arrange
        database = InMemoryDatabase()
        alice = make_account("alice")
        await seed(database, alice, identities=[make_identity(alice, "discord", "1")])
        engine = build_engine(database)

        # Act
        outcome = await engine.evaluate(make_assertion("discord", "2"), alice.id)

        # Assert
        assert isinstance(outcome, Rejected)
        assert outcome.error == LinkErrorKind.PROVIDER_ALREADY_LINKED
        assert outcome.decision == LinkDecision.DUPLICATE_PROVIDER_FOR_USER
        assert outcome.message == "You already have a Discord account linked."
        assert ("discord", "2") not in database.identities

    @pytest.mark.asyncio
    async def test_unknown_requester_is_storage_failure(self):
        # Arrange
        database = InMemoryDatabase()
        engine = build_engine(database)

        # Act
        outcome = await engine.evaluate(
            make_assertion("discord", "7"), make_account("ghost").id
        )

        # Assert
        assert isinstance(outcome, Rejected)
        assert outcome.error == LinkErrorKind.STORAGE_FAILURE
        assert database.identities == {}

    @pytest.mark.asyncio
    async def test_uniqueness_holds_across_attempt_sequence(self):
        """No sequence of link attempts breaks either uniqueness rule."""
        # Arrange
        database = InMemoryDatabase()
        accounts = [make_account(name) for name in ("a", "b", "c")]
        await seed(database, *accounts)
        engine = build_engine(database)
        attempts = [
            (accounts[0], "discord", "1"),
            (accounts[1], "discord", "1"),
            (accounts[0], "discord", "2"),
            (accounts[1], "discord", "2"),
            (accounts[2], "telegram", "1"),
            (accounts[0], "telegram", "1"),
            (accounts[0], "telegram", "9"),
            (accounts[2], "telegram", "9"),
        ]

        # Act
        for account, provider, provider_id in attempts:
            await engine.evaluate(make_assertion(provider, provider_id), account.id)

        # Assert
        identities = list(database.identities.values())
        provider_keys = [(i.provider, i.provider_id) for i in identities]
        account_keys = [(i.account_id, i.provider) for i in identities]
        assert len(provider_keys) == len(set(provider_keys))
        assert len(account_keys) == len(set(account_keys))
        assert len(identities) == 4


class TestAtomicity:
    """Failures leave no partial writes behind."""

    @pytest.mark.asyncio
    async def test_identity_insert_fault_rolls_back_provisioned_account(self):
        # Arrange
        database = InMemoryDatabase()
        engine = build_engine(
            database, FailingIdentityRepository(database, RuntimeError("disk gone"))
        )

        # Act
        with pytest.raises(RuntimeError):
            await engine.evaluate(make_assertion("discord", "42"))

        # Assert
        assert database.accounts == {}
        assert database.identities == {}

    @pytest.mark.asyncio
    async def test_storage_error_is_reported_and_rolled_back(self):
        # Arrange
        database = InMemoryDatabase()
        error = OperationalError("INSERT INTO external_identities", None, Exception())
        engine = build_engine(database, FailingIdentityRepository(database, error))

        # Act
        outcome = await engine.evaluate(make_assertion("discord", "42"))

        # Assert
        assert isinstance(outcome, Rejected)
        assert outcome.error == LinkErrorKind.STORAGE_FAILURE
        assert outcome.message == "Something went wrong. Please try again."
        assert database.accounts == {}

    @pytest.mark.asyncio
    async def test_unexplained_constraint_violation_rolls_back(self):
        # Arrange
        database = InMemoryDatabase()
        error = IntegrityError("INSERT INTO external_identities", None, Exception())
        engine = build_engine(database, FailingIdentityRepository(database, error))

        # Act
        outcome = await engine.evaluate(make_assertion("discord", "42"))

        # Assert
        assert isinstance(outcome, Rejected)
        assert outcome.error == LinkErrorKind.STORAGE_FAILURE
        assert database.accounts == {}


class TestRaces:
    """Concurrent requests for the same identity."""

    @pytest.mark.asyncio
    async def test_concurrent_provisioning_creates_one_account(self):
        # Arrange
        database = InMemoryDatabase()
        barrier = asyncio.Barrier(2)
        engines = [
            build_engine(database, GatedIdentityRepository(database, barrier))
            for _ in range(2)
        ]
        assertion = make_assertion("discord", "9001")

        # Act
        outcomes = await asyncio.gather(*(e.evaluate(assertion) for e in engines))

        # Assert
        resolved = [o for o in outcomes if isinstance(o, Resolved)]
        rejected = [o for o in outcomes if isinstance(o, Rejected)]
        assert len(resolved) == 1
        assert resolved[0].decision == LinkDecision.PROVISION_AND_LOGIN
        assert len(rejected) == 1
        assert rejected[0].error == LinkErrorKind.IDENTITY_TAKEN
        assert len(database.accounts) == 1
        assert len(database.identities) == 1

    @pytest.mark.asyncio
    async def test_concurrent_links_of_one_identity(self):
        # Arrange
        database = InMemoryDatabase()
        alice = make_account("alice")
        bob = make_account("bob")
        await seed(database, alice, bob)
        barrier = asyncio.Barrier(2)
        engines = [
            build_engine(database, GatedIdentityRepository(database, barrier))
            for _ in range(2)
        ]
        assertion = make_assertion("discord", "7")

        # Act
        outcomes = await asyncio.gather(
            engines[0].evaluate(assertion, alice.id),
            engines[1].evaluate(assertion, bob.id),
        )

        # Assert
        kinds = sorted(
            o.decision.value if isinstance(o, Resolved) else o.error.value
            for o in outcomes
        )
        assert kinds == [LinkDecision.CREATE_NEW.value, LinkErrorKind.IDENTITY_TAKEN.value]
        assert len(database.identities) == 1


class TestUnlink:
    """Tests for LinkDecisionEngine.unlink()."""

    @pytest.mark.asyncio
    async def test_unlink_removes_only_that_provider(self):
        # Arrange
        database = InMemoryDatabase()
        alice = make_account("alice")
        await seed(
            database,
            alice,
            identities=[
                make_identity(alice, "discord", "1"),
                make_identity(alice, "telegram", "2"),
            ],
        )
        engine = build_engine(database)

        # Act
        result = await engine.unlink("discord", alice.id)

        # Assert
        assert result == UnlinkResult.REMOVED
        remaining = await engine.list_identities(alice.id)
        assert [i.provider for i in remaining] == ["telegram"]

    @pytest.mark.asyncio
    async def test_unlink_unknown_provider_is_not_found(self):
        # Arrange
        database = InMemoryDatabase()
        alice = make_account("alice")
        await seed(database, alice)
        engine = build_engine(database)

        # Act
        result = await engine.unlink("discord", AccountId(alice.id))

        # Assert
        assert result == UnlinkResult.NOT_FOUND

    @pytest.mark.asyncio
    async def test_unlink_never_touches_other_accounts(self):
        # Arrange
        database = InMemoryDatabase()
        alice = make_account("alice")
        bob = make_account("bob")
        await seed(database, alice, bob, identities=[make_identity(bob, "discord", "1")])
        engine = build_engine(database)

        # Act
        result = await engine.unlink("discord", alice.id)

        # Assert
        assert result == UnlinkResult.NOT_FOUND
        assert ("discord", "1") in database.identities
