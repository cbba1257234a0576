"""Link decision domain service.

Classifies a verified provider assertion against the identity store and
carries out the resulting write, if any:

    identity exists, owned by requester     -> ALREADY_LINKED
    identity exists, owned by someone else  -> IDENTITY_TAKEN
    identity exists, no requester           -> login as owner
    requester already holds this provider   -> PROVIDER_ALREADY_LINKED
    requester present                       -> link to requester
    no requester                            -> provision account, then link

Checks and writes share one transaction. The unique constraints in storage
decide races: an insert that loses is rolled back and classified again
against what the winner wrote.
"""

from typing import Optional

import logfire
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from idlink.domain.error import InconsistentStateError
from idlink.domain.model.external_identity import ExternalIdentity
from idlink.domain.outcome import (
    LinkDecision,
    LinkErrorKind,
    Outcome,
    Rejected,
    Resolved,
    UnlinkResult,
)
from idlink.domain.repository import (
    AccountRepository,
    ExternalIdentityRepository,
    UnitOfWork,
)
from idlink.domain.value import AccountId, ProviderAssertion

from .account_provisioner import AccountProvisioner
from .base import Service

ALREADY_LINKED_MESSAGE = "This account is already linked."
IDENTITY_TAKEN_MESSAGE = "This account is already linked to another user."
STORAGE_FAILURE_MESSAGE = "Something went wrong. Please try again."


def provider_already_linked_message(provider: str) -> str:
    """Message for a requester that already holds an identity for ``provider``."""
    return f"You already have a {provider[:1].upper() + provider[1:]} account linked."


class LinkDecisionEngine(Service):
    """Decides between login, link, provisioning and rejection."""

    def __init__(
        self,
        identity_repository: ExternalIdentityRepository,
        account_repository: AccountRepository,
        account_provisioner: AccountProvisioner,
        unit_of_work: UnitOfWork,
    ) -> None:
        """Initialize link decision engine.

        Args:
            identity_repository: External identity repository
            account_repository: Account repository
            account_provisioner: Provisions accounts for unknown identities
            unit_of_work: Transaction boundary shared by both repositories
        """
        self.identity_repository = identity_repository
        self.account_repository = account_repository
        self.account_provisioner = account_provisioner
        self.unit_of_work = unit_of_work

    async def evaluate(
        self,
        assertion: ProviderAssertion,
        requesting_account_id: Optional[AccountId] = None,
    ) -> Outcome:
        """Classify an assertion and apply the resulting write.

        Args:
            assertion: Verified provider assertion
            requesting_account_id: Account asking to link; None for a login callback

        Returns:
            Resolved (login or new link) or Rejected (conflict or failure)
        """
        problem = assertion.problem()
        if problem:
            logfire.warn("Assertion rejected", reason=problem)
            return Rejected(
                error=LinkErrorKind.ASSERTION_INVALID,
                message=f"Invalid identity assertion: {problem}.",
            )

        with logfire.span(
            "link_decision.evaluate",
            provider=assertion.provider,
            provider_id=assertion.provider_id,
            requesting_account_id=str(requesting_account_id)
            if requesting_account_id
            else None,
        ):
            try:
                async with self.unit_of_work.transaction():
                    outcome = await self._decide(assertion, requesting_account_id)
            except IntegrityError as e:
                logfire.warn(
                    "Identity write lost to a unique constraint",
                    provider=assertion.provider,
                    provider_id=assertion.provider_id,
                    error=str(e.orig) if e.orig else str(e),
                )
                return await self._classify_conflict(assertion, requesting_account_id)
            except (SQLAlchemyError, InconsistentStateError) as e:
                logfire.error(
                    "Identity decision failed",
                    provider=assertion.provider,
                    provider_id=assertion.provider_id,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                return self._storage_failure()

            if (
                isinstance(outcome, Rejected)
                and outcome.error == LinkErrorKind.EMAIL_CONFLICT
            ):
                # A concurrent login may have provisioned this very identity
                # between our lookup and the email check
                return await self._classify_conflict(
                    assertion, requesting_account_id, fallback=outcome
                )

            if isinstance(outcome, Resolved):
                logfire.info(
                    "Assertion resolved",
                    decision=outcome.decision.value,
                    account_id=str(outcome.account.id),
                    provider=assertion.provider,
                )
            else:
                logfire.info(
                    "Assertion rejected",
                    decision=outcome.decision.value if outcome.decision else None,
                    error=outcome.error.value,
                    provider=assertion.provider,
                )
            return outcome

    async def _decide(
        self, assertion: ProviderAssertion, requesting_account_id: Optional[AccountId]
    ) -> Outcome:
        """Run the decision table inside the caller's transaction."""
        existing = await self.identity_repository.find_by_provider(
            assertion.provider, assertion.provider_id
        )

        if existing:
            if requesting_account_id is not None:
                return self._reject_existing(existing, requesting_account_id)

            account = await self.account_repository.find_by_id(existing.account_id)
            if account is None:
                raise InconsistentStateError(
                    f"Identity {assertion.provider}:{assertion.provider_id} "
                    f"references missing account {existing.account_id}"
                )
            return Resolved(
                decision=LinkDecision.RESOLVED_LOGIN,
                account=account,
                identity=existing,
            )

        if requesting_account_id is not None:
            return await self._link_to_requester(assertion, requesting_account_id)

        return await self._provision_and_link(assertion)

    def _reject_existing(
        self, existing: ExternalIdentity, requesting_account_id: AccountId
    ) -> Rejected:
        if existing.account_id == requesting_account_id:
            return Rejected(
                error=LinkErrorKind.ALREADY_LINKED,
                message=ALREADY_LINKED_MESSAGE,
                decision=LinkDecision.LINKED_TO_REQUESTER,
            )
        return Rejected(
            error=LinkErrorKind.IDENTITY_TAKEN,
            message=IDENTITY_TAKEN_MESSAGE,
            decision=LinkDecision.LINKED_TO_OTHER,
        )

    async def _link_to_requester(
        self, assertion: ProviderAssertion, requesting_account_id: AccountId
    ) -> Outcome:
        held = await self.identity_repository.find_by_account_and_provider(
            requesting_account_id, assertion.provider
        )
        if held:
            return Rejected(
                error=LinkErrorKind.PROVIDER_ALREADY_LINKED,
                message=provider_already_linked_message(assertion.provider),
                decision=LinkDecision.DUPLICATE_PROVIDER_FOR_USER,
            )

        account = await self.account_repository.find_by_id(requesting_account_id)
        if account is None:
            raise InconsistentStateError(
                f"Requesting account {requesting_account_id} does not exist"
            )

        identity = await self.identity_repository.create(
            ExternalIdentity(
                provider=assertion.provider,
                provider_id=assertion.provider_id,
                account_id=requesting_account_id,
            )
        )
        return Resolved(
            decision=LinkDecision.CREATE_NEW, account=account, identity=identity
        )

    async def _provision_and_link(self, assertion: ProviderAssertion) -> Outcome:
        provisioned = await self.account_provisioner.provision(assertion)
        if isinstance(provisioned, Rejected):
            return provisioned

        identity = await self.identity_repository.create(
            ExternalIdentity(
                provider=assertion.provider,
                provider_id=assertion.provider_id,
                account_id=provisioned.id,
            )
        )
        return Resolved(
            decision=LinkDecision.PROVISION_AND_LOGIN,
            account=provisioned,
            identity=identity,
        )

    async def _classify_conflict(
        self,
        assertion: ProviderAssertion,
        requesting_account_id: Optional[AccountId],
        fallback: Optional[Rejected] = None,
    ) -> Rejected:
        """Classify a lost write against the current state of the store.

        Args:
            assertion: The assertion whose write lost
            requesting_account_id: Requester, if any
            fallback: Outcome to keep when the store shows no competing identity

        Returns:
            The conflict the caller observes
        """
        try:
            owner = await self.identity_repository.find_by_provider(
                assertion.provider, assertion.provider_id
            )
            if owner:
                if requesting_account_id is not None:
                    return self._reject_existing(owner, requesting_account_id)
                return Rejected(
                    error=LinkErrorKind.IDENTITY_TAKEN,
                    message=IDENTITY_TAKEN_MESSAGE,
                    decision=LinkDecision.LINKED_TO_OTHER,
                )

            if requesting_account_id is not None:
                held = await self.identity_repository.find_by_account_and_provider(
                    requesting_account_id, assertion.provider
                )
                if held:
                    return Rejected(
                        error=LinkErrorKind.PROVIDER_ALREADY_LINKED,
                        message=provider_already_linked_message(assertion.provider),
                        decision=LinkDecision.DUPLICATE_PROVIDER_FOR_USER,
                    )
        except SQLAlchemyError as e:
            logfire.error(
                "Conflict classification failed",
                provider=assertion.provider,
                error=str(e),
                error_type=type(e).__name__,
            )
            return self._storage_failure()

        if fallback is not None:
            return fallback

        logfire.error(
            "Unclassified constraint violation",
            provider=assertion.provider,
            provider_id=assertion.provider_id,
        )
        return self._storage_failure()

    @staticmethod
    def _storage_failure() -> Rejected:
        return Rejected(
            error=LinkErrorKind.STORAGE_FAILURE, message=STORAGE_FAILURE_MESSAGE
        )

    async def unlink(self, provider: str, account_id: AccountId) -> UnlinkResult:
        """Remove the identity an account holds for a provider.

        Args:
            provider: Provider key
            account_id: Owning account

        Returns:
            REMOVED if a row was deleted, NOT_FOUND otherwise
        """
        with logfire.span(
            "link_decision.unlink", provider=provider, account_id=str(account_id)
        ):
            async with self.unit_of_work.transaction():
                deleted = await self.identity_repository.delete_by_account_and_provider(
                    account_id, provider
                )

            if not deleted:
                logfire.info(
                    "Unlink found nothing", provider=provider, account_id=str(account_id)
                )
                return UnlinkResult.NOT_FOUND

            logfire.info(
                "Identity unlinked", provider=provider, account_id=str(account_id)
            )
            return UnlinkResult.REMOVED

    async def list_identities(self, account_id: AccountId) -> list[ExternalIdentity]:
        """Get identities linked to an account, oldest first."""
        with logfire.span("link_decision.list_identities", account_id=str(account_id)):
            identities = await self.identity_repository.find_all_by_account_id(
                account_id
            )
            logfire.info(
                "Identities retrieved for account",
                account_id=str(account_id),
                count=len(identities),
            )
            return identities
