"""Identity linking use cases.

Entry points for the login callback and for the account-settings screens
that link, unlink and list external identities. Decisions are made by the
LinkDecisionEngine; this layer only checks the provider registry, bounds each
call by the configured timeout and publishes the link/unlink audit events.
"""

import asyncio
from collections.abc import Awaitable
from datetime import datetime
from typing import TypeVar

import logfire
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError

from idlink.domain.event import (
    IDENTITY_LINKED,
    IDENTITY_UNLINKED,
    AuditEvent,
    EventPublisher,
)
from idlink.domain.outcome import (
    CheckpointIssued,
    DirectSession,
    IdentityLinked,
    LinkDecision,
    LinkErrorKind,
    LoginError,
    Rejected,
    UnlinkResult,
)
from idlink.domain.repository import UnitOfWork
from idlink.domain.service import (
    LinkDecisionEngine,
    ProviderRegistry,
    SessionEstablisher,
)
from idlink.domain.service.link_decision import STORAGE_FAILURE_MESSAGE
from idlink.domain.value import AccountId, ProviderAssertion

LOGIN_FAILED_MESSAGE = "Authentication failed or was canceled."
INVALID_ASSERTION_MESSAGE = "Invalid authentication data."
PROVIDER_NOT_LINKED_MESSAGE = "Provider not linked."

T = TypeVar("T")


class LinkedIdentity(BaseModel):
    """External identity as shown on the account screen."""

    provider: str
    provider_id: str
    linked_at: datetime


class IdentityLinkingService:
    """Orchestrates login callbacks and link/unlink requests."""

    def __init__(
        self,
        link_decision_engine: LinkDecisionEngine,
        session_establisher: SessionEstablisher,
        provider_registry: ProviderRegistry,
        event_publisher: EventPublisher,
        unit_of_work: UnitOfWork,
        request_timeout: float | None = 10.0,
    ) -> None:
        """Initialize identity linking service.

        Args:
            link_decision_engine: Decides and applies identity writes
            session_establisher: Issues sessions or checkpoint tokens
            provider_registry: Enabled providers
            event_publisher: Audit event sink
            unit_of_work: Transaction boundary for a whole request
            request_timeout: Seconds before a request is cancelled and rolled
                back; None disables the bound
        """
        self.link_decision_engine = link_decision_engine
        self.session_establisher = session_establisher
        self.provider_registry = provider_registry
        self.event_publisher = event_publisher
        self.unit_of_work = unit_of_work
        self.request_timeout = request_timeout

    async def handle_login_callback(
        self, assertion: ProviderAssertion
    ) -> DirectSession | CheckpointIssued | LoginError:
        """Log in with a verified provider assertion.

        Unknown identities get a freshly provisioned account.

        Args:
            assertion: Verified provider assertion

        Returns:
            DirectSession, CheckpointIssued, or LoginError for the login surface
        """
        with logfire.span("identity_linking.login_callback", provider=assertion.provider):
            if not self.provider_registry.is_enabled(assertion.provider):
                logfire.warn("Login with disabled provider", provider=assertion.provider)
                return LoginError(
                    error=LinkErrorKind.ASSERTION_INVALID, message=LOGIN_FAILED_MESSAGE
                )

            try:
                return await self._bounded(self._login(assertion))
            except (asyncio.TimeoutError, SQLAlchemyError) as e:
                self._log_failure("login_callback", e, provider=assertion.provider)
                return LoginError(
                    error=LinkErrorKind.STORAGE_FAILURE, message=STORAGE_FAILURE_MESSAGE
                )

    async def _login(
        self, assertion: ProviderAssertion
    ) -> DirectSession | CheckpointIssued | LoginError:
        async with self.unit_of_work.transaction():
            outcome = await self.link_decision_engine.evaluate(assertion)
            if isinstance(outcome, Rejected):
                message = (
                    LOGIN_FAILED_MESSAGE
                    if outcome.error == LinkErrorKind.ASSERTION_INVALID
                    else outcome.message
                )
                return LoginError(error=outcome.error, message=message)

            return await self.session_establisher.establish(
                outcome.account,
                is_new_account=outcome.decision == LinkDecision.PROVISION_AND_LOGIN,
            )

    async def handle_link_request(
        self, assertion: ProviderAssertion, requesting_account_id: AccountId
    ) -> IdentityLinked | Rejected:
        """Link a provider identity to the requesting account.

        Args:
            assertion: Verified provider assertion
            requesting_account_id: Authenticated account asking for the link

        Returns:
            IdentityLinked, or Rejected with the conflict kind
        """
        with logfire.span(
            "identity_linking.link",
            provider=assertion.provider,
            account_id=str(requesting_account_id),
        ):
            if not self.provider_registry.is_enabled(assertion.provider):
                logfire.warn("Link with disabled provider", provider=assertion.provider)
                return Rejected(
                    error=LinkErrorKind.ASSERTION_INVALID,
                    message=INVALID_ASSERTION_MESSAGE,
                )

            try:
                return await self._bounded(self._link(assertion, requesting_account_id))
            except (asyncio.TimeoutError, SQLAlchemyError) as e:
                self._log_failure("link", e, provider=assertion.provider)
                return Rejected(
                    error=LinkErrorKind.STORAGE_FAILURE, message=STORAGE_FAILURE_MESSAGE
                )

    async def _link(
        self, assertion: ProviderAssertion, requesting_account_id: AccountId
    ) -> IdentityLinked | Rejected:
        async with self.unit_of_work.transaction():
            outcome = await self.link_decision_engine.evaluate(
                assertion, requesting_account_id
            )
            if isinstance(outcome, Rejected):
                if outcome.error == LinkErrorKind.ASSERTION_INVALID:
                    return Rejected(
                        error=outcome.error, message=INVALID_ASSERTION_MESSAGE
                    )
                return outcome

            await self.event_publisher.publish(
                AuditEvent(
                    name=IDENTITY_LINKED,
                    account_id=requesting_account_id,
                    properties={"provider": assertion.provider},
                )
            )
            return IdentityLinked(identity=outcome.identity)

    async def handle_unlink_request(
        self, provider: str, requesting_account_id: AccountId
    ) -> UnlinkResult | Rejected:
        """Remove the requesting account's identity for a provider.

        Works for disabled providers too, so stale links can be cleaned up.

        Args:
            provider: Provider key
            requesting_account_id: Authenticated account

        Returns:
            REMOVED, NOT_FOUND, or Rejected on storage failure
        """
        with logfire.span(
            "identity_linking.unlink",
            provider=provider,
            account_id=str(requesting_account_id),
        ):
            try:
                return await self._bounded(self._unlink(provider, requesting_account_id))
            except (asyncio.TimeoutError, SQLAlchemyError) as e:
                self._log_failure("unlink", e, provider=provider)
                return Rejected(
                    error=LinkErrorKind.STORAGE_FAILURE, message=STORAGE_FAILURE_MESSAGE
                )

    async def _unlink(
        self, provider: str, requesting_account_id: AccountId
    ) -> UnlinkResult:
        async with self.unit_of_work.transaction():
            result = await self.link_decision_engine.unlink(
                provider, requesting_account_id
            )
            if result == UnlinkResult.REMOVED:
                await self.event_publisher.publish(
                    AuditEvent(
                        name=IDENTITY_UNLINKED,
                        account_id=requesting_account_id,
                        properties={"provider": provider},
                    )
                )
            return result

    async def list_linked_identities(
        self, account_id: AccountId
    ) -> list[LinkedIdentity] | Rejected:
        """Identities linked to an account, oldest first.

        Returns:
            The identities, or Rejected on storage failure
        """
        try:
            identities = await self._bounded(
                self.link_decision_engine.list_identities(account_id)
            )
        except (asyncio.TimeoutError, SQLAlchemyError) as e:
            self._log_failure("list", e, account_id=str(account_id))
            return Rejected(
                error=LinkErrorKind.STORAGE_FAILURE, message=STORAGE_FAILURE_MESSAGE
            )

        return [
            LinkedIdentity(
                provider=identity.provider,
                provider_id=identity.provider_id,
                linked_at=identity.linked_at,
            )
            for identity in identities
        ]

    async def complete_checkpoint(self, token_value: str) -> DirectSession | None:
        """Finish a login held at the second-factor checkpoint.

        Args:
            token_value: Checkpoint token from the login callback

        Returns:
            DirectSession, or None if the token is unknown, used or expired
        """
        with logfire.span("identity_linking.complete_checkpoint"):
            try:
                return await self._bounded(self._complete_checkpoint(token_value))
            except (asyncio.TimeoutError, SQLAlchemyError) as e:
                self._log_failure("complete_checkpoint", e)
                return None

    async def _complete_checkpoint(self, token_value: str) -> DirectSession | None:
        async with self.unit_of_work.transaction():
            return await self.session_establisher.complete_checkpoint(token_value)

    async def _bounded(self, operation: Awaitable[T]) -> T:
        if self.request_timeout is None:
            return await operation
        return await asyncio.wait_for(operation, timeout=self.request_timeout)

    @staticmethod
    def _log_failure(operation: str, error: Exception, **attributes: str) -> None:
        if isinstance(error, asyncio.TimeoutError):
            logfire.error(
                "Identity request timed out", operation=operation, **attributes
            )
        else:
            logfire.error(
                "Identity request failed",
                operation=operation,
                error=str(error),
                error_type=type(error).__name__,
                **attributes,
            )
