"""Session establishment domain service."""

import secrets
from abc import ABC, abstractmethod
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

import logfire

from idlink.domain.event import (
    CHECKPOINT_REQUIRED,
    LOGIN_SUCCEEDED,
    AuditEvent,
    EventPublisher,
)
from idlink.domain.model.account import Account
from idlink.domain.model.checkpoint import CheckpointToken
from idlink.domain.outcome import CheckpointIssued, DirectSession, SessionOutcome
from idlink.domain.repository import AccountRepository, CheckpointRepository

from .base import Service


class SessionIssuer:
    """Session issuing interface.

    Issuing always starts a brand-new session identity, replacing whatever
    anonymous or pending state the client carried.
    """

    async def issue(self, account: Account) -> str:
        """Start a fresh session for an account.

        Args:
            account: Authenticated account

        Returns:
            Opaque session token for the client
        """
        raise NotImplementedError


class LoginThrottle(ABC):
    """Failed-login throttling counters, owned by the password-login path."""

    @abstractmethod
    async def clear(self, principal: str) -> None:
        """Reset failed-attempt counters for a principal.

        Args:
            principal: Username or email the counters are keyed by
        """
        pass


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def generate_checkpoint_token() -> str:
    """64 URL-safe characters (384 bits of randomness)."""
    return secrets.token_urlsafe(48)


class SessionEstablisher(Service):
    """Turns a resolved account into a session or a second-factor checkpoint."""

    def __init__(
        self,
        account_repository: AccountRepository,
        checkpoint_repository: CheckpointRepository,
        session_issuer: SessionIssuer,
        login_throttle: LoginThrottle,
        event_publisher: EventPublisher,
        require_second_factor_for_external_login: bool = True,
        checkpoint_ttl: timedelta = timedelta(minutes=5),
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        """Initialize session establisher.

        Args:
            account_repository: Account repository
            checkpoint_repository: Checkpoint token repository
            session_issuer: Issues session tokens
            login_throttle: Failed-login counters to reset on success
            event_publisher: Audit event sink
            require_second_factor_for_external_login: Whether external logins
                still go through the checkpoint for accounts with a second factor
            checkpoint_ttl: Lifetime of checkpoint tokens
            clock: Current time source
        """
        self.account_repository = account_repository
        self.checkpoint_repository = checkpoint_repository
        self.session_issuer = session_issuer
        self.login_throttle = login_throttle
        self.event_publisher = event_publisher
        self.require_second_factor_for_external_login = (
            require_second_factor_for_external_login
        )
        self.checkpoint_ttl = checkpoint_ttl
        self.clock = clock

    def requires_checkpoint(self, account: Account, external_login: bool = True) -> bool:
        """Decide whether a login must pass the second-factor checkpoint.

        Args:
            account: Account logging in
            external_login: Whether the login came from an external provider

        Returns:
            True if a checkpoint token must be issued instead of a session
        """
        if not account.second_factor_enabled:
            return False
        if external_login and not self.require_second_factor_for_external_login:
            return False
        return True

    async def establish(
        self,
        account: Account,
        is_new_account: bool = False,
        external_login: bool = True,
    ) -> SessionOutcome:
        """Establish a session or issue a checkpoint token.

        Args:
            account: Resolved account
            is_new_account: Whether the account was provisioned by this login
            external_login: Whether the login came from an external provider

        Returns:
            DirectSession or CheckpointIssued
        """
        with logfire.span(
            "session_establisher.establish",
            account_id=str(account.id),
            second_factor_enabled=account.second_factor_enabled,
        ):
            if self.requires_checkpoint(account, external_login):
                return await self._issue_checkpoint(account)

            return await self._start_session(account, is_new_account)

    async def complete_checkpoint(self, token_value: str) -> DirectSession | None:
        """Consume a checkpoint token and establish the session.

        Called once the second-factor verification step has succeeded.

        Args:
            token_value: Checkpoint token handed out by ``establish``

        Returns:
            DirectSession, or None if the token is unknown, used or expired
        """
        with logfire.span("session_establisher.complete_checkpoint"):
            token = await self.checkpoint_repository.consume(token_value, self.clock())
            if token is None:
                logfire.warn("Checkpoint token missing or expired")
                return None

            account = await self.account_repository.find_by_id(token.account_id)
            if account is None:
                logfire.warn(
                    "Checkpoint token for missing account",
                    account_id=str(token.account_id),
                )
                return None

            return await self._start_session(account, is_new_account=False)

    async def _issue_checkpoint(self, account: Account) -> CheckpointIssued:
        token = CheckpointToken(
            token_value=generate_checkpoint_token(),
            account_id=account.id,
            expires_at=self.clock() + self.checkpoint_ttl,
        )
        await self.checkpoint_repository.save(token)

        await self.event_publisher.publish(
            AuditEvent(name=CHECKPOINT_REQUIRED, account_id=account.id)
        )
        logfire.info(
            "Second-factor checkpoint required",
            account_id=str(account.id),
            expires_at=token.expires_at.isoformat(),
        )
        return CheckpointIssued(
            account_id=account.id,
            token=token.token_value,
            expires_at=token.expires_at,
        )

    async def _start_session(
        self, account: Account, is_new_account: bool
    ) -> DirectSession:
        session_token = await self.session_issuer.issue(account)

        await self.login_throttle.clear(account.username)
        await self.login_throttle.clear(account.email)

        await self.event_publisher.publish(
            AuditEvent(
                name=LOGIN_SUCCEEDED,
                account_id=account.id,
                properties={"new_account": is_new_account},
            )
        )
        logfire.info(
            "Session established",
            account_id=str(account.id),
            new_account=is_new_account,
        )
        return DirectSession(
            account_id=account.id,
            session_token=session_token,
            is_new_account=is_new_account,
        )
