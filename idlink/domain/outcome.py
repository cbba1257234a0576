"""Typed outcomes of identity linking and login decisions.

Conflicts and storage faults are returned as values rather than raised, so
every caller has to deal with each case explicitly.
"""

from datetime import datetime
from enum import Enum
from typing import Literal, Optional

from idlink.domain.model.account import Account
from idlink.domain.model.external_identity import ExternalIdentity
from idlink.domain.value.common import ValueObject
from idlink.domain.value.identifiers import AccountId


class LinkDecision(str, Enum):
    """Classification of an assertion against the identity store."""

    LINKED_TO_REQUESTER = "linked_to_requester"
    LINKED_TO_OTHER = "linked_to_other"
    RESOLVED_LOGIN = "resolved_login"
    DUPLICATE_PROVIDER_FOR_USER = "duplicate_provider_for_user"
    CREATE_NEW = "create_new"
    PROVISION_AND_LOGIN = "provision_and_login"


class LinkErrorKind(str, Enum):
    """Closed set of failure kinds."""

    ASSERTION_INVALID = "assertion_invalid"
    ALREADY_LINKED = "already_linked"
    IDENTITY_TAKEN = "identity_taken"
    PROVIDER_ALREADY_LINKED = "provider_already_linked"
    EMAIL_CONFLICT = "email_conflict"
    NOT_FOUND = "not_found"
    STORAGE_FAILURE = "storage_failure"


class UnlinkResult(str, Enum):
    """Result of an unlink request."""

    REMOVED = "removed"
    NOT_FOUND = "not_found"


class Resolved(ValueObject):
    """Assertion resolved to an account (login or newly linked identity)."""

    kind: Literal["resolved"] = "resolved"
    decision: LinkDecision
    account: Account
    identity: ExternalIdentity


class Rejected(ValueObject):
    """Assertion rejected with a conflict or failure."""

    kind: Literal["rejected"] = "rejected"
    error: LinkErrorKind
    message: str
    decision: Optional[LinkDecision] = None


Outcome = Resolved | Rejected


class DirectSession(ValueObject):
    """A full session was established."""

    kind: Literal["session"] = "session"
    account_id: AccountId
    session_token: str
    is_new_account: bool = False


class CheckpointIssued(ValueObject):
    """Login deferred to the second-factor checkpoint."""

    kind: Literal["checkpoint"] = "checkpoint"
    account_id: AccountId
    token: str
    expires_at: datetime


class LoginError(ValueObject):
    """User-facing login failure."""

    kind: Literal["login_error"] = "login_error"
    error: LinkErrorKind
    message: str


SessionOutcome = DirectSession | CheckpointIssued


class IdentityLinked(ValueObject):
    """An identity was linked to the requesting account."""

    kind: Literal["linked"] = "linked"
    identity: ExternalIdentity
