"""Audit events emitted by the identity-linking flow.

Storage and formatting of events belong to the audit subsystem; the domain
only publishes them through the EventPublisher port.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any

from pydantic import Field

from idlink.domain.value.common import ValueObject
from idlink.domain.value.identifiers import AccountId

LOGIN_SUCCEEDED = "auth:login-succeeded"
CHECKPOINT_REQUIRED = "auth:checkpoint-required"
IDENTITY_LINKED = "user:account.oauth-linked"
IDENTITY_UNLINKED = "user:account.oauth-unlinked"


class AuditEvent(ValueObject):
    """Something that happened to an account."""

    name: str
    account_id: AccountId
    properties: dict[str, Any] = Field(default_factory=dict)
    occurred_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class EventPublisher(ABC):
    """Port for the audit subsystem."""

    @abstractmethod
    async def publish(self, event: AuditEvent) -> None:
        """Publish an audit event.

        Args:
            event: Event to publish
        """
        pass
