"""Audit event publishers."""

import logfire

from idlink.domain.event import AuditEvent, EventPublisher


class LogfireEventPublisher(EventPublisher):
    """Writes audit events to the structured log."""

    async def publish(self, event: AuditEvent) -> None:
        logfire.info(
            "Audit event {event_name}",
            event_name=event.name,
            account_id=str(event.account_id),
            occurred_at=event.occurred_at.isoformat(),
            **event.properties,
        )


class MockEventPublisher(EventPublisher):
    """Keeps published events in memory for tests."""

    def __init__(self) -> None:
        self.events: list[AuditEvent] = []

    async def publish(self, event: AuditEvent) -> None:
        self.events.append(event)

    def names(self) -> list[str]:
        """Names of the published events, in order."""
        return [event.name for event in self.events]
