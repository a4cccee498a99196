"""
In-memory audit storage.

Keeps the audit trail for the lifetime of one ledger session.
Filtering is done in Python over the append-only list.
"""

from typing import Optional
from uuid import UUID

from splitledger.models.audit import AuditEvent
from splitledger.storage.interface import AuditStorageInterface, CapacityError


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only list of audit events."""

    def __init__(self, max_events: Optional[int] = None):
        """
        Args:
            max_events: Refuse new events beyond this many.
                        None means unbounded.
        """
        self._events: list[AuditEvent] = []
        self._max_events = max_events

    def __len__(self) -> int:
        return len(self._events)

    def append_event(self, event: AuditEvent) -> bool:
        if self._max_events is not None and len(self._events) >= self._max_events:
            raise CapacityError(
                f"Audit storage is full ({self._max_events} events)"
            )
        self._events.append(event)
        return True

    def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        return [e for e in self._events if e.correlation_id == correlation_id]

    def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: UUID,
    ) -> list[AuditEvent]:
        return [
            e for e in self._events
            if e.entity_type == entity_type and e.entity_id == entity_id
        ]

    def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        return list(reversed(self._events))[:limit]
