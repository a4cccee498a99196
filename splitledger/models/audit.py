"""
Audit Models for SplitLedger

Every command issued against the ledger is logged for audit purposes.
This provides:
1. Traceability of who was added, removed and assigned
2. Debugging information when a total looks wrong
3. Ability to reconstruct how the current state came about

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field, field_validator


DESCRIPTION_LIMIT = 500


class AuditEventType(str, Enum):
    """
    Types of events we audit.

    Every ledger command has its own event type.
    """
    # Participants
    PARTICIPANT_ADDED = "participant_added"
    PARTICIPANT_REMOVED = "participant_removed"

    # Receipts
    RECEIPT_ADDED = "receipt_added"
    RECEIPT_REMOVED = "receipt_removed"

    # Assignments
    ASSIGNMENT_TOGGLED = "assignment_toggled"
    RECEIPT_AUTO_ASSIGNED = "receipt_auto_assigned"

    # Exclusions
    EXCLUSION_ADDED = "exclusion_added"
    EXCLUSION_REPLACED = "exclusion_replaced"
    EXCLUSION_REMOVED = "exclusion_removed"

    # Validation
    VALIDATION_FAILED = "validation_failed"

    # Reporting
    EXPORT_GENERATED = "export_generated"
    EXPORT_WRITTEN = "export_written"

    # Lookups and consistency
    ENTITY_NOT_FOUND = "entity_not_found"
    INCONSISTENT_STATE = "inconsistent_state"

    # System events
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    Every ledger command creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'participant', 'receipt', 'export')"
    )
    entity_id: Optional[UUID] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., a receipt and its cascade)"
    )

    # Event details
    description: str = Field(
        ...,
        max_length=DESCRIPTION_LIMIT,
        description="Human-readable description of what happened"
    )

    # Additional data (event-specific)
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    # Error information (if applicable)
    error_code: Optional[str] = None
    error_message: Optional[str] = None

    @field_validator('description', mode='before')
    @classmethod
    def truncate_description(cls, v: Any) -> Any:
        """Descriptions embed user labels, which have no length limit."""
        if isinstance(v, str) and len(v) > DESCRIPTION_LIMIT:
            return v[:DESCRIPTION_LIMIT - 3] + "..."
        return v

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": str(self.entity_id) if self.entity_id else None,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_code": self.error_code,
            "error_message": self.error_message,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.participant_added(participant_id, name)
        event = AuditEventBuilder.receipt_removed(receipt_id, label, correlation_id)
    """

    @staticmethod
    def participant_added(
        participant_id: UUID,
        name: str,
        default_receipts: int,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PARTICIPANT_ADDED,
            entity_type="participant",
            entity_id=participant_id,
            correlation_id=correlation_id,
            description=f"Participant added: {name}",
            details={
                "name": name,
                "default_receipts": default_receipts,
            },
        )

    @staticmethod
    def participant_removed(
        participant_id: UUID,
        name: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PARTICIPANT_REMOVED,
            entity_type="participant",
            entity_id=participant_id,
            correlation_id=correlation_id,
            description=f"Participant removed: {name}",
            details={"name": name},
        )

    @staticmethod
    def receipt_added(
        receipt_id: UUID,
        label: str,
        amount: Decimal,
        is_exclusion: bool,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        kind = "Exclusion record" if is_exclusion else "Receipt"
        return AuditEvent(
            event_type=AuditEventType.RECEIPT_ADDED,
            entity_type="receipt",
            entity_id=receipt_id,
            correlation_id=correlation_id,
            description=f"{kind} added: {label} - {amount}",
            details={
                "label": label,
                "amount": str(amount),
                "is_exclusion": is_exclusion,
            },
        )

    @staticmethod
    def receipt_removed(
        receipt_id: UUID,
        label: str,
        cascaded: int,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECEIPT_REMOVED,
            entity_type="receipt",
            entity_id=receipt_id,
            correlation_id=correlation_id,
            description=f"Receipt removed: {label}",
            details={
                "label": label,
                "assignments_removed": cascaded,
            },
        )

    @staticmethod
    def assignment_toggled(
        participant_id: UUID,
        receipt_id: UUID,
        assigned: bool,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ASSIGNMENT_TOGGLED,
            entity_type="participant",
            entity_id=participant_id,
            correlation_id=correlation_id,
            description="Participant {} receipt".format("joined" if assigned else "left"),
            details={
                "receipt_id": str(receipt_id),
                "assigned": assigned,
            },
        )

    @staticmethod
    def receipt_auto_assigned(
        receipt_id: UUID,
        participant_count: int,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECEIPT_AUTO_ASSIGNED,
            entity_type="receipt",
            entity_id=receipt_id,
            correlation_id=correlation_id,
            description=f"Receipt assigned to all {participant_count} participants",
            details={"participant_count": participant_count},
        )

    @staticmethod
    def exclusion_added(
        parent_id: UUID,
        exclusion_id: UUID,
        label: str,
        amount: Decimal,
        replaced_id: Optional[UUID] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        if replaced_id is None:
            return AuditEvent(
                event_type=AuditEventType.EXCLUSION_ADDED,
                entity_type="receipt",
                entity_id=parent_id,
                correlation_id=correlation_id,
                description=f"Exclusion added: {label} - {amount}",
                details={
                    "exclusion_id": str(exclusion_id),
                    "label": label,
                    "amount": str(amount),
                },
            )
        return AuditEvent(
            event_type=AuditEventType.EXCLUSION_REPLACED,
            severity=AuditSeverity.WARNING,
            entity_type="receipt",
            entity_id=parent_id,
            correlation_id=correlation_id,
            description=f"Exclusion replaced by {label} - {amount}; earlier record no longer applies",
            details={
                "exclusion_id": str(exclusion_id),
                "replaced_id": str(replaced_id),
                "label": label,
                "amount": str(amount),
            },
        )

    @staticmethod
    def exclusion_removed(
        parent_id: UUID,
        exclusion_id: UUID,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXCLUSION_REMOVED,
            entity_type="receipt",
            entity_id=parent_id,
            correlation_id=correlation_id,
            description="Exclusion removed; parent total restored",
            details={"exclusion_id": str(exclusion_id)},
        )

    @staticmethod
    def validation_failed(
        subject: str,
        issues: list[dict],
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type=subject,
            correlation_id=correlation_id,
            description=f"{subject.capitalize()} validation failed with {len(issues)} issues",
            details={
                "subject": subject,
                "issues": issues,
            },
        )

    @staticmethod
    def export_generated(
        export_format: str,
        participant_count: int,
        grand_total: Decimal,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPORT_GENERATED,
            entity_type="export",
            correlation_id=correlation_id,
            description=f"{export_format.upper()} export generated for {participant_count} participants",
            details={
                "format": export_format,
                "participant_count": participant_count,
                "grand_total": str(grand_total),
            },
        )

    @staticmethod
    def export_written(
        path: str,
        size: int,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPORT_WRITTEN,
            entity_type="export",
            correlation_id=correlation_id,
            description=f"Export written: {path}",
            details={
                "path": path,
                "size_bytes": size,
            },
        )

    @staticmethod
    def entity_not_found(
        entity_type: str,
        entity_id: UUID,
        action: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ENTITY_NOT_FOUND,
            severity=AuditSeverity.WARNING,
            entity_type=entity_type,
            entity_id=entity_id,
            correlation_id=correlation_id,
            description=f"{action}: {entity_type} not found",
            details={"action": action},
        )

    @staticmethod
    def inconsistent_state(
        entity_id: UUID,
        error_message: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INCONSISTENT_STATE,
            severity=AuditSeverity.ERROR,
            entity_type="receipt",
            entity_id=entity_id,
            correlation_id=correlation_id,
            description="Exclusion ledger and receipt store disagree",
            error_message=error_message,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )
