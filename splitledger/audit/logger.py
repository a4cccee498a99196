"""
Audit Logger

DESIGN DECISION: Every ledger command is logged.
This provides:
1. Complete traceability of how the current totals came about
2. Debugging capability when a share looks wrong
3. A history the shell can show back to the user

The audit logger:
- Is synchronous, like the rest of the ledger
- Gracefully handles storage failures (never crashes a command)
- Supports correlation IDs to tie cascaded changes together
"""

import logging
from decimal import Decimal
from typing import Optional
from uuid import UUID, uuid4

import structlog

from splitledger.config import LoggingSettings
from splitledger.models.audit import AuditEvent, AuditEventBuilder
from splitledger.storage import AuditStorageInterface, StorageError


def configure_logging(settings: Optional[LoggingSettings] = None) -> None:
    """
    Configure structlog on top of the standard library logger.

    Call once at startup. Safe to call again to change the level.
    """
    settings = settings or LoggingSettings()

    renderer = (
        structlog.processors.JSONRenderer()
        if settings.json_output
        else structlog.dev.ConsoleRenderer()
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    logging.basicConfig(format="%(message)s", level=settings.level)
    logging.getLogger("splitledger").setLevel(settings.level)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. Audit storage (for the in-session history)
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("splitledger.audit")

    @property
    def storage(self) -> Optional[AuditStorageInterface]:
        return self._storage

    def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity.value in ("error", "critical"):
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        elif event.severity.value == "debug":
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage is not None:
            try:
                return self._storage.append_event(event)
            except StorageError as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    def log_participant_added(
        self,
        participant_id: UUID,
        name: str,
        default_receipts: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.participant_added(
            participant_id=participant_id,
            name=name,
            default_receipts=default_receipts,
            correlation_id=correlation_id,
        ))

    def log_participant_removed(
        self,
        participant_id: UUID,
        name: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.participant_removed(
            participant_id=participant_id,
            name=name,
            correlation_id=correlation_id,
        ))

    def log_receipt_added(
        self,
        receipt_id: UUID,
        label: str,
        amount: Decimal,
        is_exclusion: bool,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.receipt_added(
            receipt_id=receipt_id,
            label=label,
            amount=amount,
            is_exclusion=is_exclusion,
            correlation_id=correlation_id,
        ))

    def log_receipt_removed(
        self,
        receipt_id: UUID,
        label: str,
        cascaded: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.receipt_removed(
            receipt_id=receipt_id,
            label=label,
            cascaded=cascaded,
            correlation_id=correlation_id,
        ))

    def log_assignment_toggled(
        self,
        participant_id: UUID,
        receipt_id: UUID,
        assigned: bool,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.assignment_toggled(
            participant_id=participant_id,
            receipt_id=receipt_id,
            assigned=assigned,
            correlation_id=correlation_id,
        ))

    def log_receipt_auto_assigned(
        self,
        receipt_id: UUID,
        participant_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.receipt_auto_assigned(
            receipt_id=receipt_id,
            participant_count=participant_count,
            correlation_id=correlation_id,
        ))

    def log_exclusion_added(
        self,
        parent_id: UUID,
        exclusion_id: UUID,
        label: str,
        amount: Decimal,
        replaced_id: Optional[UUID] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a new exclusion, or a replacement of the parent's previous one."""
        self.log(AuditEventBuilder.exclusion_added(
            parent_id=parent_id,
            exclusion_id=exclusion_id,
            label=label,
            amount=amount,
            replaced_id=replaced_id,
            correlation_id=correlation_id,
        ))

    def log_exclusion_removed(
        self,
        parent_id: UUID,
        exclusion_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.exclusion_removed(
            parent_id=parent_id,
            exclusion_id=exclusion_id,
            correlation_id=correlation_id,
        ))

    def log_validation_failed(
        self,
        subject: str,
        issues: list[dict],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.validation_failed(
            subject=subject,
            issues=issues,
            correlation_id=correlation_id,
        ))

    def log_export_generated(
        self,
        export_format: str,
        participant_count: int,
        grand_total: Decimal,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.export_generated(
            export_format=export_format,
            participant_count=participant_count,
            grand_total=grand_total,
            correlation_id=correlation_id,
        ))

    def log_export_written(
        self,
        path: str,
        size: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.export_written(
            path=path,
            size=size,
            correlation_id=correlation_id,
        ))

    def log_not_found(
        self,
        entity_type: str,
        entity_id: UUID,
        action: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a lookup miss. Misses are benign, so this is a warning."""
        self.log(AuditEventBuilder.entity_not_found(
            entity_type=entity_type,
            entity_id=entity_id,
            action=action,
            correlation_id=correlation_id,
        ))

    def log_inconsistent_state(
        self,
        entity_id: UUID,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.inconsistent_state(
            entity_id=entity_id,
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a command whose effects cascade
    (e.g., removing a receipt together with its exclusions).
    """
    return uuid4()
