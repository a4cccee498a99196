"""
Data Models Package

This package contains all Pydantic models used in SplitLedger.
Ledger records, query results and audit events all conform to these schemas.
"""

from splitledger.models.ledger import (
    ExclusionLine,
    Participant,
    ParticipantShare,
    ParticipantSummary,
    Receipt,
    ReceiptSummary,
    ShareReport,
    ValidationIssue,
    ValidationResult,
)
from splitledger.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Ledger models
    "ExclusionLine",
    "Participant",
    "ParticipantShare",
    "ParticipantSummary",
    "Receipt",
    "ReceiptSummary",
    "ShareReport",
    "ValidationIssue",
    "ValidationResult",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
