"""
Core Data Models for SplitLedger

These models define the records owned by the ledger and the shapes
returned by its queries.

DESIGN DECISION: Money is always Decimal with at most two decimal places.
Shares are allocated in whole cents, so every total in a report can be
reproduced exactly from the rows above it.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID, uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    model_validator,
)


# =============================================================================
# ENTITY MODELS - owned by the Entity Store
# =============================================================================

class Participant(BaseModel):
    """
    A person sharing in one or more receipts.

    The name may be empty. Rejecting empty names is the caller's job;
    the validator only reports it as a warning.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique participant ID"
    )
    name: str = Field(
        default="",
        description="Display name"
    )


class Receipt(BaseModel):
    """
    A recorded expense.

    Ordinary receipts are split between their assigned participants.
    Exclusion records (is_exclusion=True) are sub-amounts carved out of a
    parent receipt. They live in the same collection so they can be listed
    and removed like any receipt, but they are never split themselves.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique receipt ID"
    )
    label: str = Field(
        default="",
        description="Receipt label, used as the breakdown key in reports"
    )
    total: Decimal = Field(
        ...,
        ge=0,
        decimal_places=2,
        description="Receipt total"
    )
    is_exclusion: bool = Field(
        default=False,
        description="Is this an exclusion record rather than a shareable expense?"
    )
    parent_id: Optional[UUID] = Field(
        default=None,
        description="Receipt this exclusion was carved out of"
    )
    created_at: datetime = Field(
        default_factory=datetime.utcnow
    )

    @model_validator(mode='after')
    def validate_parent(self) -> 'Receipt':
        """Only exclusion records may point at a parent."""
        if self.parent_id is not None and not self.is_exclusion:
            raise ValueError("Only exclusion records can have a parent receipt")
        if self.parent_id is not None and self.parent_id == self.id:
            raise ValueError("A receipt cannot exclude from itself")
        return self


# =============================================================================
# QUERY MODELS - derived on demand, never stored
# =============================================================================

class ParticipantSummary(BaseModel):
    """A participant together with their current total share."""

    id: UUID
    name: str
    total: Decimal = Field(
        ...,
        ge=0,
        description="Sum of this participant's breakdown"
    )


class ExclusionLine(BaseModel):
    """One exclusion record listed under its parent receipt."""

    id: UUID
    label: str
    amount: Decimal
    active: bool = Field(
        ...,
        description="Does this record currently reduce the parent's total?"
    )


class ReceiptSummary(BaseModel):
    """
    A receipt as shown in listings.

    For ordinary receipts `shareable_total` is the total minus the active
    exclusion, floored at zero. Exclusion records report their own total.
    """

    id: UUID
    label: str
    total: Decimal
    shareable_total: Decimal
    is_exclusion: bool
    parent_id: Optional[UUID] = None
    participant_count: int = Field(
        default=0,
        ge=0,
        description="Number of participants sharing this receipt"
    )
    exclusions: list[ExclusionLine] = Field(default_factory=list)


class ParticipantShare(BaseModel):
    """
    One participant's row in a share report.

    `shares` maps receipt label to the amount owed for it, in receipt
    order. Receipts sharing a label are accumulated into one entry.
    """

    participant_id: UUID
    name: str
    total: Decimal
    shares: dict[str, Decimal] = Field(default_factory=dict)


class ShareReport(BaseModel):
    """
    Result of one full share computation.

    `grand_total` only counts receipts that have at least one participant.
    Anything else is reported in `unallocated_total` so it is never
    silently lost.
    """

    generated_at: datetime = Field(
        default_factory=datetime.utcnow
    )
    rows: list[ParticipantShare] = Field(default_factory=list)
    grand_total: Decimal = Decimal("0")
    unallocated_total: Decimal = Decimal("0")
    unassigned_receipt_ids: list[UUID] = Field(default_factory=list)

    @property
    def participant_count(self) -> int:
        return len(self.rows)

    @property
    def has_unallocated(self) -> bool:
        """Is there any receipt value no participant is paying for?"""
        return self.unallocated_total > 0


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_value', 'clamped')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
    suggested_fix: Optional[str] = Field(
        default=None,
        description="Suggested fix if available"
    )


class ValidationResult(BaseModel):
    """Result of validating one command's input."""

    subject: str = Field(
        ...,
        description="What was validated (e.g., 'receipt', 'exclusion')"
    )
    validated_at: datetime = Field(
        default_factory=datetime.utcnow
    )
    issues: list[ValidationIssue] = Field(
        default_factory=list,
        description="All validation issues found"
    )

    @property
    def is_valid(self) -> bool:
        """Valid unless there is an error-level issue. Warnings don't block."""
        return not self.has_errors

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")

    @property
    def warnings(self) -> list[str]:
        """Messages of all warning-level issues."""
        return [issue.message for issue in self.issues if issue.severity == "warning"]
