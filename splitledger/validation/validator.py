"""
Command Input Validation

DESIGN DECISION: The ledger core accepts what it is given, but every
command that carries user input goes through this validator first.

RECEIPTS:
- Amount must parse as a finite decimal with at most two decimal places
- Ordinary receipts must be greater than zero
- An empty label is allowed but reported

EXCLUSIONS:
- Amount must parse and must not be negative
- An amount above the parent's total is allowed; the parent's
  shareable total is clamped at zero, and we say so
- Adding a second exclusion to the same parent replaces the first

PARTICIPANTS:
- An empty name is allowed but reported

IMPORTANT: Validation NEVER silently fixes issues.
It reports them and lets the caller decide.
"""

from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from splitledger.config import LedgerSettings
from splitledger.models.ledger import Receipt, ValidationIssue, ValidationResult


CENT = Decimal("0.01")


def parse_amount(value: Any) -> Optional[Decimal]:
    """
    Convert user input to a Decimal amount.

    Floats go through str() so 0.1 stays 0.1. Returns None for anything
    that is not a finite number.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        amount = value
    else:
        try:
            amount = Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            return None
    if not amount.is_finite():
        return None
    return amount


class EntryValidator:
    """Validates participant, receipt and exclusion input."""

    def __init__(self, settings: Optional[LedgerSettings] = None):
        self._settings = settings or LedgerSettings()

    def _check_amount_format(
        self,
        amount: Optional[Decimal],
        issues: list[ValidationIssue],
    ) -> bool:
        if amount is None:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_format",
                message="Amount is not a valid number",
                severity="error",
                suggested_fix="Enter the amount as a number, e.g. 12.50",
            ))
            return False
        try:
            quantized = amount.quantize(CENT)
        except InvalidOperation:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_format",
                message=f"Amount ({amount}) is too large",
                severity="error",
                suggested_fix="Check if the amount was entered correctly",
            ))
            return False
        if amount != quantized:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_format",
                message=f"Amount ({amount}) has more than two decimal places",
                severity="error",
                suggested_fix="Round the amount to whole cents",
            ))
            return False
        return True

    def validate_participant(self, name: str) -> ValidationResult:
        issues = []
        if not name or not name.strip():
            issues.append(ValidationIssue(
                field="name",
                issue_type="missing",
                message="Participant name is empty",
                severity="warning",
                suggested_fix="Give the participant a name so reports are readable",
            ))
        return ValidationResult(subject="participant", issues=issues)

    def validate_receipt(self, label: str, amount: Optional[Decimal]) -> ValidationResult:
        """
        Validate a new ordinary receipt.

        A zero amount is an error when `reject_invalid_amounts` is on,
        otherwise a warning. Negative amounts are always errors.
        """
        issues = []

        if self._check_amount_format(amount, issues):
            if amount < 0:
                issues.append(ValidationIssue(
                    field="amount",
                    issue_type="invalid_value",
                    message="Receipt amount cannot be negative",
                    severity="error",
                    suggested_fix="Record refunds as an exclusion on the receipt instead",
                ))
            elif amount == 0:
                issues.append(ValidationIssue(
                    field="amount",
                    issue_type="invalid_value",
                    message="Receipt amount must be greater than zero",
                    severity="error" if self._settings.reject_invalid_amounts else "warning",
                    suggested_fix="Check if the amount was entered correctly",
                ))

        if not label or not label.strip():
            issues.append(ValidationIssue(
                field="label",
                issue_type="missing",
                message="Receipt label is empty",
                severity="warning",
                suggested_fix="Labels are how receipts appear in the report",
            ))

        return ValidationResult(subject="receipt", issues=issues)

    def validate_exclusion(
        self,
        parent: Receipt,
        label: str,
        amount: Optional[Decimal],
        current: Optional[Receipt] = None,
    ) -> ValidationResult:
        """
        Validate an exclusion carved out of `parent`.

        Args:
            parent: The receipt the amount is carved out of
            label: Exclusion label
            amount: Exclusion amount
            current: The parent's currently active exclusion, if any
        """
        issues = []

        if self._check_amount_format(amount, issues):
            if amount < 0:
                issues.append(ValidationIssue(
                    field="amount",
                    issue_type="invalid_value",
                    message="Exclusion amount cannot be negative",
                    severity="error",
                ))
            elif amount > parent.total:
                issues.append(ValidationIssue(
                    field="amount",
                    issue_type="clamped",
                    message=(
                        f"Exclusion ({amount}) is larger than {parent.label or 'the receipt'} "
                        f"({parent.total}); nothing will be left to share"
                    ),
                    severity="warning",
                    suggested_fix="Please verify the amounts",
                ))

        if current is not None:
            issues.append(ValidationIssue(
                field="parent",
                issue_type="replaces_exclusion",
                message=(
                    f"{parent.label or 'This receipt'} already has an exclusion "
                    f"({current.label}); only the new one will apply"
                ),
                severity="warning",
            ))

        return ValidationResult(subject="exclusion", issues=issues)

    def get_user_friendly_summary(self, result: ValidationResult) -> str:
        """
        Generate a user-friendly summary of validation results.

        This is what the shell shows next to the input form.
        """
        if result.is_valid and not result.warnings:
            return "All checks passed."

        lines = []

        if result.has_errors:
            lines.append(f"The {result.subject} could not be added:")
            for issue in result.issues:
                if issue.severity == "error":
                    lines.append(f"   • {issue.message}")
                    if issue.suggested_fix:
                        lines.append(f"     {issue.suggested_fix}")

        if result.warnings:
            if lines:
                lines.append("")
            lines.append("Please verify the following:")
            for warning in result.warnings:
                lines.append(f"   • {warning}")

        return "\n".join(lines)
