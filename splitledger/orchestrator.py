"""
Main Orchestrator for SplitLedger

This module ties together the ledger components and exposes the
command/query API the presentation shell talks to:

Commands: add/remove participant, add/remove receipt, toggle assignment,
          add exclusion
Queries:  participants with totals, receipts with shareable totals,
          share report, grand total
Exports:  CSV and fixed-width text

DESIGN DECISION: The orchestrator enforces the cross-component rules:
- A new participant shares every existing receipt by default
- Removing a receipt cascades to assignments and its exclusions
- Removing an exclusion record updates the exclusion ledger atomically
- Every command is audited

Lookup misses never raise. They return False/None and are logged.
"""

from decimal import Decimal
from typing import Any, Optional
from uuid import UUID

from splitledger.audit import AuditLogger, configure_logging, create_correlation_id
from splitledger.config import ExportSettings, LedgerSettings, Settings, get_settings
from splitledger.export import ExportWriter, ReportExporter
from splitledger.ledger import (
    AssignmentTable,
    EntityStore,
    ExclusionLedger,
    InconsistentStateError,
    ValidationError,
)
from splitledger.models.ledger import (
    ExclusionLine,
    ParticipantSummary,
    Receipt,
    ReceiptSummary,
    ShareReport,
    ValidationResult,
)
from splitledger.shares import Aggregator, ShareCalculator
from splitledger.storage import AuditStorageInterface, InMemoryAuditStorage
from splitledger.validation import EntryValidator, parse_amount


CENT = Decimal("0.01")


class SplitLedger:
    """
    Single-user, in-memory expense splitting ledger.

    All state lives in three components:
    1. EntityStore     - participants and receipts (owns the records)
    2. AssignmentTable - who shares which receipt (ids only)
    3. ExclusionLedger - the active exclusion per receipt (ids only)

    Shares are recomputed from these on every query.
    """

    def __init__(
        self,
        settings: Optional[LedgerSettings] = None,
        export_settings: Optional[ExportSettings] = None,
        audit_logger: Optional[AuditLogger] = None,
        validator: Optional[EntryValidator] = None,
        auto_assign: Optional[bool] = None,
    ):
        self._settings = settings or LedgerSettings()
        self._entities = EntityStore()
        self._assignments = AssignmentTable()
        self._exclusions = ExclusionLedger()
        self._calculator = ShareCalculator(
            self._entities,
            self._assignments,
            self._exclusions,
            allocation_unit=self._settings.allocation_unit,
        )
        self._aggregator = Aggregator(self._calculator)
        self._exporter = ReportExporter.from_settings(self._settings, export_settings)
        self._validator = validator or EntryValidator(self._settings)
        self._audit_logger = audit_logger

        # Mode flag: append each new receipt to every participant's set
        self.auto_assign = (
            self._settings.auto_assign_new_receipts if auto_assign is None else auto_assign
        )

    # =========================================================================
    # Component access
    # =========================================================================

    @property
    def entities(self) -> EntityStore:
        return self._entities

    @property
    def assignments(self) -> AssignmentTable:
        return self._assignments

    @property
    def exclusions(self) -> ExclusionLedger:
        return self._exclusions

    @property
    def calculator(self) -> ShareCalculator:
        return self._calculator

    @property
    def audit_logger(self) -> Optional[AuditLogger]:
        return self._audit_logger

    # =========================================================================
    # Commands
    # =========================================================================

    def _reject(self, result: ValidationResult, correlation_id: Optional[UUID] = None) -> None:
        """Log and raise for a result with errors."""
        if self._audit_logger:
            self._audit_logger.log_validation_failed(
                subject=result.subject,
                issues=[issue.model_dump() for issue in result.issues],
                correlation_id=correlation_id,
            )
        raise ValidationError(self._validator.get_user_friendly_summary(result), result)

    def _not_found(self, entity_type: str, entity_id: UUID, action: str) -> None:
        if self._audit_logger:
            self._audit_logger.log_not_found(
                entity_type=entity_type,
                entity_id=entity_id,
                action=action,
            )

    def add_participant(self, name: str) -> UUID:
        """
        Add a participant.

        The new participant shares every ordinary receipt that exists
        right now. Receipts added later are only shared if auto-assign is
        on or the participant is toggled onto them.
        """
        # Empty names are only ever a warning
        self._validator.validate_participant(name)

        participant_id = self._entities.add_participant(name)
        receipt_ids = [r.id for r in self._entities.ordinary_receipts()]
        self._assignments.set_default_assignment(participant_id, receipt_ids)

        if self._audit_logger:
            self._audit_logger.log_participant_added(
                participant_id=participant_id,
                name=self._entities.get_participant(participant_id).name,
                default_receipts=len(receipt_ids),
            )
        return participant_id

    def remove_participant(self, participant_id: UUID) -> bool:
        """
        Remove a participant and every one of their assignments.

        Returns False if the participant does not exist.
        """
        participant = self._entities.remove_participant(participant_id)
        if participant is None:
            self._not_found("participant", participant_id, "remove_participant")
            return False

        self._assignments.remove_participant(participant_id)

        if self._audit_logger:
            self._audit_logger.log_participant_removed(
                participant_id=participant_id,
                name=participant.name,
            )
        return True

    def add_receipt(self, label: str, amount: Any) -> UUID:
        """
        Add an ordinary (shareable) receipt.

        Raises:
            ValidationError: If the amount is malformed, negative, or zero
                             while `reject_invalid_amounts` is on
        """
        parsed = parse_amount(amount)
        result = self._validator.validate_receipt(label, parsed)
        if result.has_errors:
            self._reject(result)

        receipt_id = self._entities.add_receipt(label, parsed.quantize(CENT))
        receipt = self._entities.get_receipt(receipt_id)

        if self._audit_logger:
            self._audit_logger.log_receipt_added(
                receipt_id=receipt_id,
                label=receipt.label,
                amount=receipt.total,
                is_exclusion=False,
            )

        if self.auto_assign:
            participant_ids = self._entities.participant_ids()
            for participant_id in participant_ids:
                self._assignments.assign(participant_id, receipt_id)
            if self._audit_logger:
                self._audit_logger.log_receipt_auto_assigned(
                    receipt_id=receipt_id,
                    participant_count=len(participant_ids),
                )

        return receipt_id

    def toggle_assignment(self, participant_id: UUID, receipt_id: UUID) -> Optional[bool]:
        """
        Flip whether a participant shares a receipt.

        Returns the new state, or None if either side does not exist or
        the receipt is an exclusion record (those are never shared).
        """
        if self._entities.get_participant(participant_id) is None:
            self._not_found("participant", participant_id, "toggle_assignment")
            return None

        receipt = self._entities.get_receipt(receipt_id)
        if receipt is None or receipt.is_exclusion:
            self._not_found("receipt", receipt_id, "toggle_assignment")
            return None

        assigned = self._assignments.toggle(participant_id, receipt_id)

        if self._audit_logger:
            self._audit_logger.log_assignment_toggled(
                participant_id=participant_id,
                receipt_id=receipt_id,
                assigned=assigned,
            )
        return assigned

    def add_exclusion(self, parent_id: UUID, label: str, amount: Any) -> Optional[UUID]:
        """
        Carve an amount out of a receipt before it is split.

        The exclusion is stored as its own receipt record (so it can be
        listed and removed) and recorded in the exclusion ledger. If the
        parent already has an exclusion, the new one replaces it in the
        ledger; the old record stays listed but stops applying.

        Returns the exclusion record's id, or None if the parent does not
        exist or is itself an exclusion record.

        Raises:
            ValidationError: If the amount is malformed or negative
        """
        parent = self._entities.get_receipt(parent_id)
        if parent is None or parent.is_exclusion:
            self._not_found("receipt", parent_id, "add_exclusion")
            return None

        parsed = parse_amount(amount)
        current = self._exclusions.exclusion_for(parent_id)
        result = self._validator.validate_exclusion(parent, label, parsed, current=current)
        if result.has_errors:
            self._reject(result)

        correlation_id = create_correlation_id()
        exclusion_id = self._entities.add_receipt(
            label, parsed.quantize(CENT), is_exclusion=True, parent_id=parent_id
        )
        exclusion = self._entities.get_receipt(exclusion_id)
        replaced = self._exclusions.exclude(parent_id, exclusion)

        if self._audit_logger:
            self._audit_logger.log_receipt_added(
                receipt_id=exclusion_id,
                label=exclusion.label,
                amount=exclusion.total,
                is_exclusion=True,
                correlation_id=correlation_id,
            )
            self._audit_logger.log_exclusion_added(
                parent_id=parent_id,
                exclusion_id=exclusion_id,
                label=exclusion.label,
                amount=exclusion.total,
                replaced_id=replaced.id if replaced else None,
                correlation_id=correlation_id,
            )
        return exclusion_id

    def remove_receipt(self, receipt_id: UUID) -> bool:
        """
        Remove a receipt of either kind.

        Ordinary receipt: its assignments, its exclusion records and its
        exclusion ledger entry go with it.
        Exclusion record: its ledger entry (if active) goes with it, so the
        parent's shareable total reverts.

        Returns False if the receipt does not exist.

        Raises:
            InconsistentStateError: If the exclusion ledger and the receipt
                                    store disagree. Nothing is changed.
        """
        correlation_id = create_correlation_id()
        receipt = self._entities.get_receipt(receipt_id)

        if receipt is None:
            if self._exclusions.parent_of(receipt_id) is not None:
                self._inconsistent(
                    receipt_id,
                    f"Exclusion ledger references missing receipt {receipt_id}",
                    correlation_id,
                )
            self._not_found("receipt", receipt_id, "remove_receipt")
            return False

        if receipt.is_exclusion:
            self._remove_exclusion_record(receipt, correlation_id)
        else:
            self._remove_ordinary_receipt(receipt, correlation_id)
        return True

    def _inconsistent(self, receipt_id: UUID, message: str, correlation_id: UUID) -> None:
        if self._audit_logger:
            self._audit_logger.log_inconsistent_state(
                entity_id=receipt_id,
                error_message=message,
                correlation_id=correlation_id,
            )
        raise InconsistentStateError(message)

    def _remove_exclusion_record(self, receipt: Receipt, correlation_id: UUID) -> None:
        active_parent = self._exclusions.parent_of(receipt.id)
        if active_parent is not None and active_parent != receipt.parent_id:
            self._inconsistent(
                receipt.id,
                f"Exclusion {receipt.id} is active on {active_parent} "
                f"but belongs to {receipt.parent_id}",
                correlation_id,
            )

        position = self._entities.receipt_position(receipt.id)
        self._entities.remove_receipt(receipt.id)
        try:
            self._exclusions.remove_by_exclusion_id(receipt.id)
        except Exception as e:
            self._entities.restore_receipt(receipt, position)
            if self._audit_logger:
                self._audit_logger.log_error(
                    error_type=type(e).__name__,
                    error_message=str(e),
                    details={"receipt_id": str(receipt.id), "restored_position": position},
                    correlation_id=correlation_id,
                )
            self._inconsistent(receipt.id, f"Could not update exclusion ledger: {e}", correlation_id)

        if self._audit_logger:
            if active_parent is not None:
                self._audit_logger.log_exclusion_removed(
                    parent_id=active_parent,
                    exclusion_id=receipt.id,
                    correlation_id=correlation_id,
                )
            self._audit_logger.log_receipt_removed(
                receipt_id=receipt.id,
                label=receipt.label,
                cascaded=0,
                correlation_id=correlation_id,
            )

    def _remove_ordinary_receipt(self, receipt: Receipt, correlation_id: UUID) -> None:
        active = self._exclusions.exclusion_for(receipt.id)
        if active is not None and self._entities.get_receipt(active.id) is None:
            self._inconsistent(
                receipt.id,
                f"Active exclusion {active.id} of {receipt.id} is missing from the store",
                correlation_id,
            )

        children = self._entities.exclusions_of(receipt.id)

        self._entities.remove_receipt(receipt.id)
        touched = self._assignments.remove_receipt(receipt.id)
        self._exclusions.remove_parent(receipt.id)
        for child in children:
            self._entities.remove_receipt(child.id)

        if self._audit_logger:
            for child in children:
                self._audit_logger.log_receipt_removed(
                    receipt_id=child.id,
                    label=child.label,
                    cascaded=0,
                    correlation_id=correlation_id,
                )
            self._audit_logger.log_receipt_removed(
                receipt_id=receipt.id,
                label=receipt.label,
                cascaded=touched,
                correlation_id=correlation_id,
            )

    # =========================================================================
    # Queries
    # =========================================================================

    def shares(self) -> dict[UUID, dict[str, Decimal]]:
        """participant id -> {receipt label: amount owed}"""
        return self._calculator.compute()

    def report(self) -> ShareReport:
        return self._aggregator.report()

    def participant_total(self, participant_id: UUID) -> Optional[Decimal]:
        return self._aggregator.totals().get(participant_id)

    def grand_total(self) -> Decimal:
        return self.report().grand_total

    def list_participants(self) -> list[ParticipantSummary]:
        totals = self._aggregator.totals()
        return [
            ParticipantSummary(
                id=participant.id,
                name=participant.name,
                total=totals.get(participant.id, Decimal("0")),
            )
            for participant in self._entities.participants()
        ]

    def list_receipts(self) -> list[ReceiptSummary]:
        """
        Every receipt with its shareable total.

        Ordinary receipts also list every exclusion record carved out of
        them, flagging which one is active.
        """
        summaries = []
        for receipt in self._entities.receipts():
            exclusions = []
            participant_count = 0
            if not receipt.is_exclusion:
                participant_count = len(self._calculator.participants_for(receipt.id))
                exclusions = [
                    ExclusionLine(
                        id=child.id,
                        label=child.label,
                        amount=child.total,
                        active=self._exclusions.is_active(child.id),
                    )
                    for child in self._entities.exclusions_of(receipt.id)
                ]
            summaries.append(ReceiptSummary(
                id=receipt.id,
                label=receipt.label,
                total=receipt.total,
                shareable_total=self._calculator.shareable_total(receipt),
                is_exclusion=receipt.is_exclusion,
                parent_id=receipt.parent_id,
                participant_count=participant_count,
                exclusions=exclusions,
            ))
        return summaries

    # =========================================================================
    # Exports
    # =========================================================================

    def _log_export(self, export_format: str, report: ShareReport) -> None:
        if self._audit_logger:
            self._audit_logger.log_export_generated(
                export_format=export_format,
                participant_count=report.participant_count,
                grand_total=report.grand_total,
            )

    def export_csv(self) -> str:
        report = self.report()
        text = self._exporter.to_csv(report)
        self._log_export("csv", report)
        return text

    def export_txt(self) -> str:
        report = self.report()
        text = self._exporter.to_text(report)
        self._log_export("txt", report)
        return text


def create_ledger(
    settings: Optional[Settings] = None,
    audit_storage: Optional[AuditStorageInterface] = None,
) -> SplitLedger:
    """
    Factory function to create a fully wired ledger.

    Args:
        settings: Settings to use. Defaults to the cached global settings.
        audit_storage: Where audit events go. Defaults to in-memory storage.
    """
    settings = settings or get_settings()
    configure_logging(settings.logging)

    audit_logger = AuditLogger(
        audit_storage if audit_storage is not None else InMemoryAuditStorage()
    )
    return SplitLedger(
        settings=settings.ledger,
        export_settings=settings.export,
        audit_logger=audit_logger,
    )


def create_app_components(
    settings: Optional[Settings] = None,
) -> tuple[SplitLedger, ExportWriter]:
    """
    Factory function to create everything a shell needs.

    Returns:
        (ledger, export_writer)
    """
    settings = settings or get_settings()
    ledger = create_ledger(settings)
    writer = ExportWriter(settings.export, audit_logger=ledger.audit_logger)
    return ledger, writer
