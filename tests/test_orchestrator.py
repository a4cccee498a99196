"""
Integration tests for the SplitLedger command/query API.
"""

import pytest
from decimal import Decimal
from uuid import uuid4

from splitledger.audit import AuditLogger
from splitledger.config import LedgerSettings, Settings
from splitledger.ledger import InconsistentStateError, ValidationError
from splitledger.models.audit import AuditEventType
from splitledger.orchestrator import SplitLedger, create_app_components, create_ledger
from splitledger.storage import InMemoryAuditStorage


@pytest.fixture
def storage():
    return InMemoryAuditStorage()


@pytest.fixture
def ledger(storage):
    return SplitLedger(
        settings=LedgerSettings(auto_assign_new_receipts=False, reject_invalid_amounts=True),
        audit_logger=AuditLogger(storage),
    )


def event_types(storage):
    return [e.event_type for e in reversed(storage.get_recent_events(limit=1000))]


class TestParticipants:
    """Tests for participant commands."""

    def test_new_participant_shares_existing_receipts(self, ledger):
        """Test default assignment covers every receipt that exists."""
        dinner = ledger.add_receipt("Dinner", "40")
        alice = ledger.add_participant("Alice")
        assert ledger.assignments.is_assigned(alice, dinner)

    def test_later_receipts_not_assigned_by_default(self, ledger):
        """Test receipts added afterwards are not shared automatically."""
        alice = ledger.add_participant("Alice")
        taxi = ledger.add_receipt("Taxi", "12")
        assert not ledger.assignments.is_assigned(alice, taxi)

    def test_exclusion_records_not_in_default_assignment(self, ledger):
        """Test new participants only default to shareable receipts."""
        dinner = ledger.add_receipt("Dinner", "40")
        snack = ledger.add_exclusion(dinner, "Snack", "5")
        alice = ledger.add_participant("Alice")
        assert ledger.assignments.receipts_for(alice) == frozenset({dinner})
        assert not ledger.assignments.is_assigned(alice, snack)

    def test_remove_participant(self, ledger):
        """Test a removed participant vanishes from every query."""
        dinner = ledger.add_receipt("Dinner", "40")
        alice = ledger.add_participant("Alice")
        bob = ledger.add_participant("Bob")

        assert ledger.remove_participant(alice) is True

        assert alice not in ledger.shares()
        assert alice not in ledger.assignments
        assert [p.id for p in ledger.list_participants()] == [bob]
        assert ledger.participant_total(bob) == Decimal("40.00")
        assert ledger.participant_total(alice) is None
        assert ledger.list_receipts()[0].participant_count == 1
        assert "Alice" not in ledger.export_csv()
        assert ledger.calculator.participants_for(dinner) == [bob]

    def test_remove_missing_participant(self, ledger, storage):
        """Test removing an unknown participant is a logged no-op."""
        assert ledger.remove_participant(uuid4()) is False
        assert event_types(storage)[-1] == AuditEventType.ENTITY_NOT_FOUND

    def test_empty_name_allowed(self, ledger):
        """Test the core accepts empty names."""
        participant_id = ledger.add_participant("")
        assert ledger.entities.get_participant(participant_id).name == ""

    def test_long_name_allowed(self, ledger, storage):
        """Test the core puts no length limit on names."""
        name = "A" * 1000
        participant_id = ledger.add_participant(name)
        assert ledger.entities.get_participant(participant_id).name == name
        assert event_types(storage) == [AuditEventType.PARTICIPANT_ADDED]


class TestReceipts:
    """Tests for receipt commands."""

    def test_amount_parsing(self, ledger):
        """Test strings, ints and floats become cent Decimals."""
        ids = [ledger.add_receipt(label, amount) for label, amount in
               [("a", "12.5"), ("b", 3), ("c", 0.1), ("d", Decimal("7.10"))]]
        totals = [ledger.entities.get_receipt(i).total for i in ids]
        assert totals == [Decimal("12.50"), Decimal("3.00"), Decimal("0.10"), Decimal("7.10")]

    @pytest.mark.parametrize("amount", ["0", "-5", "abc", None, "1.234", "NaN", "1e30"])
    def test_invalid_amounts_rejected(self, ledger, storage, amount):
        """Test bad amounts raise ValidationError and change nothing."""
        with pytest.raises(ValidationError) as exc_info:
            ledger.add_receipt("Broken", amount)
        assert exc_info.value.result.has_errors
        assert ledger.entities.receipts() == []
        assert event_types(storage)[-1] == AuditEventType.VALIDATION_FAILED

    def test_zero_allowed_when_not_rejecting(self, storage):
        """Test zero amounts pass when rejection is switched off."""
        ledger = SplitLedger(
            settings=LedgerSettings(reject_invalid_amounts=False),
            audit_logger=AuditLogger(storage),
        )
        receipt_id = ledger.add_receipt("Free", "0")
        assert ledger.entities.get_receipt(receipt_id).total == Decimal("0")

    def test_auto_assign(self, storage):
        """Test auto-assign appends new receipts to every participant."""
        ledger = SplitLedger(auto_assign=True, audit_logger=AuditLogger(storage))
        alice = ledger.add_participant("Alice")
        bob = ledger.add_participant("Bob")

        taxi = ledger.add_receipt("Taxi", "12")

        assert ledger.assignments.is_assigned(alice, taxi)
        assert ledger.assignments.is_assigned(bob, taxi)
        assert AuditEventType.RECEIPT_AUTO_ASSIGNED in event_types(storage)

    def test_auto_assign_toggle_at_runtime(self, ledger):
        """Test the mode flag can be switched on a live ledger."""
        alice = ledger.add_participant("Alice")
        ledger.auto_assign = True
        taxi = ledger.add_receipt("Taxi", "12")
        assert ledger.assignments.is_assigned(alice, taxi)

    def test_remove_receipt_cascades_assignments(self, ledger):
        """Test no assignment set keeps a removed receipt's id."""
        dinner = ledger.add_receipt("Dinner", "40")
        alice = ledger.add_participant("Alice")

        assert ledger.remove_receipt(dinner) is True

        assert ledger.assignments.receipts_for(alice) == frozenset()
        assert ledger.grand_total() == Decimal("0")

    def test_remove_missing_receipt(self, ledger, storage):
        """Test removing an unknown receipt is a logged no-op."""
        assert ledger.remove_receipt(uuid4()) is False
        assert event_types(storage)[-1] == AuditEventType.ENTITY_NOT_FOUND

    def test_long_label_allowed(self, ledger):
        """Test the core puts no length limit on labels."""
        label = "L" * 1000
        receipt_id = ledger.add_receipt(label, "10")
        assert ledger.entities.get_receipt(receipt_id).label == label
        assert label in ledger.export_csv()


class TestAssignments:
    """Tests for toggling assignments."""

    def test_toggle(self, ledger):
        """Test toggling changes the split."""
        dinner = ledger.add_receipt("Dinner", "40")
        alice = ledger.add_participant("Alice")
        bob = ledger.add_participant("Bob")

        assert ledger.toggle_assignment(bob, dinner) is False

        assert ledger.participant_total(alice) == Decimal("40.00")
        assert ledger.participant_total(bob) == Decimal("0")

    def test_double_toggle_is_noop(self, ledger):
        """Test two toggles restore the original shares."""
        dinner = ledger.add_receipt("Dinner", "40")
        alice = ledger.add_participant("Alice")
        ledger.add_participant("Bob")
        before = ledger.shares()

        ledger.toggle_assignment(alice, dinner)
        ledger.toggle_assignment(alice, dinner)

        assert ledger.shares() == before

    def test_toggle_missing_entities(self, ledger):
        """Test toggles against unknown ids return None."""
        dinner = ledger.add_receipt("Dinner", "40")
        alice = ledger.add_participant("Alice")
        assert ledger.toggle_assignment(uuid4(), dinner) is None
        assert ledger.toggle_assignment(alice, uuid4()) is None

    def test_toggle_exclusion_record_refused(self, ledger):
        """Test exclusion records cannot be assigned."""
        dinner = ledger.add_receipt("Dinner", "40")
        snack = ledger.add_exclusion(dinner, "Snack", "5")
        alice = ledger.add_participant("Alice")
        assert ledger.toggle_assignment(alice, snack) is None
        assert not ledger.assignments.is_assigned(alice, snack)

    def test_nobody_assigned(self, ledger):
        """Test a receipt with nobody on it is reported as unallocated."""
        dinner = ledger.add_receipt("Dinner", "40")
        alice = ledger.add_participant("Alice")
        ledger.toggle_assignment(alice, dinner)

        report = ledger.report()

        assert report.grand_total == Decimal("0")
        assert report.unallocated_total == Decimal("40.00")
        assert report.unassigned_receipt_ids == [dinner]


class TestExclusions:
    """Tests for exclusion commands."""

    def test_scenario(self, ledger):
        """Groceries 60.00 with Snacks 10.00 excluded, Alice and Bob share."""
        groceries = ledger.add_receipt("Groceries", "60.00")
        ledger.add_exclusion(groceries, "Snacks", "10.00")
        alice = ledger.add_participant("Alice")
        bob = ledger.add_participant("Bob")

        assert ledger.participant_total(alice) == Decimal("25.00")
        assert ledger.participant_total(bob) == Decimal("25.00")
        assert ledger.grand_total() == Decimal("50.00")

    def test_listing(self, ledger):
        """Test receipts list their shareable total and exclusions."""
        groceries = ledger.add_receipt("Groceries", "60.00")
        snacks = ledger.add_exclusion(groceries, "Snacks", "10.00")

        parent, record = ledger.list_receipts()

        assert parent.id == groceries
        assert parent.shareable_total == Decimal("50.00")
        assert [(e.label, e.amount) for e in parent.exclusions] == [("Snacks", Decimal("10.00"))]
        assert record.id == snacks
        assert record.is_exclusion is True
        assert record.shareable_total == Decimal("10.00")
        assert record.exclusions == []

    def test_second_exclusion_replaces_first(self, ledger, storage):
        """Test only the latest exclusion reduces the total."""
        groceries = ledger.add_receipt("Groceries", "60.00")
        snacks = ledger.add_exclusion(groceries, "Snacks", "10.00")
        beer = ledger.add_exclusion(groceries, "Beer", "20.00")
        alice = ledger.add_participant("Alice")

        assert ledger.participant_total(alice) == Decimal("40.00")
        lines = ledger.list_receipts()[0].exclusions
        assert [(line.id, line.active) for line in lines] == [(snacks, False), (beer, True)]
        assert AuditEventType.EXCLUSION_REPLACED in event_types(storage)

    def test_exclusion_clamped(self, ledger):
        """Test an oversize exclusion leaves nothing to share."""
        coffee = ledger.add_receipt("Coffee", "5.00")
        ledger.add_exclusion(coffee, "Cake", "8.00")
        alice = ledger.add_participant("Alice")
        assert ledger.participant_total(alice) == Decimal("0")

    def test_exclusion_on_missing_parent(self, ledger):
        """Test excluding from an unknown receipt records nothing."""
        assert ledger.add_exclusion(uuid4(), "Snacks", "1") is None
        assert ledger.entities.receipts() == []

    def test_exclusion_on_exclusion_refused(self, ledger):
        """Test exclusions cannot be nested."""
        groceries = ledger.add_receipt("Groceries", "60.00")
        snacks = ledger.add_exclusion(groceries, "Snacks", "10.00")
        assert ledger.add_exclusion(snacks, "Chips", "2.00") is None

    def test_negative_exclusion_rejected(self, ledger):
        """Test negative exclusions raise ValidationError."""
        groceries = ledger.add_receipt("Groceries", "60.00")
        with pytest.raises(ValidationError):
            ledger.add_exclusion(groceries, "Refund", "-1")
        assert len(ledger.exclusions) == 0

    def test_oversize_exclusion_amount_rejected(self, ledger):
        """Test an amount too large to represent in cents is a ValidationError."""
        groceries = ledger.add_receipt("Groceries", "60.00")
        with pytest.raises(ValidationError):
            ledger.add_exclusion(groceries, "Everything", "1e30")
        assert ledger.entities.receipt_ids() == [groceries]

    def test_removing_active_exclusion_restores_total(self, ledger):
        """Test the parent's total reverts when its exclusion is removed."""
        groceries = ledger.add_receipt("Groceries", "60.00")
        snacks = ledger.add_exclusion(groceries, "Snacks", "10.00")
        alice = ledger.add_participant("Alice")
        ledger.add_participant("Bob")

        assert ledger.remove_receipt(snacks) is True

        assert ledger.exclusions.exclusion_for(groceries) is None
        assert ledger.entities.get_receipt(snacks) is None
        assert ledger.participant_total(alice) == Decimal("30.00")

    def test_removing_replaced_exclusion_keeps_active_one(self, ledger):
        """Test removing an overwritten record changes no totals."""
        groceries = ledger.add_receipt("Groceries", "60.00")
        snacks = ledger.add_exclusion(groceries, "Snacks", "10.00")
        ledger.add_exclusion(groceries, "Beer", "20.00")
        alice = ledger.add_participant("Alice")

        assert ledger.remove_receipt(snacks) is True

        assert ledger.participant_total(alice) == Decimal("40.00")

    def test_removing_parent_cascades(self, ledger):
        """Test a parent takes its exclusion records with it."""
        groceries = ledger.add_receipt("Groceries", "60.00")
        snacks = ledger.add_exclusion(groceries, "Snacks", "10.00")
        beer = ledger.add_exclusion(groceries, "Beer", "20.00")
        dinner = ledger.add_receipt("Dinner", "30.00")
        ledger.add_participant("Alice")

        assert ledger.remove_receipt(groceries) is True

        assert ledger.entities.receipt_ids() == [dinner]
        assert ledger.entities.get_receipt(snacks) is None
        assert ledger.entities.get_receipt(beer) is None
        assert len(ledger.exclusions) == 0
        assert ledger.grand_total() == Decimal("30.00")


class TestConsistency:
    """Removal must leave store and exclusion ledger in agreement."""

    def test_ledger_references_missing_record(self, ledger, storage):
        """Test a dangling ledger entry is reported, not half-removed."""
        groceries = ledger.add_receipt("Groceries", "60.00")
        snacks = ledger.add_exclusion(groceries, "Snacks", "10.00")
        # Corrupt: drop the record behind the ledger's back
        ledger.entities.remove_receipt(snacks)

        with pytest.raises(InconsistentStateError):
            ledger.remove_receipt(snacks)

        assert ledger.exclusions.parent_of(snacks) == groceries
        assert event_types(storage)[-1] == AuditEventType.INCONSISTENT_STATE

    def test_record_active_on_wrong_parent(self, ledger):
        """Test a record active on a parent it wasn't carved from is refused."""
        groceries = ledger.add_receipt("Groceries", "60.00")
        dinner = ledger.add_receipt("Dinner", "30.00")
        snacks = ledger.add_exclusion(groceries, "Snacks", "10.00")
        record = ledger.entities.get_receipt(snacks)
        ledger.exclusions.remove_parent(groceries)
        ledger.exclusions.exclude(dinner, record)

        with pytest.raises(InconsistentStateError):
            ledger.remove_receipt(snacks)

        assert ledger.entities.get_receipt(snacks) is not None
        assert ledger.exclusions.exclusion_for(dinner) == record

    def test_parent_with_missing_active_record(self, ledger):
        """Test removing a parent whose active exclusion vanished is refused."""
        groceries = ledger.add_receipt("Groceries", "60.00")
        snacks = ledger.add_exclusion(groceries, "Snacks", "10.00")
        alice = ledger.add_participant("Alice")
        ledger.entities.remove_receipt(snacks)

        with pytest.raises(InconsistentStateError):
            ledger.remove_receipt(groceries)

        assert ledger.entities.get_receipt(groceries) is not None
        assert ledger.assignments.is_assigned(alice, groceries)
        assert ledger.exclusions.exclusion_for(groceries) is not None

    def test_failed_ledger_update_rolls_back(self, ledger, storage, monkeypatch):
        """Test the record goes back to its slot when the ledger update fails."""
        groceries = ledger.add_receipt("Groceries", "60.00")
        snacks = ledger.add_exclusion(groceries, "Snacks", "10.00")
        dinner = ledger.add_receipt("Dinner", "30.00")
        record = ledger.entities.get_receipt(snacks)

        def fail(exclusion_receipt_id):
            raise RuntimeError("ledger unavailable")

        monkeypatch.setattr(ledger.exclusions, "remove_by_exclusion_id", fail)

        with pytest.raises(InconsistentStateError):
            ledger.remove_receipt(snacks)

        assert ledger.entities.receipt_ids() == [groceries, snacks, dinner]
        assert ledger.entities.get_receipt(snacks) == record
        assert ledger.exclusions.exclusion_for(groceries) == record
        assert event_types(storage)[-2:] == [
            AuditEventType.SYSTEM_ERROR,
            AuditEventType.INCONSISTENT_STATE,
        ]


class TestExports:
    """Tests for the export API."""

    def test_export_totals_match_grand_total(self, ledger, storage):
        """Test both exports end with the grand total."""
        taxi = ledger.add_receipt("Taxi", "10.00")
        for name in ("Alice", "Bob", "Carol"):
            ledger.add_participant(name)
        ledger.add_receipt("Parking", "4.00")

        csv_text = ledger.export_csv()
        txt_text = ledger.export_txt()

        assert ledger.grand_total() == Decimal("10.00")
        assert csv_text.splitlines()[-1] == "Total,10.00€,"
        assert txt_text.splitlines()[-1] == "Total | 10.00€ |"
        assert ",3.34€,Taxi" in csv_text
        assert "Parking" not in csv_text
        assert event_types(storage).count(AuditEventType.EXPORT_GENERATED) == 2
        assert taxi in ledger.entities

    def test_exports_are_pure(self, ledger):
        """Test exporting twice gives the same text."""
        ledger.add_receipt("Taxi", "10.00")
        ledger.add_participant("Alice")
        assert ledger.export_csv() == ledger.export_csv()
        assert ledger.export_txt() == ledger.export_txt()


class TestFactories:
    """Tests for the wiring helpers."""

    def test_create_ledger_uses_given_storage(self, storage):
        """Test the factory wires the audit storage."""
        ledger = create_ledger(Settings(), audit_storage=storage)
        ledger.add_participant("Alice")
        assert event_types(storage) == [AuditEventType.PARTICIPANT_ADDED]

    def test_create_app_components(self):
        """Test the shell gets a ledger and a writer sharing one audit log."""
        ledger, writer = create_app_components(Settings())
        assert isinstance(ledger, SplitLedger)
        assert ledger.audit_logger is not None
        assert writer.directory.name == "exports"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
