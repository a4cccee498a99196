"""
Tests for the audit logger and audit storage.
"""

import pytest
from uuid import uuid4

from splitledger.audit import AuditLogger, configure_logging, create_correlation_id
from splitledger.config import LoggingSettings
from splitledger.models.audit import AuditEvent, AuditEventType, AuditSeverity
from splitledger.orchestrator import SplitLedger
from splitledger.storage import CapacityError, InMemoryAuditStorage


class TestInMemoryAuditStorage:
    """Tests for the in-memory backend."""

    def _event(self, **kwargs):
        return AuditEvent(
            event_type=AuditEventType.RECEIPT_ADDED,
            description="Receipt added",
            **kwargs,
        )

    def test_append_and_recent(self):
        """Test recent events come back newest first."""
        storage = InMemoryAuditStorage()
        first, second = self._event(), self._event()
        storage.append_event(first)
        storage.append_event(second)

        assert len(storage) == 2
        assert storage.get_recent_events() == [second, first]
        assert storage.get_recent_events(limit=1) == [second]

    def test_capacity(self):
        """Test a full storage refuses new events."""
        storage = InMemoryAuditStorage(max_events=1)
        storage.append_event(self._event())
        with pytest.raises(CapacityError):
            storage.append_event(self._event())

    def test_filters(self):
        """Test correlation and entity filters."""
        storage = InMemoryAuditStorage()
        correlation_id, entity_id = uuid4(), uuid4()
        tagged = self._event(correlation_id=correlation_id)
        owned = self._event(entity_type="receipt", entity_id=entity_id)
        storage.append_event(tagged)
        storage.append_event(owned)

        assert storage.get_events_by_correlation_id(correlation_id) == [tagged]
        assert storage.get_events_by_entity("receipt", entity_id) == [owned]
        assert storage.get_events_by_entity("participant", entity_id) == []


class TestAuditLogger:
    """Tests for the audit logger."""

    def test_first_event_is_stored(self):
        """Test an empty storage still receives events."""
        storage = InMemoryAuditStorage()
        logger = AuditLogger(storage)
        assert logger.log_participant_added(uuid4(), "Alice", 0) is None
        assert len(storage) == 1

    def test_without_storage(self):
        """Test logging works without a backend."""
        logger = AuditLogger()
        event = AuditEvent(event_type=AuditEventType.SYSTEM_ERROR, description="x")
        assert logger.log(event) is True
        assert logger.storage is None

    def test_storage_failure_does_not_raise(self):
        """Test a full storage makes log() return False."""
        storage = InMemoryAuditStorage(max_events=0)
        logger = AuditLogger(storage)
        event = AuditEvent(event_type=AuditEventType.RECEIPT_ADDED, description="x")
        assert logger.log(event) is False

    def test_log_error(self):
        """Test system errors are stored with error severity."""
        storage = InMemoryAuditStorage()
        AuditLogger(storage).log_error("ExportFailed", "disk full", details={"path": "x"})
        event = storage.get_recent_events()[0]
        assert event.event_type == AuditEventType.SYSTEM_ERROR
        assert event.severity == AuditSeverity.ERROR

    def test_correlated_cascade(self):
        """Test a cascading removal shares one correlation id."""
        storage = InMemoryAuditStorage()
        ledger = SplitLedger(audit_logger=AuditLogger(storage))
        groceries = ledger.add_receipt("Groceries", "60.00")
        snacks = ledger.add_exclusion(groceries, "Snacks", "10.00")

        ledger.remove_receipt(groceries)

        last = storage.get_recent_events()[0]
        related = storage.get_events_by_correlation_id(last.correlation_id)
        assert {e.entity_id for e in related} == {groceries, snacks}
        assert all(e.event_type == AuditEventType.RECEIPT_REMOVED for e in related)

    def test_entity_history(self):
        """Test a receipt's history can be read back."""
        storage = InMemoryAuditStorage()
        ledger = SplitLedger(audit_logger=AuditLogger(storage))
        receipt = ledger.add_receipt("Taxi", "12.00")
        participant = ledger.add_participant("Alice")
        ledger.toggle_assignment(participant, receipt)

        history = storage.get_events_by_entity("receipt", receipt)
        assert [e.event_type for e in history] == [AuditEventType.RECEIPT_ADDED]
        assert history[0].details["amount"] == "12.00"


class TestLoggingSetup:
    """Tests for logging configuration."""

    def test_configure_console_output(self):
        """Test console rendering can be selected."""
        configure_logging(LoggingSettings(level="DEBUG", json_output=False))
        configure_logging(LoggingSettings())

    def test_correlation_ids_unique(self):
        """Test every correlation id is fresh."""
        assert create_correlation_id() != create_correlation_id()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
