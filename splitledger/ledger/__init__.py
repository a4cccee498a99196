"""Ledger state: entity store, assignment table and exclusion ledger."""

from splitledger.ledger.assignments import AssignmentTable
from splitledger.ledger.entities import EntityStore
from splitledger.ledger.errors import (
    InconsistentStateError,
    LedgerError,
    ValidationError,
)
from splitledger.ledger.exclusions import ExclusionLedger

__all__ = [
    "AssignmentTable",
    "EntityStore",
    "ExclusionLedger",
    # Exceptions
    "InconsistentStateError",
    "LedgerError",
    "ValidationError",
]
