"""Exceptions raised by the ledger core."""

from typing import Optional

from splitledger.models.ledger import ValidationResult


class LedgerError(Exception):
    """Base exception for ledger operations."""
    pass


class ValidationError(LedgerError):
    """Command input was rejected by validation."""

    def __init__(self, message: str, result: Optional[ValidationResult] = None):
        self.result = result
        super().__init__(message)


class InconsistentStateError(LedgerError):
    """
    The exclusion ledger and the receipt store disagree.

    Raised before anything is mutated, so both are left unchanged.
    """
    pass
