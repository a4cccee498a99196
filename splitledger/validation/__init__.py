"""Input validation package."""

from splitledger.validation.validator import EntryValidator, parse_amount

__all__ = ["EntryValidator", "parse_amount"]
