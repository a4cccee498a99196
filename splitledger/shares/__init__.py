"""Share computation package."""

from splitledger.shares.aggregator import (
    Aggregator,
    grand_total,
    participant_total,
)
from splitledger.shares.calculator import ShareCalculator

__all__ = [
    "Aggregator",
    "ShareCalculator",
    "grand_total",
    "participant_total",
]
