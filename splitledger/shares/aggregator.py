"""
Aggregator

Sums share breakdowns into per-participant totals and a grand total,
and packages the result as a ShareReport.

NOTE: the grand total is the sum of what participants owe. It is not
necessarily the sum of all shareable totals: a receipt with nobody
assigned is left out and reported as unallocated instead.
"""

from decimal import Decimal
from typing import Mapping
from uuid import UUID

from splitledger.models.ledger import ParticipantShare, ShareReport
from splitledger.shares.calculator import ShareCalculator


def participant_total(breakdown: Mapping[str, Decimal]) -> Decimal:
    """Sum of one participant's breakdown."""
    return sum(breakdown.values(), Decimal("0"))


def grand_total(shares: Mapping[UUID, Mapping[str, Decimal]]) -> Decimal:
    """Sum over all participants of their totals."""
    return sum(
        (participant_total(breakdown) for breakdown in shares.values()),
        Decimal("0"),
    )


class Aggregator:
    """Turns a fresh computation into a ShareReport."""

    def __init__(self, calculator: ShareCalculator):
        self._calculator = calculator

    def totals(self) -> dict[UUID, Decimal]:
        """participant id -> total owed"""
        return {
            participant_id: participant_total(breakdown)
            for participant_id, breakdown in self._calculator.compute().items()
        }

    def report(self) -> ShareReport:
        shares = self._calculator.compute()
        entities = self._calculator.entities

        rows = []
        for participant_id, breakdown in shares.items():
            participant = entities.get_participant(participant_id)
            rows.append(ParticipantShare(
                participant_id=participant_id,
                name=participant.name if participant else "",
                total=participant_total(breakdown),
                shares=dict(breakdown),
            ))

        unassigned = self._calculator.unassigned_receipts()
        unallocated = sum(
            (self._calculator.shareable_total(r) for r in unassigned),
            Decimal("0"),
        )

        return ShareReport(
            rows=rows,
            grand_total=grand_total(shares),
            unallocated_total=unallocated,
            unassigned_receipt_ids=[r.id for r in unassigned],
        )
