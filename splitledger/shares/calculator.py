"""
Share Calculator

DESIGN DECISION: Shares are recomputed from scratch on every query.
There is no cached derived state, so there is nothing to invalidate when
a participant, receipt, assignment or exclusion changes.

Algorithm, per ordinary receipt:
1. Shareable total = receipt total - active exclusion, floored at zero
2. Participants = everyone assigned to the receipt, in insertion order
3. The shareable total is split evenly in whole allocation units (cents).
   Leftover units go one each to the first participants, so the parts
   always add up to the shareable total exactly.
4. A receipt nobody is assigned to contributes nothing to anyone

Exclusion records are never split; they only lower their parent's total.
"""

from decimal import ROUND_DOWN, Decimal
from uuid import UUID

from splitledger.ledger import AssignmentTable, EntityStore, ExclusionLedger
from splitledger.models.ledger import Receipt


ZERO = Decimal("0")
CENT = Decimal("0.01")


class ShareCalculator:
    """
    Pure function of (entity store, assignment table, exclusion ledger).

    GUARANTEES:
    - Same state in, same shares out
    - Shares of one receipt sum to its shareable total
    - Removed receipts and participants never appear in the output

    Each share is exactly T/N only when T divides into N whole cents.
    Otherwise shares differ by one cent: 10.00 over three participants
    gives 3.34, 3.33, 3.33.
    """

    def __init__(
        self,
        entities: EntityStore,
        assignments: AssignmentTable,
        exclusions: ExclusionLedger,
        allocation_unit: Decimal = Decimal("0.01"),
    ):
        if allocation_unit <= 0:
            raise ValueError("allocation_unit must be positive")
        if allocation_unit % CENT != 0:
            raise ValueError("allocation_unit must be a whole number of cents")
        self._entities = entities
        self._assignments = assignments
        self._exclusions = exclusions
        self._unit = allocation_unit

    @property
    def entities(self) -> EntityStore:
        return self._entities

    def shareable_total(self, receipt: Receipt) -> Decimal:
        """
        Amount of a receipt that gets split.

        Exclusion records report their own total when listed.
        """
        if receipt.is_exclusion:
            return receipt.total
        remaining = receipt.total - self._exclusions.exclusion_amount(receipt.id)
        return max(remaining, ZERO)

    def participants_for(self, receipt_id: UUID) -> list[UUID]:
        """Live participants assigned to a receipt, in insertion order."""
        return [
            participant_id
            for participant_id in self._entities.participant_ids()
            if self._assignments.is_assigned(participant_id, receipt_id)
        ]

    def split(self, amount: Decimal, count: int) -> list[Decimal]:
        """
        Split `amount` into `count` parts that differ by at most one unit.

        The earlier parts take the leftover units. Returns [] for count <= 0.
        """
        if count <= 0:
            return []
        units = (amount / self._unit).to_integral_value(rounding=ROUND_DOWN)
        base, remainder = divmod(int(units), count)
        parts = [
            (base + (1 if index < remainder else 0)) * self._unit
            for index in range(count)
        ]
        # Sub-unit dust (only possible with a coarse allocation unit)
        dust = amount - units * self._unit
        if dust:
            parts[0] += dust
        return parts

    def unassigned_receipts(self) -> list[Receipt]:
        """Ordinary receipts nobody is sharing in."""
        return [
            receipt
            for receipt in self._entities.ordinary_receipts()
            if not self.participants_for(receipt.id)
        ]

    def compute(self) -> dict[UUID, dict[str, Decimal]]:
        """
        Compute every participant's breakdown.

        Returns participant id -> {receipt label: amount owed}. Every
        participant appears, possibly with an empty breakdown. Receipts
        sharing a label accumulate into one entry.
        """
        shares: dict[UUID, dict[str, Decimal]] = {
            participant_id: {} for participant_id in self._entities.participant_ids()
        }

        for receipt in self._entities.ordinary_receipts():
            members = self.participants_for(receipt.id)
            if not members:
                continue

            parts = self.split(self.shareable_total(receipt), len(members))
            for participant_id, part in zip(members, parts):
                breakdown = shares[participant_id]
                breakdown[receipt.label] = breakdown.get(receipt.label, ZERO) + part

        return shares
