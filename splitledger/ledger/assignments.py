"""
Assignment Table

Bipartite relation between participants and the receipts they share in.
Holds ids only; the entity store owns the records.
"""

from typing import Iterable
from uuid import UUID


class AssignmentTable:
    """participant id -> set of receipt ids"""

    def __init__(self):
        self._table: dict[UUID, set[UUID]] = {}

    def set_default_assignment(
        self,
        participant_id: UUID,
        receipt_ids: Iterable[UUID],
    ) -> None:
        """Used at participant creation: share in every receipt given."""
        self._table[participant_id] = set(receipt_ids)

    def toggle(self, participant_id: UUID, receipt_id: UUID) -> bool:
        """
        Flip one assignment. Returns the new state.

        Two identical toggles leave the table unchanged.
        """
        receipts = self._table.setdefault(participant_id, set())
        if receipt_id in receipts:
            receipts.discard(receipt_id)
            return False
        receipts.add(receipt_id)
        return True

    def assign(self, participant_id: UUID, receipt_id: UUID) -> None:
        self._table.setdefault(participant_id, set()).add(receipt_id)

    def is_assigned(self, participant_id: UUID, receipt_id: UUID) -> bool:
        return receipt_id in self._table.get(participant_id, ())

    def receipts_for(self, participant_id: UUID) -> frozenset[UUID]:
        return frozenset(self._table.get(participant_id, ()))

    def remove_participant(self, participant_id: UUID) -> bool:
        """Drop the participant's whole set. Returns False if unknown."""
        return self._table.pop(participant_id, None) is not None

    def remove_receipt(self, receipt_id: UUID) -> int:
        """
        Remove a receipt id from every participant's set.

        Returns how many sets contained it.
        """
        touched = 0
        for receipts in self._table.values():
            if receipt_id in receipts:
                receipts.discard(receipt_id)
                touched += 1
        return touched

    def __contains__(self, participant_id: UUID) -> bool:
        return participant_id in self._table
