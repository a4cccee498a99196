"""
Exclusion Ledger

Maps a parent receipt id to the one exclusion record that currently
reduces its shareable total.

KNOWN LIMITATION: only one exclusion per parent is active. Recording a
second one for the same parent replaces the first. The earlier record
stays in the receipt collection (and is still listed) but no longer
reduces the parent's total. Supporting several would mean a
parent -> list mapping summed in `exclusion_amount`.
"""

from decimal import Decimal
from typing import Optional
from uuid import UUID

from splitledger.models.ledger import Receipt


class ExclusionLedger:
    """parent receipt id -> active exclusion Receipt"""

    def __init__(self):
        self._entries: dict[UUID, Receipt] = {}

    def exclude(self, parent_receipt_id: UUID, exclusion: Receipt) -> Optional[Receipt]:
        """
        Record (or overwrite) the exclusion for a parent.

        The caller must also put `exclusion` in the entity store with
        is_exclusion=True. Returns the exclusion that was replaced, if any.
        """
        if not exclusion.is_exclusion:
            raise ValueError("Only exclusion records can be recorded as exclusions")
        replaced = self._entries.get(parent_receipt_id)
        self._entries[parent_receipt_id] = exclusion
        return replaced

    def exclusion_for(self, parent_receipt_id: UUID) -> Optional[Receipt]:
        return self._entries.get(parent_receipt_id)

    def exclusion_amount(self, parent_receipt_id: UUID) -> Decimal:
        """The active exclusion's amount, or 0 if none is recorded."""
        exclusion = self._entries.get(parent_receipt_id)
        if exclusion is None:
            return Decimal("0")
        return exclusion.total

    def parent_of(self, exclusion_receipt_id: UUID) -> Optional[UUID]:
        for parent_id, exclusion in self._entries.items():
            if exclusion.id == exclusion_receipt_id:
                return parent_id
        return None

    def is_active(self, exclusion_receipt_id: UUID) -> bool:
        return self.parent_of(exclusion_receipt_id) is not None

    def remove_by_exclusion_id(self, exclusion_receipt_id: UUID) -> Optional[UUID]:
        """
        Drop the entry whose exclusion record has this id.

        Returns the parent id the entry belonged to, or None when the
        record was not active (never recorded, or already replaced).
        """
        parent_id = self.parent_of(exclusion_receipt_id)
        if parent_id is not None:
            del self._entries[parent_id]
        return parent_id

    def remove_parent(self, parent_receipt_id: UUID) -> Optional[Receipt]:
        return self._entries.pop(parent_receipt_id, None)

    def __len__(self) -> int:
        return len(self._entries)
