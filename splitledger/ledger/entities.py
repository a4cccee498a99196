"""
Entity Store

Owns every Participant and Receipt record. The assignment table and
the exclusion ledger only hold ids pointing in here.

Insertion order is preserved; reports list participants and receipts
in the order they were added.
"""

from decimal import Decimal
from typing import Iterator, Optional
from uuid import UUID

from splitledger.models.ledger import Participant, Receipt


class EntityStore:
    """In-memory collections of participants and receipts."""

    def __init__(self):
        self._participants: dict[UUID, Participant] = {}
        self._receipts: dict[UUID, Receipt] = {}

    # -------------------------------------------------------------------------
    # Participants
    # -------------------------------------------------------------------------

    def add_participant(self, name: str) -> UUID:
        """
        Create a participant with a fresh id.

        The caller must also register the id in the assignment table.
        """
        participant = Participant(name=name)
        self._participants[participant.id] = participant
        return participant.id

    def get_participant(self, participant_id: UUID) -> Optional[Participant]:
        return self._participants.get(participant_id)

    def remove_participant(self, participant_id: UUID) -> Optional[Participant]:
        """Delete by id. Returns the removed record, or None if absent."""
        return self._participants.pop(participant_id, None)

    def participants(self) -> list[Participant]:
        return list(self._participants.values())

    def participant_ids(self) -> list[UUID]:
        return list(self._participants)

    # -------------------------------------------------------------------------
    # Receipts
    # -------------------------------------------------------------------------

    def add_receipt(
        self,
        label: str,
        amount: Decimal,
        is_exclusion: bool = False,
        parent_id: Optional[UUID] = None,
    ) -> UUID:
        """
        Create a receipt with a fresh id.

        Amounts are not re-validated here beyond what the model enforces
        (non-negative, two decimal places).
        """
        receipt = Receipt(
            label=label,
            total=amount,
            is_exclusion=is_exclusion,
            parent_id=parent_id,
        )
        self._receipts[receipt.id] = receipt
        return receipt.id

    def get_receipt(self, receipt_id: UUID) -> Optional[Receipt]:
        return self._receipts.get(receipt_id)

    def remove_receipt(self, receipt_id: UUID) -> Optional[Receipt]:
        """Delete by id. Returns the removed record, or None if absent."""
        return self._receipts.pop(receipt_id, None)

    def restore_receipt(self, receipt: Receipt, position: Optional[int] = None) -> None:
        """
        Put a removed receipt back, at its old position when given.

        Used to roll back a removal that could not be completed.
        """
        if position is None or position >= len(self._receipts):
            self._receipts[receipt.id] = receipt
            return
        items = list(self._receipts.items())
        items.insert(position, (receipt.id, receipt))
        self._receipts = dict(items)

    def receipt_position(self, receipt_id: UUID) -> Optional[int]:
        for index, rid in enumerate(self._receipts):
            if rid == receipt_id:
                return index
        return None

    def receipts(self) -> list[Receipt]:
        return list(self._receipts.values())

    def receipt_ids(self) -> list[UUID]:
        return list(self._receipts)

    def ordinary_receipts(self) -> Iterator[Receipt]:
        """Receipts that are split between participants."""
        return (r for r in self._receipts.values() if not r.is_exclusion)

    def exclusions_of(self, parent_id: UUID) -> list[Receipt]:
        """Every exclusion record carved out of this parent, active or not."""
        return [
            r for r in self._receipts.values()
            if r.is_exclusion and r.parent_id == parent_id
        ]

    def __contains__(self, entity_id: UUID) -> bool:
        return entity_id in self._participants or entity_id in self._receipts
