"""
Follow-up notes of a lead.

A lead carries a fixed number of note slots. Notes fill the lowest empty
slot and a filled slot is never rewritten. All notes share the lead's
last-modified time because slots carry no timestamp of their own.
"""
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Iterator, List, Optional, Tuple

from leadcrm.core.exceptions import CapacityError, ValidationError
from leadcrm.core.timestamps import utcnow
from leadcrm.models.lead import Lead

FOLLOW_UP_SLOTS = 10


@dataclass
class FollowUpNote:
    slot: int
    content: str
    created_at: datetime
    user_id: Optional[uuid.UUID] = None

    @property
    def id(self) -> str:
        return f"f{self.slot}"


def _is_empty(value: Optional[str]) -> bool:
    return value is None or not str(value).strip()


class FollowUpLedger:
    """Capacity-checked, ordered view over a lead's follow-up slots."""

    capacity = FOLLOW_UP_SLOTS

    def __init__(self, lead: Lead):
        self.lead = lead

    def slot_value(self, slot: int) -> Optional[str]:
        if not 1 <= slot <= self.capacity:
            raise IndexError(f"follow-up slot {slot} out of range")
        return getattr(self.lead, f"follow_up_{slot}")

    def next_free_slot(self) -> Optional[int]:
        for slot in range(1, self.capacity + 1):
            if _is_empty(self.slot_value(slot)):
                return slot
        return None

    @property
    def is_full(self) -> bool:
        return self.next_free_slot() is None

    def notes(self) -> List[FollowUpNote]:
        """Filled slots in slot order, stamped with the lead's last change."""
        stamp = self.lead.updated_at or self.lead.created_at or utcnow()
        return [
            FollowUpNote(
                slot=slot,
                content=str(self.slot_value(slot)),
                created_at=stamp,
                user_id=self.lead.assigned_to,
            )
            for slot in range(1, self.capacity + 1)
            if not _is_empty(self.slot_value(slot))
        ]

    def __iter__(self) -> Iterator[FollowUpNote]:
        return iter(self.notes())

    def __len__(self) -> int:
        return len(self.notes())

    def reserve(self, content: Optional[str]) -> Tuple[int, str]:
        """
        Pick the slot for a new note.

        Returns (slot, trimmed content). Raises ValidationError for blank
        content and CapacityError when every slot is filled.
        """
        text = (content or "").strip()
        if not text:
            raise ValidationError("Content required")
        slot = self.next_free_slot()
        if slot is None:
            raise CapacityError("All follow-up slots are filled")
        return slot, text
