"""Guest booking state.

A guest row stores its decision as a status string plus two nullable side
columns. In code the decision is one of three variants, so a confirmation
always carries a slot and a decline never does:

    Pending
    Confirmed(slot)
    Declined(note | None)
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union


class GuestStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    DECLINED = "declined"


@dataclass(frozen=True)
class Pending:
    status = GuestStatus.PENDING


@dataclass(frozen=True)
class Confirmed:
    slot: str
    status = GuestStatus.CONFIRMED


@dataclass(frozen=True)
class Declined:
    note: Optional[str] = None
    status = GuestStatus.DECLINED


BookingState = Union[Pending, Confirmed, Declined]
BookingDecision = Union[Confirmed, Declined]


def decide(
    status: Optional[str], slot: Optional[str] = None, note: Optional[str] = None
) -> BookingDecision:
    """Build a guest's decision from the loose wire fields.

    Raises:
        ValueError: unknown status, or a confirmation without a slot
    """
    if status == GuestStatus.CONFIRMED.value:
        if slot is None or not slot.strip():
            raise ValueError("selectedSlot is required to confirm")
        return Confirmed(slot=slot.strip())
    if status == GuestStatus.DECLINED.value:
        note = note.strip() if note else None
        return Declined(note=note or None)
    raise ValueError(f"Unsupported status: {status!r}")


def state_of(guest) -> BookingState:
    """Read the variant back out of a stored row"""
    if guest.status == GuestStatus.CONFIRMED.value:
        return Confirmed(slot=guest.selected_time_slot or "")
    if guest.status == GuestStatus.DECLINED.value:
        return Declined(note=guest.rejection_note)
    return Pending()


def columns_for(state: BookingState) -> dict:
    """Column values that persist a variant; side columns of other variants are cleared"""
    if isinstance(state, Confirmed):
        return {"status": state.status.value, "selected_time_slot": state.slot, "rejection_note": None}
    if isinstance(state, Declined):
        return {"status": state.status.value, "selected_time_slot": None, "rejection_note": state.note}
    return {"status": GuestStatus.PENDING.value, "selected_time_slot": None, "rejection_note": None}
