"""Booking request schema"""

from typing import Optional

from pydantic import BaseModel

from ..guests.state import BookingDecision, decide


class BookingUpdateRequest(BaseModel):
    """Wire shape posted by the booking page"""

    status: str
    selectedSlot: Optional[str] = None
    rejectionNote: Optional[str] = None

    def to_decision(self) -> BookingDecision:
        return decide(self.status, self.selectedSlot, self.rejectionNote)
