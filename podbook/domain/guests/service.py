"""Guest service - Guest records and the booking state transition"""

import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...errors import BadRequestError, NotFoundError, PersistenceError
from ...models import Episode, EpisodeGuest
from ...realtime import ChangeFeed, GuestChange, guest_snapshot
from ...security_middleware import set_guest_context
from .repository import GuestRepository
from .state import BookingDecision, Confirmed, decide

logger = logging.getLogger(__name__)


class GuestService:
    """Service layer for guest records"""

    def __init__(self, db: Session, feed: Optional[ChangeFeed] = None):
        self.db = db
        self.repo = GuestRepository()
        self.feed = feed

    def _publish(self, event: str, guest: EpisodeGuest, owner_id: int, old: Optional[dict]) -> None:
        if self.feed is None:
            return
        self.feed.publish(
            GuestChange(
                event=event,
                episode_id=guest.episode_id,
                owner_id=owner_id,
                new=guest_snapshot(guest),
                old=old,
            )
        )

    def create_guest(self, episode: Episode, name: str, email: str) -> EpisodeGuest:
        """Create a pending guest for an episode"""
        try:
            guest = self.repo.create_guest(self.db, episode.id, name, email)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Failed to create guest for episode {episode.id}: {e}")
            raise PersistenceError("Failed to create guest record") from e

        logger.info(f"✅ Guest {guest.id} created for episode {episode.id}")
        self._publish("INSERT", guest, episode.user_id, old=None)
        return guest

    def get_guest(self, guest_id: str) -> EpisodeGuest:
        """Look up a guest by the id from their booking link"""
        set_guest_context(self.db, guest_id)
        guest = self.repo.get_guest(self.db, guest_id)
        if not guest:
            raise NotFoundError("Invitation not found")
        return guest

    def submit_decision(
        self,
        guest_id: str,
        decision: BookingDecision,
        enforce_slot_membership: bool = False,
    ) -> EpisodeGuest:
        """
        Record a guest's confirm/decline.

        The update is unconditional: a guest who already answered may answer
        again and the latest submission wins.
        """
        guest = self.get_guest(guest_id)

        if (
            enforce_slot_membership
            and isinstance(decision, Confirmed)
            and decision.slot not in (guest.episode.time_slots or [])
        ):
            logger.warning(f"⚠️ Guest {guest_id} picked a slot the episode does not offer")
            raise BadRequestError("Selected time slot is not offered for this episode")

        old = guest_snapshot(guest)
        owner_id = guest.episode.user_id
        try:
            guest = self.repo.apply_state(self.db, guest, decision)
            # The guest context ended with the transaction
            set_guest_context(self.db, guest_id)
            self.db.refresh(guest)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Update booking error for guest {guest_id}: {e}")
            raise PersistenceError("Failed to update booking") from e

        logger.info(f"✅ Guest {guest_id} is now {guest.status}")
        self._publish("UPDATE", guest, owner_id, old=old)
        return guest

    def update_status(
        self,
        guest_id: str,
        status: str,
        slot: Optional[str] = None,
        note: Optional[str] = None,
        enforce_slot_membership: bool = False,
    ) -> EpisodeGuest:
        """Loose-field form of submit_decision"""
        try:
            decision = decide(status, slot, note)
        except ValueError as e:
            raise BadRequestError(str(e)) from e
        return self.submit_decision(guest_id, decision, enforce_slot_membership)
