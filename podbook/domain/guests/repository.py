"""Guest repository - Database operations for episode guests"""

from typing import Optional

from sqlalchemy.orm import Session, joinedload

from ...models import Episode, EpisodeGuest
from .state import BookingState, Pending, columns_for


class GuestRepository:
    """Repository for guest database operations"""

    @staticmethod
    def create_guest(db: Session, episode_id: str, name: str, email: str) -> EpisodeGuest:
        """Insert a guest in the pending state"""
        guest = EpisodeGuest(episode_id=episode_id, name=name, email=email, **columns_for(Pending()))
        db.add(guest)
        db.commit()
        db.refresh(guest)
        return guest

    @staticmethod
    def get_guest(db: Session, guest_id: str) -> Optional[EpisodeGuest]:
        """Get a guest with its episode and the episode's host loaded"""
        return (
            db.query(EpisodeGuest)
            .options(joinedload(EpisodeGuest.episode).joinedload(Episode.host))
            .filter(EpisodeGuest.id == guest_id)
            .first()
        )

    @staticmethod
    def list_for_episode(db: Session, episode_id: str) -> list[EpisodeGuest]:
        return (
            db.query(EpisodeGuest)
            .filter(EpisodeGuest.episode_id == episode_id)
            .order_by(EpisodeGuest.created_at.asc())
            .all()
        )

    @staticmethod
    def apply_state(db: Session, guest: EpisodeGuest, state: BookingState) -> EpisodeGuest:
        """Persist a booking state; a plain single-row update, last write wins"""
        for key, value in columns_for(state).items():
            setattr(guest, key, value)
        db.commit()
        return guest
