"""Episode repository - Database operations for episodes"""

from typing import Optional

from sqlalchemy import case, func
from sqlalchemy.orm import Session

from ...models import Episode, EpisodeGuest


def _count_status(status: str):
    return func.coalesce(func.sum(case((EpisodeGuest.status == status, 1), else_=0)), 0)


class EpisodeRepository:
    """Repository for episode database operations"""

    @staticmethod
    def create_episode(db: Session, user_id: int, **episode_data) -> Episode:
        episode = Episode(user_id=user_id, **episode_data)
        db.add(episode)
        db.commit()
        db.refresh(episode)
        return episode

    @staticmethod
    def get_episode(db: Session, episode_id: str) -> Optional[Episode]:
        return db.query(Episode).filter(Episode.id == episode_id).first()

    @staticmethod
    def get_episode_for_owner(db: Session, episode_id: str, user_id: int) -> Optional[Episode]:
        return (
            db.query(Episode)
            .filter(Episode.id == episode_id, Episode.user_id == user_id)
            .first()
        )

    @staticmethod
    def list_with_guest_counts(db: Session, user_id: int) -> list[tuple]:
        """
        Episodes of one host with aggregated guest counts.
        Returns rows of (episode, guest_count, confirmed, pending, declined)
        ordered by recording date.
        """
        return (
            db.query(
                Episode,
                func.count(EpisodeGuest.id),
                _count_status("confirmed"),
                _count_status("pending"),
                _count_status("declined"),
            )
            .outerjoin(EpisodeGuest, EpisodeGuest.episode_id == Episode.id)
            .filter(Episode.user_id == user_id)
            .group_by(Episode.id)
            .order_by(Episode.date.asc(), Episode.created_at.asc())
            .all()
        )
