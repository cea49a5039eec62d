"""Episode service - Business logic for episodes and the dashboard read model"""

import logging
from datetime import date
from typing import Optional

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...errors import NotFoundError, PersistenceError, ValidationError
from ...models import Episode, EpisodeGuest, Host
from ..guests.repository import GuestRepository
from .repository import EpisodeRepository
from .schemas import DashboardStats, EpisodeCreate, EpisodeSummary

logger = logging.getLogger(__name__)

FIELD_LABELS = {
    "title": "Episode title",
    "description": "Episode description",
    "date": "Episode date",
    "time_slots": "Time slots",
}


def _field_errors(exc: PydanticValidationError) -> dict[str, str]:
    """First error per form field, phrased for inline display"""
    fields: dict[str, str] = {}
    for error in exc.errors():
        field = str(error["loc"][0]) if error.get("loc") else "form"
        if field in fields:
            continue
        if error["type"] == "missing":
            fields[field] = f"{FIELD_LABELS.get(field, field)} is required"
        else:
            fields[field] = error["msg"].removeprefix("Value error, ")
    return fields


class EpisodeService:
    """Service layer for episode business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = EpisodeRepository()

    def create_episode(
        self,
        user: Host,
        title: Optional[str],
        description: Optional[str],
        date: Optional[object],
        time_slots: Optional[list[str]],
    ) -> Episode:
        """Create an episode owned by ``user``

        Raises:
            ValidationError: with one message per offending field
        """
        submitted = {
            "title": title,
            "description": description,
            "date": date,
            "time_slots": time_slots,
        }
        try:
            data = EpisodeCreate.model_validate(
                {key: value for key, value in submitted.items() if value is not None}
            )
        except PydanticValidationError as e:
            fields = _field_errors(e)
            logger.warning(f"⚠️ Episode form rejected for user {user.id}: {fields}")
            raise ValidationError("Please fix the highlighted fields", fields) from e

        try:
            episode = self.repo.create_episode(self.db, user.id, **data.model_dump())
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Failed to create episode for user {user.id}: {e}")
            raise PersistenceError("Failed to create episode") from e

        logger.info(f"✅ Episode {episode.id} created for user {user.id}")
        return episode

    def get_episode(self, episode_id: str, user: Host) -> Episode:
        episode = self.repo.get_episode_for_owner(self.db, episode_id, user.id)
        if not episode:
            raise NotFoundError("Episode not found")
        return episode

    def list_episodes(self, user: Host) -> list[EpisodeSummary]:
        return self.summaries_for_owner(user.id)

    def summaries_for_owner(self, owner_id: int) -> list[EpisodeSummary]:
        """Episodes of one host by date with guest counts computed from the guest rows"""
        rows = self.repo.list_with_guest_counts(self.db, owner_id)
        return [
            EpisodeSummary(
                id=episode.id,
                title=episode.title,
                description=episode.description,
                date=episode.date,
                time_slots=list(episode.time_slots or []),
                created_at=episode.created_at,
                updated_at=episode.updated_at,
                guest_count=int(total),
                confirmed_guests=int(confirmed),
                pending_guests=int(pending),
                declined_guests=int(declined),
            )
            for episode, total, confirmed, pending, declined in rows
        ]

    def get_stats(self, user: Host, today: Optional[date] = None) -> DashboardStats:
        today = today or date.today()
        episodes = self.list_episodes(user)
        return DashboardStats(
            total_episodes=len(episodes),
            upcoming_episodes=sum(1 for e in episodes if e.date > today),
            total_guests=sum(e.guest_count for e in episodes),
        )

    def list_guests(self, episode_id: str, user: Host) -> list[EpisodeGuest]:
        episode = self.get_episode(episode_id, user)
        return GuestRepository.list_for_episode(self.db, episode.id)
