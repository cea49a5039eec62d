"""Episode router - Host console endpoints for episodes"""

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import Host
from .schemas import (
    DashboardStats,
    EpisodeCreateRequest,
    EpisodeResponse,
    EpisodeSummary,
    GuestResponse,
)
from .service import EpisodeService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/episodes", tags=["Episodes"])


def get_episode_service(db: Session = Depends(get_db)) -> EpisodeService:
    """Dependency injection for EpisodeService"""
    return EpisodeService(db)


@router.get("", response_model=list[EpisodeSummary])
async def list_episodes(
    current_user: Host = Depends(get_current_user),
    service: EpisodeService = Depends(get_episode_service),
):
    """Get the current host's episodes with guest response counts"""
    return service.list_episodes(current_user)


@router.post("", response_model=EpisodeResponse, status_code=status.HTTP_201_CREATED)
async def create_episode(
    data: EpisodeCreateRequest,
    current_user: Host = Depends(get_current_user),
    service: EpisodeService = Depends(get_episode_service),
):
    """Create a new episode invite"""
    return service.create_episode(
        current_user,
        title=data.title,
        description=data.description,
        date=data.date,
        time_slots=data.time_slots,
    )


@router.get("/stats", response_model=DashboardStats)
async def get_dashboard_stats(
    current_user: Host = Depends(get_current_user),
    service: EpisodeService = Depends(get_episode_service),
):
    return service.get_stats(current_user)


@router.get("/{episode_id}", response_model=EpisodeResponse)
async def get_episode(
    episode_id: str,
    current_user: Host = Depends(get_current_user),
    service: EpisodeService = Depends(get_episode_service),
):
    return service.get_episode(episode_id, current_user)


@router.get("/{episode_id}/guests", response_model=list[GuestResponse])
async def list_episode_guests(
    episode_id: str,
    current_user: Host = Depends(get_current_user),
    service: EpisodeService = Depends(get_episode_service),
):
    """Guests invited to an episode with their responses"""
    return service.list_guests(episode_id, current_user)
