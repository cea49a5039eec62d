"""Episode domain schemas - Pydantic models for validation"""

import datetime as dt
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator

from ...shared.validators import clean_time_slots, require_text


class EpisodeCreate(BaseModel):
    """Validated create-episode form"""

    title: str
    description: str
    date: dt.date
    time_slots: list[str]

    @field_validator("title")
    @classmethod
    def validate_title(cls, v):
        return require_text(v, "Episode title")

    @field_validator("description")
    @classmethod
    def validate_description(cls, v):
        return require_text(v, "Episode description")

    @field_validator("time_slots")
    @classmethod
    def validate_time_slots(cls, v):
        return clean_time_slots(v)


class EpisodeCreateRequest(BaseModel):
    """Raw create-episode form; checked by the service so every field error is reported at once"""

    title: Optional[str] = None
    description: Optional[str] = None
    date: Optional[str] = None
    time_slots: Optional[list[str]] = None


class EpisodeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    description: str
    date: dt.date
    time_slots: list[str]
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None


class EpisodeSummary(EpisodeResponse):
    """Episode row on the host dashboard with its guest response counts"""

    guest_count: int = 0
    confirmed_guests: int = 0
    pending_guests: int = 0
    declined_guests: int = 0


class DashboardStats(BaseModel):
    total_episodes: int
    upcoming_episodes: int
    total_guests: int


class GuestResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    episode_id: str
    name: str
    email: str
    status: str
    selected_time_slot: Optional[str] = None
    rejection_note: Optional[str] = None
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None
