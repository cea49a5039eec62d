import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..auth import get_current_user
from ..database import get_db
from ..errors import PersistenceError
from ..models import Host

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["Users"])


def initials_for(first_name: Optional[str], last_name: Optional[str], email: Optional[str]) -> str:
    """Avatar initials: first letters of the name, else of the email, else "U" """
    letters = "".join(part.strip()[0] for part in (first_name, last_name) if part and part.strip())
    if letters:
        return letters.upper()
    if email:
        return email[0].upper()
    return "U"


class ProfileUpdate(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    bio: Optional[str] = None


class ProfileResponse(BaseModel):
    id: int
    firebase_uid: str
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    bio: Optional[str] = None
    display_name: str
    initials: str
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


def _profile(host: Host) -> ProfileResponse:
    return ProfileResponse(
        id=host.id,
        firebase_uid=host.firebase_uid,
        email=host.email,
        first_name=host.first_name,
        last_name=host.last_name,
        bio=host.bio,
        display_name=host.display_name,
        initials=initials_for(host.first_name, host.last_name, host.email),
        created_at=host.created_at,
    )


@router.get("/me", response_model=ProfileResponse)
def get_profile(current_user: Host = Depends(get_current_user)):
    """Current host's profile"""
    return _profile(current_user)


@router.patch("/me", response_model=ProfileResponse)
def update_profile(
    data: ProfileUpdate,
    current_user: Host = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Update the host's name and bio; omitted fields are left as they are"""
    logger.info(f"📥 Updating profile for host {current_user.id}")

    if data.first_name is not None:
        current_user.first_name = data.first_name.strip() or None
    if data.last_name is not None:
        current_user.last_name = data.last_name.strip() or None
    if data.bio is not None:
        current_user.bio = data.bio.strip() or None

    try:
        db.commit()
        db.refresh(current_user)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"❌ Error updating profile: {str(e)}")
        raise PersistenceError("Failed to update profile") from e

    return _profile(current_user)
