import uuid

from sqlalchemy import (
    JSON,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


def generate_public_id():
    """Generate an unguessable identifier for records that are addressed by URL"""
    return str(uuid.uuid4())


class Host(Base):
    __tablename__ = "hosts"

    id = Column(Integer, primary_key=True, index=True)
    firebase_uid = Column(String(255), unique=True, index=True, nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    first_name = Column(String(255), nullable=True)
    last_name = Column(String(255), nullable=True)
    bio = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    episodes = relationship("Episode", back_populates="host")

    @property
    def display_name(self) -> str:
        """Name shown to guests; both parts are required, otherwise a generic label"""
        if self.first_name and self.last_name:
            return f"{self.first_name} {self.last_name}"
        return "Your host"


class Episode(Base):
    __tablename__ = "episodes"

    id = Column(String(36), primary_key=True, default=generate_public_id)
    user_id = Column(Integer, ForeignKey("hosts.id"), nullable=False, index=True)
    title = Column(Text, nullable=False)
    description = Column(Text, nullable=False)
    date = Column(Date, nullable=False, index=True)
    time_slots = Column(JSON, nullable=False, default=list)  # Ordered slot labels, e.g. "14:00 - 15:00"
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    host = relationship("Host", back_populates="episodes")
    guests = relationship(
        "EpisodeGuest",
        back_populates="episode",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="EpisodeGuest.created_at",
    )


class EpisodeGuest(Base):
    __tablename__ = "episode_guests"

    # The id doubles as the booking link credential
    id = Column(String(36), primary_key=True, default=generate_public_id)
    episode_id = Column(
        String(36), ForeignKey("episodes.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False)
    status = Column(String(20), nullable=False, default="pending")  # pending, confirmed, declined
    selected_time_slot = Column(Text, nullable=True)  # Only set while confirmed
    rejection_note = Column(Text, nullable=True)  # Only set while declined
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    episode = relationship("Episode", back_populates="guests")
