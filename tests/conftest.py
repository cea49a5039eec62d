"""Shared fixtures: in-memory database, fake email sender and change feed."""

import os

# Must be set before podbook is imported so the engine shares one in-memory database
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("SECURITY_HEADERS_ENABLED", "true")

import datetime as dt
from collections.abc import Iterator
from contextlib import asynccontextmanager

import pytest
from fastapi import Depends
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from podbook.auth import get_current_user
from podbook.database import Base, SessionLocal, engine, get_db
from podbook.domain.booking.router import booking_rate_limit
from podbook.domain.episodes.service import EpisodeService
from podbook.domain.invitations.router import get_invitation_service, invite_rate_limit
from podbook.domain.invitations.service import InvitationService
from podbook.main import app
from podbook.models import Host
from podbook.realtime import get_change_feed

BASE_URL = "https://podbook.test"


class FakeFeedSubscription:
    """Replays queued changes, then behaves like a dropped Redis connection"""

    def __init__(self, changes: list) -> None:
        self.changes = changes

    async def next_change(self, timeout: float):
        if self.changes:
            return self.changes.pop(0)
        raise ConnectionError("feed closed")


class FakeFeed:
    """Records published changes instead of talking to Redis"""

    def __init__(self) -> None:
        self.published = []
        self.queued = []
        self.subscribed = []
        self.unsubscribed = []

    def publish(self, change) -> None:
        self.published.append(change)

    @asynccontextmanager
    async def subscribe(self, owner_id: int):
        self.subscribed.append(owner_id)
        try:
            yield FakeFeedSubscription(self.queued)
        finally:
            self.unsubscribed.append(owner_id)


class FakeSender:
    """Stands in for the invitation email; fails for addresses in ``failing``"""

    def __init__(self, failing: tuple = ()) -> None:
        self.failing = set(failing)
        self.calls: list[dict] = []

    async def __call__(self, **kwargs) -> dict:
        self.calls.append(kwargs)
        if kwargs["to"] in self.failing:
            raise RuntimeError("provider unavailable")
        return {"id": f"email-{len(self.calls)}"}


@pytest.fixture(autouse=True)
def tables() -> Iterator[None]:
    """Fresh schema for every test."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db() -> Iterator[Session]:
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def host(db: Session) -> Host:
    host = Host(firebase_uid="uid-host-1", email="host@example.com", first_name="Ada", last_name="Lovelace")
    db.add(host)
    db.commit()
    db.refresh(host)
    return host


@pytest.fixture
def other_host(db: Session) -> Host:
    host = Host(firebase_uid="uid-host-2", email="other@example.com")
    db.add(host)
    db.commit()
    db.refresh(host)
    return host


@pytest.fixture
def episode(db: Session, host: Host):
    return EpisodeService(db).create_episode(
        host,
        title="AI Future",
        description="Where machine learning is heading",
        date=dt.date(2025, 3, 3),
        time_slots=["10:00-11:00", "14:00-15:00"],
    )


@pytest.fixture
def feed() -> FakeFeed:
    return FakeFeed()


@pytest.fixture
def sender() -> FakeSender:
    return FakeSender()


@pytest.fixture
def client(host: Host, feed: FakeFeed, sender: FakeSender) -> Iterator[TestClient]:
    """Client signed in as ``host`` with Redis and email replaced."""
    host_id = host.id

    def current_host(db: Session = Depends(get_db)) -> Host:
        return db.get(Host, host_id)

    def invitation_service(db: Session = Depends(get_db)) -> InvitationService:
        return InvitationService(db, send_invitation=sender, feed=feed, base_url=BASE_URL)

    app.dependency_overrides[get_current_user] = current_host
    app.dependency_overrides[get_change_feed] = lambda: feed
    app.dependency_overrides[get_invitation_service] = invitation_service
    app.dependency_overrides[booking_rate_limit] = lambda: None
    app.dependency_overrides[invite_rate_limit] = lambda: None
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
