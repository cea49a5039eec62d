"""
Guest change feed over Redis pub/sub.

Every insert and status change on ``episode_guests`` is published on the
owning host's channel. Each open host console holds one subscription for as
long as its event stream is connected; events published while nobody is
subscribed are lost, so consoles re-fetch their read model periodically.
"""

import json
import logging
import os
from contextlib import asynccontextmanager
from dataclasses import asdict, dataclass
from typing import AsyncIterator, Optional

import redis.asyncio as aioredis

from .models import EpisodeGuest
from .rate_limiter import get_redis_client

logger = logging.getLogger(__name__)

CHANNEL_PREFIX = "episode_guests"


def channel_for(owner_id: int) -> str:
    return f"{CHANNEL_PREFIX}:{owner_id}"


def guest_snapshot(guest: EpisodeGuest) -> dict:
    """Row image carried in change events"""
    return {
        "id": guest.id,
        "episode_id": guest.episode_id,
        "name": guest.name,
        "email": guest.email,
        "status": guest.status,
        "selected_time_slot": guest.selected_time_slot,
        "rejection_note": guest.rejection_note,
    }


@dataclass
class GuestChange:
    event: str  # INSERT or UPDATE
    episode_id: str
    owner_id: int
    new: dict
    old: Optional[dict] = None
    table: str = "episode_guests"

    def to_json(self) -> str:
        return json.dumps(asdict(self))

    @classmethod
    def from_json(cls, raw: str) -> "GuestChange":
        return cls(**json.loads(raw))


def get_async_redis_client() -> aioredis.Redis:
    """A dedicated connection for one subscription; the caller closes it"""
    redis_url = os.getenv("REDIS_URL")
    if redis_url:
        return aioredis.from_url(redis_url, decode_responses=True)
    return aioredis.Redis(
        host=os.getenv("REDIS_HOST", "localhost"),
        port=int(os.getenv("REDIS_PORT", "6379")),
        password=os.getenv("REDIS_PASSWORD"),
        db=int(os.getenv("REDIS_DB", "0")),
        ssl=os.getenv("REDIS_SSL", "false").lower() == "true",
        decode_responses=True,
    )


class GuestChangeSubscription:
    """One console session's view of its host channel"""

    def __init__(self, pubsub):
        self._pubsub = pubsub

    async def next_change(self, timeout: float) -> Optional[GuestChange]:
        """Wait up to ``timeout`` seconds for the next change"""
        message = await self._pubsub.get_message(ignore_subscribe_messages=True, timeout=timeout)
        if not message or message.get("type") != "message":
            return None
        try:
            return GuestChange.from_json(message["data"])
        except (TypeError, ValueError) as e:
            logger.warning(f"⚠️ Ignoring malformed change event: {e}")
            return None


class ChangeFeed:
    """Publishes guest changes and opens per-session subscriptions"""

    def __init__(self, redis_factory=get_redis_client, async_redis_factory=get_async_redis_client):
        self._redis_factory = redis_factory
        self._async_redis_factory = async_redis_factory

    def publish(self, change: GuestChange) -> None:
        """Best-effort publish; a feed outage never fails the write that caused it"""
        try:
            receivers = self._redis_factory().publish(channel_for(change.owner_id), change.to_json())
            logger.debug(f"🔔 Published {change.event} for guest {change.new.get('id')} to {receivers} console(s)")
        except Exception as e:
            logger.warning(f"⚠️ Failed to publish guest change: {e}")

    @asynccontextmanager
    async def subscribe(self, owner_id: int) -> AsyncIterator[GuestChangeSubscription]:
        client = self._async_redis_factory()
        pubsub = client.pubsub()
        channel = channel_for(owner_id)
        await pubsub.subscribe(channel)
        logger.info(f"🔔 Console subscribed to {channel}")
        try:
            yield GuestChangeSubscription(pubsub)
        finally:
            await pubsub.unsubscribe(channel)
            await pubsub.aclose()
            await client.aclose()
            logger.info(f"🔕 Console unsubscribed from {channel}")


def get_change_feed() -> ChangeFeed:
    """Dependency provider for the change feed"""
    return ChangeFeed()
