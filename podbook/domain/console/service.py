"""
Host console live updates.

The console keeps its dashboard read model fresh by listening to the guest
change feed: every change triggers a re-run of the episode aggregation, and
confirmations additionally raise a transient notification. A full snapshot is
also sent on connect and every ``reconcile_seconds`` in case events were missed.
"""

import asyncio
import json
import logging
from typing import AsyncIterator, Awaitable, Callable, Optional

from redis.exceptions import ConnectionError as RedisConnectionError

from ...realtime import GuestChange

logger = logging.getLogger(__name__)

# Upper bound on how long a quiet stream waits before checking for a disconnect
POLL_SECONDS = 1.0


def is_notable_change(change: GuestChange) -> bool:
    """A guest confirmed: status went pending -> confirmed, or a slot was just picked"""
    if change.event != "UPDATE":
        return False
    old = change.old or {}
    new = change.new or {}
    confirmed_now = old.get("status") == "pending" and new.get("status") == "confirmed"
    slot_picked = not old.get("selected_time_slot") and bool(new.get("selected_time_slot"))
    return confirmed_now or slot_picked


def notification_for(change: GuestChange) -> dict:
    name = change.new.get("name") or "A guest"
    slot = change.new.get("selected_time_slot")
    message = f"{name} confirmed for {slot}" if slot else f"{name} confirmed"
    return {
        "title": "Guest confirmed",
        "message": message,
        "episode_id": change.episode_id,
        "guest_id": change.new.get("id"),
    }


def format_sse(event: str, data) -> str:
    return f"event: {event}\ndata: {json.dumps(data, default=str)}\n\n"


class ConsoleStream:
    """Server-sent events for one open console session"""

    def __init__(
        self,
        load_snapshot: Callable[[], list[dict]],
        subscription,
        reconcile_seconds: float,
        is_disconnected: Optional[Callable[[], Awaitable[bool]]] = None,
        clock: Callable[[], float] = None,
    ):
        self.load_snapshot = load_snapshot
        self.subscription = subscription
        self.reconcile_seconds = reconcile_seconds
        self.is_disconnected = is_disconnected
        self.clock = clock or (lambda: asyncio.get_running_loop().time())

    def _snapshot_event(self) -> str:
        return format_sse("episodes", self.load_snapshot())

    async def events(self) -> AsyncIterator[str]:
        yield self._snapshot_event()
        next_reconcile = self.clock() + self.reconcile_seconds

        while True:
            if self.is_disconnected is not None and await self.is_disconnected():
                logger.info("Console stream closed by client")
                return

            timeout = max(0.0, min(POLL_SECONDS, next_reconcile - self.clock()))
            try:
                change = await self.subscription.next_change(timeout=timeout)
            except (ConnectionError, RedisConnectionError) as e:
                # EventSource clients reconnect on their own and get a fresh snapshot
                logger.warning(f"⚠️ Change feed lost, closing console stream: {e}")
                return

            if change is not None:
                if is_notable_change(change):
                    logger.info(f"🔔 Guest {change.new.get('id')} confirmed")
                    yield format_sse("notification", notification_for(change))
                yield self._snapshot_event()
                next_reconcile = self.clock() + self.reconcile_seconds
            elif self.clock() >= next_reconcile:
                yield self._snapshot_event()
                next_reconcile = self.clock() + self.reconcile_seconds
