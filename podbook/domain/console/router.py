"""Console router - live dashboard updates as server-sent events"""

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse

from ... import config
from ...auth import get_current_user
from ...database import SessionLocal
from ...models import Host
from ...realtime import ChangeFeed, get_change_feed
from ...security_middleware import set_rls_context
from ..episodes.service import EpisodeService
from .service import ConsoleStream

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/console", tags=["Console"])


def get_session_factory():
    """Sessions for the stream are opened per snapshot; the request session ends with the handshake"""
    return SessionLocal


@router.get("/events")
async def console_events(
    request: Request,
    current_user: Host = Depends(get_current_user),
    feed: ChangeFeed = Depends(get_change_feed),
    session_factory=Depends(get_session_factory),
):
    """Stream dashboard snapshots and guest confirmation notifications"""
    owner_id = current_user.id

    def load_snapshot() -> list[dict]:
        db = session_factory()
        try:
            # Fresh session per snapshot, so the owner policies need the host again
            set_rls_context(db, owner_id)
            summaries = EpisodeService(db).summaries_for_owner(owner_id)
            return [summary.model_dump(mode="json") for summary in summaries]
        finally:
            db.close()

    async def event_stream():
        async with feed.subscribe(owner_id) as subscription:
            stream = ConsoleStream(
                load_snapshot=load_snapshot,
                subscription=subscription,
                reconcile_seconds=config.CONSOLE_RECONCILE_SECONDS,
                is_disconnected=request.is_disconnected,
            )
            async for chunk in stream.events():
                yield chunk

    logger.info(f"🔔 Console stream opened for user {owner_id}")
    return StreamingResponse(
        event_stream(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )
