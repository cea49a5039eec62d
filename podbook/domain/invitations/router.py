"""Invitation router - send-invitation trigger and batch invites"""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...config import INVITE_RATE_LIMIT, INVITE_RATE_WINDOW
from ...database import get_db
from ...errors import DeliveryError, PodbookError
from ...models import Host
from ...rate_limiter import create_rate_limiter
from ...realtime import ChangeFeed, get_change_feed
from .schemas import BatchInvitationRequest, BatchInvitationResponse, InvitationRequest, InvitationResponse
from .service import InvitationService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Invitations"])

invite_rate_limit = create_rate_limiter(
    limit=INVITE_RATE_LIMIT, window_seconds=INVITE_RATE_WINDOW, key_prefix="send_invitation"
)


def get_invitation_service(
    db: Session = Depends(get_db),
    feed: ChangeFeed = Depends(get_change_feed),
) -> InvitationService:
    """Dependency injection for InvitationService"""
    return InvitationService(db, feed=feed)


@router.post("/send-invitation", response_model=InvitationResponse)
async def send_invitation(
    data: InvitationRequest,
    current_user: Host = Depends(get_current_user),
    service: InvitationService = Depends(get_invitation_service),
    _: None = Depends(invite_rate_limit),
):
    """Create a guest for an episode and email them a booking link"""
    try:
        guest = await service.invite(data.episodeId, data.guestName, data.guestEmail, owner=current_user)
    except DeliveryError as e:
        return JSONResponse(status_code=500, content={"error": e.message, "guestId": e.guest_id})
    except PodbookError as e:
        logger.error(f"❌ Error in send-invitation: {e.message}")
        return JSONResponse(status_code=500, content={"error": e.message})

    return InvitationResponse(guestId=guest.id)


@router.post("/episodes/{episode_id}/invitations", response_model=BatchInvitationResponse)
async def send_invitations(
    episode_id: str,
    data: BatchInvitationRequest,
    current_user: Host = Depends(get_current_user),
    service: InvitationService = Depends(get_invitation_service),
    _: None = Depends(invite_rate_limit),
):
    """Invite several guests at once; partial failures are reported, not rolled back"""
    return await service.invite_many(episode_id, data.guests, owner=current_user)
