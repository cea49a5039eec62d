"""
Guest booking router - the public page behind each invitation link.

No session is involved: the guest id in the path is the only credential, and
every query made here is restricted to that one guest.
"""

import json
import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse, JSONResponse, PlainTextResponse
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session

from ... import config
from ...database import get_db
from ...errors import BadRequestError, NotFoundError
from ...rate_limiter import create_rate_limiter
from ...realtime import ChangeFeed, get_change_feed
from ...shared.validators import validate_uuid
from ..guests.service import GuestService
from .pages import render_booking_page, render_not_found_page
from .schemas import BookingUpdateRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/guest-booking", tags=["Guest Booking"])

booking_rate_limit = create_rate_limiter(
    limit=config.BOOKING_RATE_LIMIT,
    window_seconds=config.BOOKING_RATE_WINDOW,
    key_prefix="guest_booking",
)


def get_booking_service(
    db: Session = Depends(get_db),
    feed: ChangeFeed = Depends(get_change_feed),
) -> GuestService:
    """Dependency injection for the guest-side GuestService"""
    return GuestService(db, feed)


@router.get("/{guest_id}", response_class=HTMLResponse)
async def booking_page(
    guest_id: str,
    service: GuestService = Depends(get_booking_service),
    _: None = Depends(booking_rate_limit),
):
    """Render the invitation: slot choices while pending, otherwise the recorded answer"""
    if not validate_uuid(guest_id):
        return PlainTextResponse("Invalid guest id", status_code=400)

    logger.info(f"Fetching guest booking details for {guest_id}")
    try:
        guest = service.get_guest(guest_id)
    except NotFoundError:
        logger.warning(f"⚠️ Booking page requested for unknown guest {guest_id}")
        return HTMLResponse(render_not_found_page())
    except Exception as e:
        logger.error(f"❌ Error loading guest booking {guest_id}: {e}")
        return JSONResponse(status_code=500, content={"error": "Failed to load invitation"})

    return HTMLResponse(render_booking_page(guest))


@router.post("/{guest_id}")
async def submit_booking(
    guest_id: str,
    request: Request,
    service: GuestService = Depends(get_booking_service),
    _: None = Depends(booking_rate_limit),
):
    """Record the guest's confirm/decline. Callers reload the page to see the new state."""
    if not validate_uuid(guest_id):
        return JSONResponse(status_code=400, content={"error": "Invalid guest id"})

    try:
        payload = await request.json()
        decision = BookingUpdateRequest.model_validate(payload).to_decision()
    except json.JSONDecodeError:
        return JSONResponse(status_code=400, content={"error": "Invalid JSON body"})
    except PydanticValidationError:
        return JSONResponse(status_code=400, content={"error": "Invalid booking request"})
    except ValueError as e:
        # A status/slot combination the booking states do not allow
        return JSONResponse(status_code=400, content={"error": str(e) or "Invalid booking request"})

    logger.info(f"Updating booking for {guest_id}: {decision}")
    try:
        service.submit_decision(
            guest_id, decision, enforce_slot_membership=config.ENFORCE_SLOT_MEMBERSHIP
        )
    except BadRequestError as e:
        return JSONResponse(status_code=400, content={"error": e.message})
    except NotFoundError as e:
        return JSONResponse(status_code=404, content={"error": e.message})
    except Exception as e:
        logger.error(f"❌ Error in guest booking for {guest_id}: {e}")
        return JSONResponse(status_code=500, content={"error": "Failed to update booking"})

    return {"success": True}
