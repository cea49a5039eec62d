"""
Row-Level Security helpers.

Host requests run with ``app.current_user_id`` set so the owner policies
installed by ``migrations/enable_row_level_security.py`` filter episodes and
guests. Only PostgreSQL understands these settings; other dialects rely on the
owner filters in the repositories alone.
"""

import logging

from sqlalchemy import text
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)


def _supports_rls(db: Session) -> bool:
    return db.get_bind().dialect.name == "postgresql"


def set_rls_context(db: Session, user_id: int) -> None:
    """
    Set the RLS context for a database session.

    Args:
        db: SQLAlchemy database session
        user_id: ID of the authenticated host
    """
    if not _supports_rls(db):
        return
    try:
        db.execute(
            text("SELECT set_config('app.current_user_id', :user_id, false)"),
            {"user_id": str(user_id)},
        )
        logger.debug(f"RLS context set for user_id={user_id}")
    except Exception as e:
        logger.error(f"Failed to set RLS context for user_id={user_id}: {e}")
        raise


def set_guest_context(db: Session, guest_id: str) -> None:
    """
    Scope the current transaction to a single guest booking link.

    The guest policies only expose the guest row whose id matches and the
    episode it belongs to. The setting is transaction-local so it never
    outlives the booking request on a pooled connection.
    """
    if not _supports_rls(db):
        return
    try:
        db.execute(
            text("SELECT set_config('app.guest_id', :guest_id, true)"),
            {"guest_id": guest_id},
        )
        logger.debug(f"RLS guest context set for guest_id={guest_id}")
    except Exception as e:
        logger.error(f"Failed to set RLS guest context for guest_id={guest_id}: {e}")
        raise
