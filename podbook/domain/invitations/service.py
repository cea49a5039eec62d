"""Invitation service - Creates guest records and emails their booking links"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from sqlalchemy.orm import Session

from ... import email_service
from ...config import PUBLIC_BASE_URL
from ...errors import DeliveryError, NotFoundError, PodbookError
from ...models import Episode, EpisodeGuest, Host
from ...realtime import ChangeFeed
from ..episodes.repository import EpisodeRepository
from ..guests.service import GuestService
from .schemas import BatchInvitationResponse, FailedInvitation, GuestInvite

logger = logging.getLogger(__name__)

InvitationSender = Callable[..., Awaitable[dict]]


def booking_url(guest_id: str, base_url: str = PUBLIC_BASE_URL) -> str:
    """The capability link a guest uses to answer"""
    return f"{base_url.rstrip('/')}/guest-booking/{guest_id}"


class InvitationService:
    """
    Dispatches guest invitations.

    A guest row is committed before its email is sent. If the send fails the
    row stays (invited but not notified) and a DeliveryError carrying the new
    guest id is raised; nothing is rolled back or retried.
    """

    def __init__(
        self,
        db: Session,
        send_invitation: InvitationSender = email_service.send_guest_invitation_email,
        feed: Optional[ChangeFeed] = None,
        base_url: str = PUBLIC_BASE_URL,
    ):
        self.db = db
        self.send_invitation = send_invitation
        self.guests = GuestService(db, feed)
        self.base_url = base_url

    def _get_episode(self, episode_id: str, owner: Optional[Host]) -> Episode:
        if owner is not None:
            episode = EpisodeRepository.get_episode_for_owner(self.db, episode_id, owner.id)
        else:
            episode = EpisodeRepository.get_episode(self.db, episode_id)
        if not episode:
            logger.error(f"❌ Episode not found: {episode_id}")
            raise NotFoundError("Episode not found")
        return episode

    def _host_name(self, episode: Episode) -> str:
        # Best-effort: a missing or unreadable profile falls back to the generic label
        try:
            return episode.host.display_name if episode.host else "Your host"
        except Exception as e:
            logger.warning(f"⚠️ Could not load host profile for episode {episode.id}: {e}")
            return "Your host"

    async def _dispatch(self, episode: Episode, host_name: str, name: str, email: str) -> EpisodeGuest:
        guest = self.guests.create_guest(episode, name, email)
        url = booking_url(guest.id, self.base_url)

        try:
            await self.send_invitation(
                to=email,
                guest_name=name,
                host_name=host_name,
                episode_title=episode.title,
                episode_description=episode.description,
                episode_date=episode.date,
                booking_url=url,
            )
        except Exception as e:
            logger.error(f"❌ Invitation email to {email} failed, guest {guest.id} kept: {e}")
            raise DeliveryError(f"Failed to send invitation email: {e}", guest_id=guest.id) from e

        logger.info(f"📧 Invitation sent to {email} for episode {episode.id}")
        return guest

    async def invite(
        self, episode_id: str, guest_name: str, guest_email: str, owner: Optional[Host] = None
    ) -> EpisodeGuest:
        """Invite one guest; ``owner`` restricts the lookup to that host's episodes"""
        logger.info(f"Sending invitation: episode={episode_id} guest={guest_email}")
        episode = self._get_episode(episode_id, owner)
        return await self._dispatch(episode, self._host_name(episode), guest_name, guest_email)

    async def invite_many(
        self, episode_id: str, invites: list[GuestInvite], owner: Optional[Host] = None
    ) -> BatchInvitationResponse:
        """Invite several guests concurrently; one failure never blocks the others"""
        episode = self._get_episode(episode_id, owner)
        host_name = self._host_name(episode)

        results = await asyncio.gather(
            *(self._dispatch(episode, host_name, invite.name, invite.email) for invite in invites),
            return_exceptions=True,
        )

        sent: list[str] = []
        failed: list[FailedInvitation] = []
        for invite, result in zip(invites, results):
            if isinstance(result, EpisodeGuest):
                sent.append(result.id)
            elif isinstance(result, PodbookError):
                failed.append(
                    FailedInvitation(
                        email=invite.email,
                        error=result.message,
                        guestId=getattr(result, "guest_id", None),
                    )
                )
            else:
                logger.error(f"❌ Unexpected invitation failure for {invite.email}: {result}")
                failed.append(FailedInvitation(email=invite.email, error="Unexpected error"))

        warning = None
        if failed:
            warning = f"{len(failed)} of {len(invites)} invitations could not be sent"
            logger.warning(f"⚠️ {warning} for episode {episode_id}")

        return BatchInvitationResponse(sent=sent, failed=failed, warning=warning)
