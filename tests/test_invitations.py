"""Tests for guest invitations."""

import asyncio
import datetime as dt
import time

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from conftest import BASE_URL, FakeFeed, FakeSender
from podbook import email_service
from podbook.domain.episodes.service import EpisodeService
from podbook.domain.invitations.schemas import GuestInvite
from podbook.domain.invitations.service import InvitationService, booking_url
from podbook.errors import DeliveryError, NotFoundError
from podbook.models import EpisodeGuest, Host


def _guests(db: Session) -> list[EpisodeGuest]:
    db.expire_all()
    return db.query(EpisodeGuest).all()


class TestSendInvitation:
    """Tests for POST /send-invitation."""

    def test_invite_creates_pending_guest_and_sends_email(
        self, client: TestClient, db: Session, episode, sender: FakeSender
    ) -> None:
        """The guest row is pending and one email is attempted with the booking link."""
        response = client.post(
            "/send-invitation",
            json={"episodeId": episode.id, "guestName": "Jane", "guestEmail": "jane@x.com"},
        )
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Invitation sent successfully"

        (guest,) = _guests(db)
        assert guest.id == body["guestId"]
        assert guest.status == "pending"
        assert guest.selected_time_slot is None
        assert guest.rejection_note is None

        (call,) = sender.calls
        assert call["to"] == "jane@x.com"
        assert call["guest_name"] == "Jane"
        assert call["host_name"] == "Ada Lovelace"
        assert call["episode_title"] == "AI Future"
        assert call["episode_date"] == dt.date(2025, 3, 3)
        assert call["booking_url"] == f"{BASE_URL}/guest-booking/{guest.id}"

    def test_insert_is_published(self, client: TestClient, episode, feed: FakeFeed, host: Host) -> None:
        """The new guest shows up on the owner's change feed."""
        client.post(
            "/send-invitation",
            json={"episodeId": episode.id, "guestName": "Jane", "guestEmail": "jane@x.com"},
        )
        (change,) = feed.published
        assert change.event == "INSERT"
        assert change.owner_id == host.id
        assert change.new["status"] == "pending"

    def test_delivery_failure_keeps_guest(
        self, client: TestClient, db: Session, episode, sender: FakeSender
    ) -> None:
        """A failed send answers 500 with the guest id; the guest row stays."""
        sender.failing.add("jane@x.com")
        response = client.post(
            "/send-invitation",
            json={"episodeId": episode.id, "guestName": "Jane", "guestEmail": "jane@x.com"},
        )
        assert response.status_code == 500
        body = response.json()
        assert "error" in body

        (guest,) = _guests(db)
        assert body["guestId"] == guest.id
        assert guest.status == "pending"

    def test_unknown_episode(self, client: TestClient, sender: FakeSender) -> None:
        """Unknown episodes answer 500 with an error and send nothing."""
        response = client.post(
            "/send-invitation",
            json={"episodeId": "missing", "guestName": "Jane", "guestEmail": "jane@x.com"},
        )
        assert response.status_code == 500
        assert response.json() == {"error": "Episode not found"}
        assert sender.calls == []

    def test_invalid_email_is_rejected(self, client: TestClient, episode, sender) -> None:
        """Malformed addresses fail with the trigger's own {"error"} body."""
        response = client.post(
            "/send-invitation",
            json={"episodeId": episode.id, "guestName": "Jane", "guestEmail": "jane"},
        )
        assert response.status_code == 500
        assert response.json() == {"error": "Invalid email format"}
        assert response.headers["access-control-allow-origin"] == "*"
        assert sender.calls == []

    def test_missing_field_is_rejected(self, client: TestClient, episode) -> None:
        """A body without a guest name names the missing field."""
        response = client.post("/send-invitation", json={"episodeId": episode.id, "guestEmail": "jane@x.com"})
        assert response.status_code == 500
        assert response.json() == {"error": "guestName is required"}


class TestBatchInvitations:
    """Tests for POST /episodes/{id}/invitations."""

    def test_partial_failure_warns_and_keeps_successes(
        self, client: TestClient, db: Session, episode, sender: FakeSender
    ) -> None:
        """One failed email does not block the other invitation."""
        sender.failing.add("bob@x.com")
        response = client.post(
            f"/episodes/{episode.id}/invitations",
            json={"guests": [{"name": "Jane", "email": "jane@x.com"}, {"name": "Bob", "email": "bob@x.com"}]},
        )
        assert response.status_code == 200
        body = response.json()
        assert body["warning"] == "1 of 2 invitations could not be sent"
        assert len(body["sent"]) == 1
        (failed,) = body["failed"]
        assert failed["email"] == "bob@x.com"

        guests = {guest.email: guest for guest in _guests(db)}
        assert guests["jane@x.com"].id == body["sent"][0]
        assert guests["jane@x.com"].status == "pending"
        # Invited but not notified
        assert guests["bob@x.com"].id == failed["guestId"]
        assert len(sender.calls) == 2

    def test_all_sent_has_no_warning(self, client: TestClient, episode) -> None:
        """A clean batch reports every guest as sent."""
        response = client.post(
            f"/episodes/{episode.id}/invitations",
            json={"guests": [{"name": "Jane", "email": "jane@x.com"}]},
        )
        body = response.json()
        assert len(body["sent"]) == 1
        assert body["failed"] == []
        assert body["warning"] is None

    def test_empty_batch_is_rejected(self, client: TestClient, episode) -> None:
        """At least one guest is required."""
        response = client.post(f"/episodes/{episode.id}/invitations", json={"guests": []})
        assert response.status_code == 422

    def test_other_hosts_episode(self, client: TestClient, db: Session, other_host: Host) -> None:
        """Inviting to someone else's episode is not found."""
        theirs = EpisodeService(db).create_episode(other_host, "Theirs", "desc", dt.date(2025, 1, 1), ["10:00"])
        response = client.post(
            f"/episodes/{theirs.id}/invitations",
            json={"guests": [{"name": "Jane", "email": "jane@x.com"}]},
        )
        assert response.status_code == 404


class TestInvitationService:
    """Tests for InvitationService directly."""

    def test_host_name_falls_back(self, db: Session, other_host: Host) -> None:
        """Hosts without a full name are presented generically."""
        episode = EpisodeService(db).create_episode(other_host, "Show", "desc", dt.date(2025, 1, 1), ["10:00"])
        sender = FakeSender()
        service = InvitationService(db, send_invitation=sender, base_url=BASE_URL)

        asyncio.run(service.invite(episode.id, "Jane", "jane@x.com"))
        assert sender.calls[0]["host_name"] == "Your host"

    def test_delivery_error_carries_guest_id(self, db: Session, episode) -> None:
        """DeliveryError names the guest that was saved."""
        service = InvitationService(db, send_invitation=FakeSender(failing=("jane@x.com",)), base_url=BASE_URL)

        with pytest.raises(DeliveryError) as exc_info:
            asyncio.run(service.invite(episode.id, "Jane", "jane@x.com"))
        assert exc_info.value.guest_id == db.query(EpisodeGuest).one().id

    def test_unknown_episode_raises(self, db: Session) -> None:
        """Missing episodes raise NotFoundError before anything is written."""
        service = InvitationService(db, send_invitation=FakeSender())
        with pytest.raises(NotFoundError):
            asyncio.run(service.invite("missing", "Jane", "jane@x.com"))
        assert db.query(EpisodeGuest).count() == 0

    def test_batch_dispatches_every_guest(self, db: Session, episode) -> None:
        """Each invite in a batch gets its own guest row."""
        sender = FakeSender(failing=("bob@x.com",))
        service = InvitationService(db, send_invitation=sender, base_url=BASE_URL)
        invites = [GuestInvite(name="Jane", email="jane@x.com"), GuestInvite(name="Bob", email="bob@x.com")]

        result = asyncio.run(service.invite_many(episode.id, invites))
        assert len(result.sent) == 1
        assert len(result.failed) == 1
        assert db.query(EpisodeGuest).count() == 2

    def test_booking_url(self) -> None:
        """Trailing slashes on the base URL are ignored."""
        assert booking_url("abc", "https://example.com/") == "https://example.com/guest-booking/abc"

    def test_batch_sends_do_not_wait_on_each_other(self, db: Session, episode, monkeypatch) -> None:
        """A slow provider call does not serialise the batch."""

        def slow_send(params):
            time.sleep(0.4)
            return {"id": params["to"][0]}

        monkeypatch.setattr(email_service, "RESEND_API_KEY", "re_test")
        monkeypatch.setattr(email_service, "compile_mjml_to_html", lambda mjml: "<html></html>")
        monkeypatch.setattr(email_service.resend.Emails, "send", slow_send)
        service = InvitationService(
            db, send_invitation=email_service.send_guest_invitation_email, base_url=BASE_URL
        )
        invites = [GuestInvite(name=f"Guest {i}", email=f"guest{i}@x.com") for i in range(4)]

        started = time.monotonic()
        result = asyncio.run(service.invite_many(episode.id, invites))
        elapsed = time.monotonic() - started

        assert len(result.sent) == 4
        assert result.failed == []
        assert elapsed < 1.2
