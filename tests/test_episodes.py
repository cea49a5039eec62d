"""Tests for the episode API and the dashboard read model."""

import datetime as dt

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from podbook.domain.episodes.service import EpisodeService
from podbook.domain.guests.service import GuestService
from podbook.domain.guests.state import Confirmed, Declined
from podbook.errors import NotFoundError, ValidationError
from podbook.models import Host

EPISODE_FORM = {
    "title": "AI Future",
    "description": "Where machine learning is heading",
    "date": "2025-03-03",
    "time_slots": ["10:00-11:00", "14:00-15:00"],
}


class TestCreateEpisode:
    """Tests for POST /episodes."""

    def test_create_then_list_shows_one_episode_without_guests(self, client: TestClient) -> None:
        """A new episode is listed for its owner with no guests yet."""
        response = client.post("/episodes", json=EPISODE_FORM)
        assert response.status_code == 201
        created = response.json()
        assert created["title"] == "AI Future"
        assert created["time_slots"] == ["10:00-11:00", "14:00-15:00"]

        episodes = client.get("/episodes").json()
        assert len(episodes) == 1
        assert episodes[0]["id"] == created["id"]
        assert episodes[0]["guest_count"] == 0
        assert episodes[0]["confirmed_guests"] == 0
        assert episodes[0]["pending_guests"] == 0

    def test_slots_keep_input_order_and_drop_blanks(self, client: TestClient) -> None:
        """Slot labels are stripped, blanks dropped, order kept, duplicates allowed."""
        form = dict(EPISODE_FORM, time_slots=[" 16:00-17:00 ", "", "09:00-10:00", "   ", "09:00-10:00"])
        response = client.post("/episodes", json=form)
        assert response.status_code == 201
        assert response.json()["time_slots"] == ["16:00-17:00", "09:00-10:00", "09:00-10:00"]

    def test_title_and_description_are_stripped(self, client: TestClient) -> None:
        """Surrounding whitespace is not stored."""
        form = dict(EPISODE_FORM, title="  AI Future  ", description="\tDeep dive\n")
        body = client.post("/episodes", json=form).json()
        assert body["title"] == "AI Future"
        assert body["description"] == "Deep dive"

    def test_empty_form_reports_every_field(self, client: TestClient) -> None:
        """All missing fields come back together, keyed by field name."""
        response = client.post("/episodes", json={})
        assert response.status_code == 422
        body = response.json()
        assert set(body["fields"]) == {"title", "description", "date", "time_slots"}
        assert body["fields"]["title"] == "Episode title is required"

    def test_blank_slots_are_rejected(self, client: TestClient) -> None:
        """A list of only blank labels counts as no slots."""
        response = client.post("/episodes", json=dict(EPISODE_FORM, time_slots=["", "  "]))
        assert response.status_code == 422
        assert response.json()["fields"] == {"time_slots": "Please add at least one time slot"}

    def test_whitespace_title_is_rejected(self, client: TestClient) -> None:
        """A title of only spaces is treated as missing."""
        response = client.post("/episodes", json=dict(EPISODE_FORM, title="   "))
        assert response.status_code == 422
        assert "title" in response.json()["fields"]

    def test_invalid_date_is_rejected(self, client: TestClient) -> None:
        """Dates must be calendar dates."""
        response = client.post("/episodes", json=dict(EPISODE_FORM, date="not-a-date"))
        assert response.status_code == 422
        assert "date" in response.json()["fields"]


class TestEpisodeService:
    """Tests for EpisodeService directly."""

    def test_create_raises_validation_error(self, db: Session, host: Host) -> None:
        """The service raises ValidationError with per-field messages."""
        with pytest.raises(ValidationError) as exc_info:
            EpisodeService(db).create_episode(host, "", "desc", dt.date(2025, 1, 1), [])
        assert set(exc_info.value.fields) == {"title", "time_slots"}

    def test_list_orders_by_date(self, db: Session, host: Host) -> None:
        """Episodes are listed by recording date ascending."""
        service = EpisodeService(db)
        for title, day in [("Late", 20), ("Early", 5), ("Middle", 10)]:
            service.create_episode(host, title, "desc", dt.date(2025, 6, day), ["10:00"])

        titles = [episode.title for episode in service.list_episodes(host)]
        assert titles == ["Early", "Middle", "Late"]

    def test_counts_are_computed_from_guest_rows(self, db: Session, host: Host, episode) -> None:
        """Guest counts reflect every guest status."""
        guests = GuestService(db)
        jane = guests.create_guest(episode, "Jane", "jane@x.com")
        bob = guests.create_guest(episode, "Bob", "bob@x.com")
        guests.create_guest(episode, "Cy", "cy@x.com")
        guests.submit_decision(jane.id, Confirmed("10:00-11:00"))
        guests.submit_decision(bob.id, Declined("conflict"))

        (summary,) = EpisodeService(db).list_episodes(host)
        assert summary.guest_count == 3
        assert summary.confirmed_guests == 1
        assert summary.declined_guests == 1
        assert summary.pending_guests == 1

    def test_summaries_for_vanished_owner_are_empty(self, db: Session, episode) -> None:
        """An owner id with no host row yields an empty dashboard, not an error."""
        assert EpisodeService(db).summaries_for_owner(9999) == []

    def test_summaries_for_owner_match_list_episodes(self, db: Session, host: Host, episode) -> None:
        """Listing by id and by host give the same rows."""
        service = EpisodeService(db)
        assert service.summaries_for_owner(host.id) == service.list_episodes(host)

    def test_stats_count_only_future_episodes_as_upcoming(self, db: Session, host: Host) -> None:
        """Upcoming means strictly after today."""
        service = EpisodeService(db)
        today = dt.date(2025, 6, 10)
        service.create_episode(host, "Past", "desc", dt.date(2025, 6, 1), ["10:00"])
        service.create_episode(host, "Today", "desc", today, ["10:00"])
        future = service.create_episode(host, "Future", "desc", dt.date(2025, 6, 20), ["10:00"])
        GuestService(db).create_guest(future, "Jane", "jane@x.com")

        stats = service.get_stats(host, today=today)
        assert stats.total_episodes == 3
        assert stats.upcoming_episodes == 1
        assert stats.total_guests == 1


class TestEpisodeOwnership:
    """Hosts only see their own episodes."""

    def test_other_hosts_episodes_are_not_listed(self, db: Session, other_host: Host, client: TestClient) -> None:
        """Another host's episode does not appear in the listing."""
        EpisodeService(db).create_episode(other_host, "Theirs", "desc", dt.date(2025, 1, 1), ["10:00"])
        assert client.get("/episodes").json() == []

    def test_other_hosts_episode_is_not_found(self, db: Session, other_host: Host, client: TestClient) -> None:
        """Fetching another host's episode answers 404."""
        theirs = EpisodeService(db).create_episode(other_host, "Theirs", "desc", dt.date(2025, 1, 1), ["10:00"])
        response = client.get(f"/episodes/{theirs.id}")
        assert response.status_code == 404
        assert response.json() == {"detail": "Episode not found"}

    def test_get_episode_service_raises_not_found(self, db: Session, host: Host) -> None:
        """Unknown ids raise NotFoundError."""
        with pytest.raises(NotFoundError):
            EpisodeService(db).get_episode("missing", host)


class TestEpisodeGuests:
    """Tests for GET /episodes/{id}/guests."""

    def test_lists_guest_responses(self, db: Session, episode, client: TestClient) -> None:
        """The details dialog shows each guest's answer."""
        guests = GuestService(db)
        jane = guests.create_guest(episode, "Jane", "jane@x.com")
        guests.submit_decision(jane.id, Declined("conflict"))

        response = client.get(f"/episodes/{episode.id}/guests")
        assert response.status_code == 200
        (row,) = response.json()
        assert row["name"] == "Jane"
        assert row["status"] == "declined"
        assert row["rejection_note"] == "conflict"
        assert row["selected_time_slot"] is None

    def test_stats_endpoint(self, episode, client: TestClient) -> None:
        """The stats endpoint returns the dashboard card numbers."""
        body = client.get("/episodes/stats").json()
        assert body["total_episodes"] == 1
        assert body["total_guests"] == 0
