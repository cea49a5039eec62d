"""Tests for the host profile endpoints."""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from podbook.models import Host
from podbook.routes.users import initials_for


class TestInitials:
    """Tests for avatar initials."""

    @pytest.mark.parametrize(
        ("first", "last", "email", "expected"),
        [
            ("ada", "lovelace", "ada@example.com", "AL"),
            ("Ada", None, "ada@example.com", "A"),
            (None, "Lovelace", None, "L"),
            ("", "  ", "zed@example.com", "Z"),
            (None, None, None, "U"),
            (None, None, "", "U"),
        ],
    )
    def test_initials(self, first, last, email, expected) -> None:
        """Name initials first, then the email, then a placeholder."""
        assert initials_for(first, last, email) == expected


class TestProfile:
    """Tests for /users/me."""

    def test_get_profile(self, client: TestClient) -> None:
        """The profile carries the display name and initials."""
        body = client.get("/users/me").json()
        assert body["email"] == "host@example.com"
        assert body["display_name"] == "Ada Lovelace"
        assert body["initials"] == "AL"

    def test_patch_profile(self, client: TestClient, db: Session, host: Host) -> None:
        """Only the provided fields change."""
        response = client.patch("/users/me", json={"bio": "  Host of AI Future  "})
        assert response.status_code == 200
        assert response.json()["bio"] == "Host of AI Future"
        assert response.json()["first_name"] == "Ada"

        db.expire_all()
        assert db.get(Host, host.id).bio == "Host of AI Future"

    def test_clearing_last_name_changes_display_name(self, client: TestClient) -> None:
        """Without both names guests see a generic host label."""
        body = client.patch("/users/me", json={"last_name": ""}).json()
        assert body["last_name"] is None
        assert body["display_name"] == "Your host"
        assert body["initials"] == "A"
