"""Error taxonomy for the booking service.

Each error carries the HTTP status it maps to; ``main`` registers a single
handler that renders any of them as ``{"detail": message}``.
"""

from typing import Optional


class PodbookError(Exception):
    """Base class for errors raised by the booking service."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"detail": self.message}


class ValidationError(PodbookError):
    """A required form field is missing or too short."""

    status_code = 422

    def __init__(self, message: str, fields: Optional[dict[str, str]] = None):
        super().__init__(message)
        self.fields = fields or {}

    def to_dict(self) -> dict:
        return {"detail": self.message, "fields": self.fields}


class BadRequestError(PodbookError):
    """Malformed input on a public endpoint."""

    status_code = 400


class NotFoundError(PodbookError):
    """Unknown episode or guest."""

    status_code = 404


class AuthError(PodbookError):
    """No authenticated host session."""

    status_code = 401


class DeliveryError(PodbookError):
    """The email provider rejected or failed a send.

    The guest row is already committed when this is raised.
    """

    status_code = 502

    def __init__(self, message: str, guest_id: Optional[str] = None):
        super().__init__(message)
        self.guest_id = guest_id


class PersistenceError(PodbookError):
    """A store write failed and was rolled back."""

    status_code = 500
