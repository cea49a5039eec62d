"""Invitation schemas"""

from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...shared.validators import require_text, validate_email


class GuestInvite(BaseModel):
    name: str
    email: str

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        return require_text(v, "Guest name")

    @field_validator("email")
    @classmethod
    def validate_guest_email(cls, v):
        return validate_email(require_text(v, "Guest email"))


class InvitationRequest(BaseModel):
    """Body of the send-invitation trigger"""

    episodeId: str
    guestName: str
    guestEmail: str

    @field_validator("guestName")
    @classmethod
    def validate_name(cls, v):
        return require_text(v, "Guest name")

    @field_validator("guestEmail")
    @classmethod
    def validate_guest_email(cls, v):
        return validate_email(require_text(v, "Guest email"))


class InvitationResponse(BaseModel):
    success: bool = True
    guestId: str
    message: str = "Invitation sent successfully"


class BatchInvitationRequest(BaseModel):
    guests: list[GuestInvite] = Field(min_length=1)


class FailedInvitation(BaseModel):
    email: str
    error: str
    guestId: Optional[str] = None  # Set when the guest row was saved but the email was not delivered


class BatchInvitationResponse(BaseModel):
    sent: list[str]
    failed: list[FailedInvitation]
    warning: Optional[str] = None
