"""Shared validation utilities"""

import re
import uuid
from typing import Optional


def validate_uuid(value: Optional[str]) -> bool:
    """Validate UUID format"""
    try:
        uuid.UUID(value)
        return True
    except (ValueError, AttributeError, TypeError):
        return False


def validate_email(email: Optional[str]) -> Optional[str]:
    """
    Validate email format.

    Args:
        email: Email address string

    Returns:
        Lowercase email address

    Raises:
        ValueError: If email format is invalid
    """
    if not email:
        return email

    email = email.strip().lower()

    # Basic email validation pattern
    email_pattern = r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"

    if not re.match(email_pattern, email):
        raise ValueError("Invalid email format")

    return email


def require_text(value: Optional[str], label: str) -> str:
    """Strip a required text field, rejecting blanks"""
    if value is None or not str(value).strip():
        raise ValueError(f"{label} is required")
    return str(value).strip()


def clean_time_slots(slots: Optional[list[str]]) -> list[str]:
    """
    Normalize slot labels entered on the create-episode form.

    Labels are stripped and blank entries dropped; the remaining order is kept
    as entered. Duplicates are left to the caller.

    Raises:
        ValueError: If no usable slot remains
    """
    cleaned = [str(slot).strip() for slot in (slots or []) if slot is not None and str(slot).strip()]
    if not cleaned:
        raise ValueError("Please add at least one time slot")
    return cleaned
