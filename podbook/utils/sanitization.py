import html
from typing import Optional


def sanitize_string(value: Optional[str]) -> Optional[str]:
    """
    Sanitize a string by escaping HTML special characters to prevent XSS.
    Returns None if input is None.
    """
    if value is None:
        return None
    if not isinstance(value, str):
        return value
    return html.escape(str(value), quote=True)


def escape_or_empty(value: Optional[str]) -> str:
    """Escape a value for interpolation into an HTML page, rendering None as empty"""
    return sanitize_string(value) or ""
