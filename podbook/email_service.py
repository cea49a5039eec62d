"""
Transactional email via Resend.
Templates are written in MJML and compiled to HTML before sending.
"""

import asyncio
import logging
from datetime import date
from io import StringIO
from typing import Optional, Union

import resend
from mjml import mjml_to_html

from .config import EMAIL_FROM_ADDRESS, RESEND_API_KEY
from .email_templates import guest_invitation_template
from .errors import DeliveryError

logger = logging.getLogger(__name__)

resend.api_key = RESEND_API_KEY


def format_long_date(value: date) -> str:
    """Format a date the way invitations and booking pages show it, e.g. Monday, March 3, 2025"""
    return f"{value:%A}, {value:%B} {value.day}, {value.year}"


def compile_mjml_to_html(mjml_content: str) -> str:
    """Compile MJML template to production-ready HTML"""
    try:
        result = mjml_to_html(StringIO(mjml_content))
    except Exception as e:
        logger.error(f"MJML compilation error: {e}")
        raise DeliveryError(f"Failed to compile email template: {e}") from e

    if result.errors:
        logger.warning(f"MJML compilation warnings: {result.errors}")
    return result.html


async def send_email(
    to: Union[str, list[str]],
    subject: str,
    mjml_content: str,
    from_address: Optional[str] = None,
) -> dict:
    """
    Send an email through Resend

    Args:
        to: Recipient email(s)
        subject: Email subject line
        mjml_content: MJML template content (will be compiled to HTML)
        from_address: Optional custom from address

    Returns:
        Send response dict

    Raises:
        DeliveryError: If no provider is configured or the provider fails
    """
    if not RESEND_API_KEY:
        logger.error("❌ No email service configured - RESEND_API_KEY missing")
        raise DeliveryError("Email service not configured")

    # Both the compiler and the Resend client block; keep them off the event loop
    html_content = await asyncio.to_thread(compile_mjml_to_html, mjml_content)
    recipients = [to] if isinstance(to, str) else to

    try:
        logger.info(f"📧 Sending email via Resend to: {recipients}")
        response = await asyncio.to_thread(
            resend.Emails.send,
            {
                "from": from_address or EMAIL_FROM_ADDRESS,
                "to": recipients,
                "subject": subject,
                "html": html_content,
            },
        )
        logger.info(f"✅ Email sent successfully via Resend: {response}")
        return response
    except Exception as e:
        logger.error(f"❌ Email send error to {recipients}: {e}")
        raise DeliveryError(f"Failed to send email: {e}") from e


async def send_guest_invitation_email(
    to: str,
    guest_name: str,
    host_name: str,
    episode_title: str,
    episode_description: str,
    episode_date: date,
    booking_url: str,
) -> dict:
    """Send the booking link for one episode to one guest"""
    mjml_content = guest_invitation_template(
        guest_name=guest_name,
        host_name=host_name,
        episode_title=episode_title,
        episode_description=episode_description,
        episode_date=format_long_date(episode_date),
        booking_url=booking_url,
    )
    return await send_email(
        to=to,
        subject=f'🎙️ You\'re invited to "{episode_title}" Podcast',
        mjml_content=mjml_content,
    )
