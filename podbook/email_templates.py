"""
MJML Email Templates
Guest-facing emails rendered with MJML for responsive, cross-client compatibility
"""

from typing import Optional

from .utils.sanitization import escape_or_empty

# Podcast booking palette - Blue/Slate
THEME = {
    "primary": "#2563eb",
    "primary_dark": "#1d4ed8",
    "background": "#f8f9fa",
    "card_bg": "#ffffff",
    "panel_bg": "#f1f5f9",
    "text_primary": "#333333",
    "text_secondary": "#334155",
    "text_muted": "#666666",
    "text_faint": "#999999",
    "border": "#e2e8f0",
}


def get_base_template(
    title: str,
    preview_text: str,
    content_sections: str,
    cta_url: Optional[str] = None,
    cta_label: Optional[str] = None,
) -> str:
    """Base MJML template wrapper for all emails"""

    cta_section = ""
    if cta_url and cta_label:
        cta_section = f"""
        <mj-section background-color="{THEME['card_bg']}" padding="10px 0 30px 0">
          <mj-column>
            <mj-button
              href="{escape_or_empty(cta_url)}"
              background-color="{THEME['primary']}"
              color="#ffffff"
              border-radius="6px"
              padding="12px 24px"
              font-size="16px">
              {cta_label}
            </mj-button>
          </mj-column>
        </mj-section>
        """

    return f"""
    <mjml>
      <mj-head>
        <mj-title>{escape_or_empty(title)}</mj-title>
        <mj-preview>{escape_or_empty(preview_text)}</mj-preview>
        <mj-attributes>
          <mj-all font-family="Arial, sans-serif" />
          <mj-text font-size="16px" line-height="1.6" color="{THEME['text_secondary']}" />
        </mj-attributes>
      </mj-head>
      <mj-body background-color="{THEME['background']}">
        <mj-section background-color="{THEME['card_bg']}" padding="20px">
          <mj-column>
            <mj-text align="center" font-size="28px" font-weight="700" color="{THEME['text_primary']}">
              🎙️ {escape_or_empty(title)}
            </mj-text>
            {content_sections}
          </mj-column>
        </mj-section>

        {cta_section}

        <mj-section padding="20px">
          <mj-column>
            <mj-text align="center" font-size="12px" color="{THEME['text_faint']}">
              This invitation was sent via Podcast Booking System
            </mj-text>
          </mj-column>
        </mj-section>
      </mj-body>
    </mjml>
    """


def guest_invitation_template(
    guest_name: str,
    host_name: str,
    episode_title: str,
    episode_description: str,
    episode_date: str,
    booking_url: str,
) -> str:
    """Invitation asking a guest to pick one of the episode's time slots"""
    content_sections = f"""
    <mj-text font-size="22px" font-weight="600" color="{THEME['text_primary']}">
      You're Invited!
    </mj-text>
    <mj-text>
      Hi {escape_or_empty(guest_name)},
    </mj-text>
    <mj-text>
      {escape_or_empty(host_name)} has invited you to be a guest on their podcast:
    </mj-text>
    <mj-text container-background-color="{THEME['panel_bg']}" padding="15px">
      <h3 style="margin-top: 0; color: {THEME['primary']};">{escape_or_empty(episode_title)}</h3>
      <p style="color: {THEME['text_muted']};">{escape_or_empty(episode_description)}</p>
      <p><strong>Date:</strong> {escape_or_empty(episode_date)}</p>
    </mj-text>
    <mj-text color="{THEME['text_muted']}" font-size="14px">
      Click the button below to view available time slots and confirm your participation.
      If you have any questions, feel free to reply to this email.
    </mj-text>
    """

    return get_base_template(
        title="Podcast Invitation",
        preview_text=f'{host_name} invited you to "{episode_title}"',
        content_sections=content_sections,
        cta_url=booking_url,
        cta_label="Choose Your Time Slot",
    )
