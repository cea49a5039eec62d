"""
HTML pages served on the guest booking link.

Everything interpolated from the database is escaped. Rendering depends only
on the guest row, so reloading an unchanged invitation yields the same bytes.
"""

from ...email_service import format_long_date
from ...models import EpisodeGuest
from ...utils.sanitization import escape_or_empty
from ..guests.state import Confirmed, Declined, state_of

PAGE_STYLE = """
    body { font-family: Arial, sans-serif; max-width: 600px; margin: 20px auto; padding: 20px; background: #f8f9fa; }
    .container { background: white; padding: 30px; border-radius: 12px; box-shadow: 0 2px 10px rgba(0,0,0,0.1); }
    .header { text-align: center; margin-bottom: 30px; }
    .episode-info { background: #f1f5f9; padding: 20px; border-radius: 8px; margin: 20px 0; }
    .time-slot { display: block; width: 100%; padding: 12px; margin: 8px 0; border: 2px solid #e2e8f0;
                 border-radius: 6px; background: white; cursor: pointer; }
    .time-slot:hover { border-color: #2563eb; background: #eff6ff; }
    .time-slot.selected { border-color: #2563eb; background: #dbeafe; }
    .button { background: #2563eb; color: white; padding: 12px 24px; border: none; border-radius: 6px;
              cursor: pointer; font-size: 16px; width: 100%; margin: 10px 0; }
    .button:disabled { background: #94a3b8; cursor: not-allowed; }
    .decline-btn { background: #dc2626; }
    .secondary-btn { background: #6b7280; }
    .result { color: #059669; text-align: center; padding: 20px; }
    .guest-name { color: #2563eb; font-weight: bold; }
    #decline-form { display: none; margin-top: 20px; padding: 20px; background: #fef2f2;
                    border-radius: 8px; border: 1px solid #fecaca; }
    #rejection-note { width: 100%; padding: 8px; margin: 10px 0; border-radius: 4px;
                      border: 1px solid #d1d5db; min-height: 80px; }
"""

BOOKING_SCRIPT = """
    let selectedSlot = null;

    async function submitDecision(body, button, idleLabel) {
      button.disabled = true;
      try {
        const response = await fetch(window.location.href, {
          method: 'POST',
          headers: { 'Content-Type': 'application/json' },
          body: JSON.stringify(body)
        });
        if (response.ok) {
          window.location.reload();
          return;
        }
      } catch (error) {}
      alert('Something went wrong. Please try again.');
      button.disabled = false;
      button.textContent = idleLabel;
    }

    document.querySelectorAll('.time-slot').forEach(button => {
      button.addEventListener('click', function () {
        document.querySelectorAll('.time-slot').forEach(b => b.classList.remove('selected'));
        this.classList.add('selected');
        selectedSlot = this.dataset.slot;
        document.getElementById('confirm-btn').disabled = false;
      });
    });

    document.getElementById('confirm-btn')?.addEventListener('click', function () {
      if (!selectedSlot) return;
      this.textContent = 'Confirming...';
      submitDecision({ selectedSlot, status: 'confirmed' }, this, 'Confirm Participation');
    });

    document.getElementById('decline-btn')?.addEventListener('click', function () {
      document.getElementById('decline-form').style.display = 'block';
      this.style.display = 'none';
    });

    document.getElementById('cancel-decline-btn')?.addEventListener('click', function () {
      document.getElementById('decline-form').style.display = 'none';
      document.getElementById('decline-btn').style.display = 'block';
      document.getElementById('rejection-note').value = '';
    });

    document.getElementById('confirm-decline-btn')?.addEventListener('click', function () {
      const rejectionNote = document.getElementById('rejection-note').value.trim();
      this.textContent = 'Declining...';
      submitDecision({ status: 'declined', rejectionNote: rejectionNote || null }, this, 'Confirm Decline');
    });
"""


def _page(title: str, body: str, script: str = "") -> str:
    script_block = f"<script>{script}</script>" if script else ""
    return f"""<!DOCTYPE html>
<html>
<head>
  <title>{escape_or_empty(title)}</title>
  <meta name="viewport" content="width=device-width, initial-scale=1">
  <style>{PAGE_STYLE}</style>
</head>
<body>
{body}
{script_block}
</body>
</html>
"""


def render_not_found_page() -> str:
    body = """
  <div class="container" style="text-align: center;">
    <h1 style="color: #dc2626;">Invitation Not Found</h1>
    <p>The invitation link you used is invalid or has expired.</p>
    <p>Please contact the podcast host for a new invitation.</p>
  </div>"""
    return _page("Invitation Not Found", body)


def _slot_picker(time_slots: list[str]) -> str:
    buttons = "".join(
        f'\n      <button class="time-slot" data-slot="{escape_or_empty(slot)}">{escape_or_empty(slot)}</button>'
        for slot in time_slots
    )
    return f"""
    <div id="booking-form">
      <h3>Choose Your Preferred Time Slot:</h3>{buttons}
      <div style="margin-top: 30px;">
        <button id="confirm-btn" class="button" disabled>Confirm Participation</button>
        <button id="decline-btn" class="button decline-btn">Decline Invitation</button>
      </div>
      <div id="decline-form">
        <h4>Please let us know why you can't attend (optional):</h4>
        <textarea id="rejection-note" placeholder="e.g., Scheduling conflict, not available that week..."></textarea>
        <button id="confirm-decline-btn" class="button decline-btn">Confirm Decline</button>
        <button id="cancel-decline-btn" class="button secondary-btn">Cancel</button>
      </div>
    </div>"""


def render_booking_page(guest: EpisodeGuest) -> str:
    """Page for a found invitation: slot picker while pending, otherwise the recorded answer"""
    episode = guest.episode
    host_name = episode.host.display_name if episode.host else "Your host"
    state = state_of(guest)

    if isinstance(state, Confirmed):
        section = f"""
    <div class="result">
      <h3>✅ Confirmed!</h3>
      <p>You have confirmed your participation for: <strong>{escape_or_empty(state.slot)}</strong></p>
      <p>Thank you! You'll receive more details closer to the recording date.</p>
    </div>"""
        script = ""
    elif isinstance(state, Declined):
        note = f"\n      <p><strong>Note:</strong> {escape_or_empty(state.note)}</p>" if state.note else ""
        section = f"""
    <div class="result">
      <h3>❌ Declined</h3>
      <p>You have declined this invitation. Thank you for letting us know.</p>{note}
    </div>"""
        script = ""
    else:
        section = _slot_picker(list(episode.time_slots or []))
        script = BOOKING_SCRIPT

    body = f"""
  <div class="container">
    <div class="header">
      <h1>🎙️ Podcast Invitation</h1>
      <p>Hello <span class="guest-name">{escape_or_empty(guest.name)}</span>!</p>
    </div>
    <div class="episode-info">
      <h2>{escape_or_empty(episode.title)}</h2>
      <p><strong>Host:</strong> {escape_or_empty(host_name)}</p>
      <p><strong>Date:</strong> {format_long_date(episode.date)}</p>
      <p><strong>Description:</strong> {escape_or_empty(episode.description)}</p>
    </div>{section}
  </div>"""
    return _page(f"Podcast Booking - {episode.title}", body, script)
