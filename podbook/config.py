import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./podbook.db")

# Firebase Configuration (host sign-in)
FIREBASE_PROJECT_ID = os.getenv("FIREBASE_PROJECT_ID")

# Public base URL used to build guest booking links
PUBLIC_BASE_URL = os.getenv("PUBLIC_BASE_URL", "http://localhost:8000").rstrip("/")

# Resend Email Configuration
RESEND_API_KEY = os.getenv("RESEND_API_KEY")
EMAIL_FROM_ADDRESS = os.getenv("EMAIL_FROM_ADDRESS", "Podcast Booking <bookings@podbook.app>")

# Rate limits for the public endpoints (requests per window, per IP)
BOOKING_RATE_LIMIT = int(os.getenv("BOOKING_RATE_LIMIT", "60"))
BOOKING_RATE_WINDOW = int(os.getenv("BOOKING_RATE_WINDOW", "60"))
INVITE_RATE_LIMIT = int(os.getenv("INVITE_RATE_LIMIT", "30"))
INVITE_RATE_WINDOW = int(os.getenv("INVITE_RATE_WINDOW", "60"))

# Host console live updates: full re-fetch period as a backstop for missed events
CONSOLE_RECONCILE_SECONDS = float(os.getenv("CONSOLE_RECONCILE_SECONDS", "60"))

# Reject booking confirmations whose slot is not one of the episode's offered slots
ENFORCE_SLOT_MEMBERSHIP = os.getenv("ENFORCE_SLOT_MEMBERSHIP", "false").lower() == "true"
