"""
Enable Row-Level Security on episodes and episode_guests (PostgreSQL only)

Policies:
- episodes: visible to the host whose id is in app.current_user_id, and to the
  guest booking link whose id is in app.guest_id (only that guest's episode)
- episode_guests: visible through an owned episode, or the single row whose id
  is in app.guest_id

Policies apply to the application role, so it must not own the tables.
"""

# Ensure this script can be run directly from repo root
import sys
from pathlib import Path

CURRENT_DIR = Path(__file__).resolve().parent
ROOT_DIR = CURRENT_DIR.parent
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from sqlalchemy import text

from podbook.database import engine

STATEMENTS = [
    "ALTER TABLE episodes ENABLE ROW LEVEL SECURITY",
    "ALTER TABLE episode_guests ENABLE ROW LEVEL SECURITY",
    # Resolves the booking link's episode without going through the episode_guests policies
    """
    CREATE OR REPLACE FUNCTION booking_link_episode_id() RETURNS varchar
    LANGUAGE sql STABLE SECURITY DEFINER AS $$
        SELECT episode_id FROM episode_guests
        WHERE id = NULLIF(current_setting('app.guest_id', true), '')
    $$
    """,
    "DROP POLICY IF EXISTS episodes_owner ON episodes",
    """
    CREATE POLICY episodes_owner ON episodes
        USING (user_id = NULLIF(current_setting('app.current_user_id', true), '')::integer)
        WITH CHECK (user_id = NULLIF(current_setting('app.current_user_id', true), '')::integer)
    """,
    "DROP POLICY IF EXISTS episodes_booking_link ON episodes",
    """
    CREATE POLICY episodes_booking_link ON episodes FOR SELECT
        USING (id = booking_link_episode_id())
    """,
    "DROP POLICY IF EXISTS episode_guests_owner ON episode_guests",
    """
    CREATE POLICY episode_guests_owner ON episode_guests
        USING (episode_id IN (
            SELECT id FROM episodes
            WHERE user_id = NULLIF(current_setting('app.current_user_id', true), '')::integer
        ))
        WITH CHECK (episode_id IN (
            SELECT id FROM episodes
            WHERE user_id = NULLIF(current_setting('app.current_user_id', true), '')::integer
        ))
    """,
    "DROP POLICY IF EXISTS episode_guests_booking_link_select ON episode_guests",
    """
    CREATE POLICY episode_guests_booking_link_select ON episode_guests FOR SELECT
        USING (id = NULLIF(current_setting('app.guest_id', true), ''))
    """,
    "DROP POLICY IF EXISTS episode_guests_booking_link_update ON episode_guests",
    """
    CREATE POLICY episode_guests_booking_link_update ON episode_guests FOR UPDATE
        USING (id = NULLIF(current_setting('app.guest_id', true), ''))
        WITH CHECK (id = NULLIF(current_setting('app.guest_id', true), ''))
    """,
]


def upgrade():
    if engine.dialect.name != "postgresql":
        print("Row-level security requires PostgreSQL; nothing to do")
        return
    with engine.connect() as conn:
        for statement in STATEMENTS:
            conn.execute(text(statement))
        conn.commit()
        print("Migration enable_row_level_security applied successfully")


if __name__ == "__main__":
    upgrade()
