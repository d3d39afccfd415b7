"""003_homepage_content -- JSON column holding the editable homepage sections.

SQLite has no ADD COLUMN IF NOT EXISTS, so the column list is checked with
PRAGMA table_info first. The backfill is safe to repeat.
"""

from sqlalchemy import text
from sqlalchemy.engine import Connection

from migrations.runner import Migration


def up(conn: Connection) -> None:
    rows = conn.execute(text("PRAGMA table_info(settings)")).fetchall()
    existing_cols = {row[1] for row in rows}
    if "homepage_content" not in existing_cols:
        conn.execute(text("ALTER TABLE settings ADD COLUMN homepage_content TEXT DEFAULT '{}'"))
    conn.execute(text("UPDATE settings SET homepage_content = '{}' WHERE homepage_content IS NULL"))


homepage_content = Migration(
    id="003_homepage_content",
    description="Add homepage_content JSON column to settings",
    up=up,
)
