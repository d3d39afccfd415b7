"""002_indexes -- indexes backing the public list queries and the contact inbox."""

from sqlalchemy import text
from sqlalchemy.engine import Connection

from migrations.runner import Migration

_INDEXES = (
    "CREATE INDEX IF NOT EXISTS idx_products_status_category ON products (status, category)",
    "CREATE INDEX IF NOT EXISTS idx_products_featured_sort ON products (featured, sort_order, created_at)",
    "CREATE INDEX IF NOT EXISTS idx_news_status_category_published ON news (status, category, published_at)",
    "CREATE INDEX IF NOT EXISTS idx_contacts_status_created ON contacts (status, created_at)",
)


def up(conn: Connection) -> None:
    for statement in _INDEXES:
        conn.execute(text(statement))


indexes = Migration(
    id="002_indexes",
    description="Create indexes for common list queries",
    up=up,
)
