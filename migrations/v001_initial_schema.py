"""001_initial_schema -- core application tables."""

from sqlalchemy import text
from sqlalchemy.engine import Connection

from migrations.runner import Migration

_STATEMENTS = (
    """
    CREATE TABLE IF NOT EXISTS users (
        id TEXT PRIMARY KEY,
        username TEXT NOT NULL UNIQUE,
        email TEXT NOT NULL UNIQUE,
        password_hash TEXT NOT NULL,
        role TEXT NOT NULL DEFAULT 'editor' CHECK (role <> ''),
        avatar TEXT,
        is_active INTEGER NOT NULL DEFAULT 1,
        last_login TEXT,
        created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
        updated_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS products (
        id TEXT PRIMARY KEY,
        name_zh TEXT NOT NULL,
        name_en TEXT NOT NULL,
        description_zh TEXT NOT NULL,
        description_en TEXT NOT NULL,
        category TEXT NOT NULL,
        images TEXT NOT NULL DEFAULT '[]',
        specifications TEXT NOT NULL DEFAULT '[]',
        price REAL,
        featured INTEGER NOT NULL DEFAULT 0,
        status TEXT NOT NULL DEFAULT 'active',
        sort_order INTEGER NOT NULL DEFAULT 0,
        created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
        updated_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS news (
        id TEXT PRIMARY KEY,
        title_zh TEXT NOT NULL,
        title_en TEXT NOT NULL,
        content_zh TEXT NOT NULL,
        content_en TEXT NOT NULL,
        summary_zh TEXT,
        summary_en TEXT,
        category TEXT NOT NULL,
        cover_image TEXT,
        author TEXT NOT NULL DEFAULT 'Admin',
        views INTEGER NOT NULL DEFAULT 0,
        status TEXT NOT NULL DEFAULT 'published',
        published_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
        created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
        updated_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS contacts (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        email TEXT NOT NULL,
        phone TEXT NOT NULL,
        company TEXT,
        subject TEXT NOT NULL,
        message TEXT NOT NULL,
        status TEXT NOT NULL DEFAULT 'unread',
        reply TEXT,
        created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
        updated_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS settings (
        id TEXT PRIMARY KEY,
        site_name_zh TEXT NOT NULL DEFAULT '公司名称',
        site_name_en TEXT NOT NULL DEFAULT 'Company Name',
        site_description_zh TEXT NOT NULL DEFAULT '公司简介',
        site_description_en TEXT NOT NULL DEFAULT 'Company Description',
        logo TEXT,
        favicon TEXT,
        address_zh TEXT,
        address_en TEXT,
        phone TEXT,
        email TEXT,
        about_zh TEXT,
        about_en TEXT,
        banners TEXT NOT NULL DEFAULT '[]',
        updated_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
    )
    """,
)


def up(conn: Connection) -> None:
    for statement in _STATEMENTS:
        conn.execute(text(statement))


initial_schema = Migration(
    id="001_initial_schema",
    description="Create core application tables",
    up=up,
)
