"""migrations/ -- Versioned schema changes for the siteadmin database.

MIGRATIONS is the single ordered list the application applies at startup.
Append new entries at the end; never reorder or rename an id that has
shipped, because the ledger identifies applied changes by id.
"""

from migrations.runner import (
    Migration,
    MigrationError,
    MigrationRecord,
    applied_migrations,
    pending_migrations,
    run_migrations,
)
from migrations.v001_initial_schema import initial_schema
from migrations.v002_indexes import indexes
from migrations.v003_homepage_content import homepage_content

MIGRATIONS: list[Migration] = [
    initial_schema,
    indexes,
    homepage_content,
]

__all__ = [
    "MIGRATIONS",
    "Migration",
    "MigrationError",
    "MigrationRecord",
    "applied_migrations",
    "pending_migrations",
    "run_migrations",
]
