"""
migrations/runner.py -- Ordered, exactly-once schema migration runner.

Pattern: migrations are plain values (Migration dataclass) in a Python list.
The list order IS the execution order; ids are stable labels for the ledger
and are never sorted or parsed.

Guarantees:
  - schema_migrations (the ledger) is created if missing.
  - A migration whose id is in the ledger is never executed again.
  - Each pending migration runs in its own transaction together with its
    ledger INSERT. Both commit or neither does (see core/database.py for
    how SQLite DDL is made transactional).
  - The first failing migration aborts the pass with MigrationError.
    Migrations after it are not attempted and nothing is retried.

Operations should still be written "IF NOT EXISTS" style so a database left
behind by a crash outside a transaction (e.g. a driver without
transactional DDL) can be brought forward by simply re-running.

Layer rule: migrations/ imports only sqlalchemy and stdlib.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from sqlalchemy import text
from sqlalchemy.engine import Connection, Engine

logger = logging.getLogger("siteadmin.migrations")

LEDGER_TABLE = "schema_migrations"


@dataclass(frozen=True)
class Migration:
    """One schema change: a stable id, a human description, and the operation.

    up receives the open Connection of the migration's transaction and must
    not commit or roll back itself.
    """

    id: str
    description: str
    up: Callable[[Connection], None]


@dataclass(frozen=True)
class MigrationRecord:
    """A ledger row."""

    id: str
    description: str
    applied_at: str


class MigrationError(RuntimeError):
    """A migration operation failed; its transaction was rolled back.

    Fatal at startup. The schema is left exactly as it was after the last
    successfully recorded migration.
    """

    def __init__(self, migration_id: str, cause: BaseException) -> None:
        super().__init__(f"Migration {migration_id} failed: {cause}")
        self.migration_id = migration_id
        self.cause = cause


def ensure_ledger(engine: Engine) -> None:
    """Create the schema_migrations table if it does not exist."""
    with engine.begin() as conn:
        conn.execute(
            text(
                f"""
                CREATE TABLE IF NOT EXISTS {LEDGER_TABLE} (
                    id TEXT PRIMARY KEY,
                    description TEXT NOT NULL,
                    applied_at TEXT NOT NULL
                )
                """
            )
        )


def applied_migrations(engine: Engine) -> list[MigrationRecord]:
    """Return ledger rows in the order they were applied."""
    ensure_ledger(engine)
    with engine.connect() as conn:
        rows = conn.execute(
            text(f"SELECT id, description, applied_at FROM {LEDGER_TABLE} ORDER BY rowid")
        ).fetchall()
    return [MigrationRecord(id=r.id, description=r.description, applied_at=r.applied_at) for r in rows]


def pending_migrations(engine: Engine, migrations: Sequence[Migration]) -> list[Migration]:
    """Return the migrations from the list that are not in the ledger, in list order."""
    applied_ids = {record.id for record in applied_migrations(engine)}
    return [m for m in migrations if m.id not in applied_ids]


def _next_timestamp(previous: datetime | None) -> datetime:
    # Strictly increasing within one pass so ledger order == list order.
    now = datetime.now(timezone.utc)
    if previous is not None and now <= previous:
        now = previous + timedelta(microseconds=1)
    return now


def _check_unique_ids(migrations: Sequence[Migration]) -> None:
    seen: set[str] = set()
    for migration in migrations:
        if migration.id in seen:
            raise ValueError(f"Duplicate migration id in list: {migration.id!r}")
        seen.add(migration.id)


def run_migrations(engine: Engine, migrations: Sequence[Migration]) -> list[str]:
    """Apply every pending migration in list order. Returns the ids applied.

    Raises MigrationError on the first failing operation. Running this twice
    in a row is a no-op the second time.
    """
    _check_unique_ids(migrations)
    pending = pending_migrations(engine, migrations)
    if not pending:
        logger.info("Schema up to date (%d migrations recorded)", len(migrations))
        return []

    applied: list[str] = []
    last_ts: datetime | None = None
    for migration in pending:
        applied_at = _next_timestamp(last_ts)
        try:
            with engine.begin() as conn:
                migration.up(conn)
                conn.execute(
                    text(f"INSERT INTO {LEDGER_TABLE} (id, description, applied_at) VALUES (:id, :description, :applied_at)"),
                    {
                        "id": migration.id,
                        "description": migration.description,
                        "applied_at": applied_at.isoformat(timespec="microseconds"),
                    },
                )
        except Exception as exc:
            logger.error("Migration %s failed, rolled back", migration.id, exc_info=True)
            raise MigrationError(migration.id, exc) from exc
        last_ts = applied_at
        applied.append(migration.id)
        logger.info("Applied %s - %s", migration.id, migration.description)

    return applied
