"""
core/database.py -- SQLAlchemy engine construction for the SQLite database of record.

One Engine per process, created at startup from Settings.database_url and
shared by the migration runner and every store. Stores never create their
own engines.

SQLite specifics handled here:
  WAL mode: readers proceed without blocking during writes. Set per
      connection because SQLite PRAGMAs are not inherited by new connections
      from the pool.

  Transactional DDL: the pysqlite driver only opens a transaction before
      INSERT/UPDATE/DELETE, so a CREATE TABLE or ALTER TABLE would run in
      autocommit mode and survive a rollback. Disabling the driver's own
      transaction handling and emitting BEGIN from the "begin" event makes
      SQLAlchemy's transaction boundaries the real ones. The migration
      runner depends on this for atomic "operation + ledger row" units.

  check_same_thread=False: FastAPI runs sync dependencies in a thread pool.
      The pool hands each connection to one thread at a time.

Layer rule: core/ does not import from api/, auth/, content/ or migrations/.
"""

from __future__ import annotations

from pathlib import Path

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine, make_url


def _on_connect(dbapi_conn, connection_record) -> None:
    """Hand transaction control to SQLAlchemy and enable WAL + foreign keys."""
    dbapi_conn.isolation_level = None
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _on_begin(conn) -> None:
    conn.exec_driver_sql("BEGIN")


def _ensure_sqlite_parent_dir(db_url: str) -> None:
    """Create the directory holding a file-backed SQLite database if missing."""
    url = make_url(db_url)
    database = url.database
    if not database or database == ":memory:" or database.startswith("file:"):
        return
    Path(database).expanduser().resolve().parent.mkdir(parents=True, exist_ok=True)


def create_db_engine(db_url: str, echo: bool = False) -> Engine:
    """Return an Engine for db_url with the SQLite event hooks installed.

    Usage:
        engine = create_db_engine(settings.database_url)
        run_migrations(engine)
        store = PrincipalStore(engine)
        ...
        engine.dispose()
    """
    connect_args: dict = {}
    is_sqlite = db_url.startswith("sqlite")
    if is_sqlite:
        connect_args["check_same_thread"] = False
        _ensure_sqlite_parent_dir(db_url)
    engine = create_engine(db_url, connect_args=connect_args, echo=echo)
    if is_sqlite:
        event.listen(engine, "connect", _on_connect)
        event.listen(engine, "begin", _on_begin)
    return engine


def check_db_connected(engine: Engine) -> bool:
    """Run a trivial query to verify the database is reachable."""
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except Exception:
        return False
