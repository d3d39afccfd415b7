"""
auth/store.py -- SQLAlchemy Core persistence layer for principals.

Pattern: Repository + Data Mapper. PrincipalStore is the repository;
_row_to_principal is the mapper. Route and dependency code never touches SQL
directly.

Schema ownership: the users table is created and evolved by migrations/
(001_initial_schema). The Table object below mirrors that DDL for query
building only; the store never calls create_all().

Security:
  All queries use bound parameters. No f-strings in SQL.
  Principals are never hard-deleted. Deactivation (is_active=0) is the
  supported removal path, so there is no delete method here.

Layer rule: no imports from api/ or content/.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, func, or_, select
from sqlalchemy.engine import Engine

from auth.models import KNOWN_ROLES, ROLE_ADMIN, Principal

# ---------------------------------------------------------------------------
# Schema (mirror of migrations/v001_initial_schema.py)
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", String(36), primary_key=True),
    Column("username", String(255), nullable=False, unique=True),
    Column("email", String(255), nullable=False, unique=True),
    Column("password_hash", Text, nullable=False),
    Column("role", String(30), nullable=False),
    Column("avatar", Text),
    Column("is_active", Integer, nullable=False),
    Column("last_login", Text),
    Column("created_at", Text, nullable=False),
    Column("updated_at", Text, nullable=False),
)

# Fields update_principal() accepts. id, created_at and last_login have
# dedicated code paths; anything else is a programming error.
_MUTABLE_FIELDS = {"username", "email", "password_hash", "role", "avatar", "is_active"}


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _check_role(role: str) -> None:
    if not role or role not in KNOWN_ROLES:
        raise ValueError(f"Unknown role: {role!r}")


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class PrincipalStore:
    """Repository for Principal entities.

    Usage:
        store = PrincipalStore(engine)
        pid = store.create_principal(Principal(username="admin", email="a@x.io",
                                               role="admin", password_hash=hash_password("secret")))
        principal = store.get_by_id(pid)
    """

    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_by_id(self, principal_id: str) -> Principal | None:
        """Look up a principal by primary key. Returns None if not found.

        This is the read the capability authorizer performs on every
        privileged request, so it stays a single indexed SELECT.
        """
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.id == principal_id)).fetchone()
        return _row_to_principal(row) if row is not None else None

    def get_by_email(self, email: str) -> Principal | None:
        """Look up a principal by exact email. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.email == email)).fetchone()
        return _row_to_principal(row) if row is not None else None

    def get_by_username(self, username: str) -> Principal | None:
        """Look up a principal by exact username (case-sensitive). Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.username == username)).fetchone()
        return _row_to_principal(row) if row is not None else None

    def exists(self, username: str, email: str) -> bool:
        """Return True if either the username or the email is already taken."""
        with self.engine.connect() as conn:
            row = conn.execute(
                select(_users.c.id).where(or_(_users.c.username == username, _users.c.email == email))
            ).fetchone()
        return row is not None

    def list_principals(self) -> list[Principal]:
        """Return all principals ordered by username. Admin-only operation."""
        with self.engine.connect() as conn:
            rows = conn.execute(_users.select().order_by(_users.c.username)).fetchall()
        return [_row_to_principal(r) for r in rows]

    def count_active_admins(self) -> int:
        """Return the number of active admin principals.

        Used by PATCH /auth/users/{id} to prevent removing the last admin.
        """
        with self.engine.connect() as conn:
            result = conn.execute(
                select(func.count())
                .select_from(_users)
                .where((_users.c.role == ROLE_ADMIN) & (_users.c.is_active == 1))
            ).scalar()
        return result or 0

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create_principal(self, principal: Principal) -> str:
        """Insert a new principal and return its generated id.

        Raises ValueError for an unknown or empty role.
        Raises sqlalchemy.exc.IntegrityError if the username or email is taken.
        """
        _check_role(principal.role)
        if not principal.password_hash:
            raise ValueError("password_hash is required")
        principal_id = str(uuid.uuid4())
        now = _now_iso()
        with self.engine.begin() as conn:
            conn.execute(
                _users.insert().values(
                    id=principal_id,
                    username=principal.username,
                    email=principal.email,
                    password_hash=principal.password_hash,
                    role=principal.role,
                    avatar=principal.avatar,
                    is_active=1 if principal.is_active else 0,
                    created_at=now,
                    updated_at=now,
                )
            )
        return principal_id

    def update_principal(self, principal_id: str, **fields) -> bool:
        """Update mutable fields on an existing principal and stamp updated_at.

        Accepted fields: username, email, password_hash, role, avatar, is_active.
        is_active must be passed as bool; this method converts to int for SQLite.

        Returns True if a row was updated, False if principal_id was not found.
        """
        unknown = set(fields) - _MUTABLE_FIELDS
        if unknown:
            raise ValueError(f"Unknown principal fields: {sorted(unknown)!r}")
        if "role" in fields:
            _check_role(fields["role"])
        if "is_active" in fields:
            fields["is_active"] = 1 if fields["is_active"] else 0
        fields["updated_at"] = _now_iso()
        with self.engine.begin() as conn:
            result = conn.execute(_users.update().where(_users.c.id == principal_id).values(**fields))
        return result.rowcount > 0

    def update_last_login(self, principal_id: str) -> None:
        """Stamp the current UTC timestamp as last_login.

        Called on every successful password login, outside the token itself.
        """
        with self.engine.begin() as conn:
            conn.execute(_users.update().where(_users.c.id == principal_id).values(last_login=_now_iso()))


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_principal(row) -> Principal:
    return Principal(
        id=row.id,
        username=row.username,
        email=row.email,
        password_hash=row.password_hash,
        role=row.role,
        avatar=row.avatar,
        is_active=bool(row.is_active),
        last_login=row.last_login,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
