"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Stores and routes do
the work.

Layer rule: no imports from api/, content/ or migrations/.
"""

from __future__ import annotations

from dataclasses import dataclass

ROLE_ADMIN = "admin"
ROLE_EDITOR = "editor"
ROLE_VIEWER = "viewer"

# Closed set accepted by the store. Extend here when a new role is introduced;
# capability sets on routes are built from these names.
KNOWN_ROLES: frozenset[str] = frozenset({ROLE_ADMIN, ROLE_EDITOR, ROLE_VIEWER})


@dataclass
class Principal:
    """A user account as stored in the users table.

    id is a UUID4 string assigned by the store on insert. password_hash is a
    bcrypt hash and never leaves the server. Principals are never deleted;
    is_active=False is the removal path.
    """

    username: str
    email: str
    role: str  # "admin", "editor", "viewer"
    id: str | None = None
    password_hash: str | None = None
    avatar: str | None = None
    is_active: bool = True
    last_login: str | None = None
    created_at: str | None = None
    updated_at: str | None = None


@dataclass(frozen=True)
class PrincipalRef:
    """Identity asserted by a verified bearer token.

    role is the role at token issuance. It is a claim, not a fact: the
    capability authorizer compares it against the live row before granting
    anything.
    """

    id: str
    role: str
