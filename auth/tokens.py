"""
auth/tokens.py -- Password hashing, bearer token issuing, and login verification.

Security design decisions:
  JWT: python-jose with HS256. Tokens carry sub (principal id), role (role at
       issuance), iat and exp. decode() returns None on any failure -- the
       request authenticator turns that into a generic 401.

  Signing key: passed in explicitly (TokenIssuer.from_settings at startup).
       Nothing in this module reads configuration on its own, and there is no
       default key: Settings refuses to construct without SECRET_KEY.

  Passwords: bcrypt directly. The _DUMMY_HASH constant enables timing
       equalization in authenticate_principal() so response time does not
       reveal whether an email is registered.

Layer rule: no imports from api/ or content/. Import from core/ is allowed.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

import bcrypt
from jose import JWTError, jwt

from core.config import DEFAULT_TOKEN_EXPIRE_SECONDS

if TYPE_CHECKING:
    from auth.models import Principal
    from auth.store import PrincipalStore
    from core.config import Settings

logger = logging.getLogger("siteadmin.auth")

ALGORITHM = "HS256"

# ---------------------------------------------------------------------------
# Password hashing (bcrypt -- direct usage, no passlib wrapper)
# ---------------------------------------------------------------------------


def hash_password(plain: str) -> str:
    """Return a bcrypt hash of the given plaintext password.

    bcrypt only looks at the first 72 bytes. The API layer caps passwords
    at 128 characters.
    """
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash."""
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


# Computed once at module load so the first login attempt is not measurably
# slower than subsequent ones.
_DUMMY_HASH: str = hash_password("siteadmin_timing_dummy")


# ---------------------------------------------------------------------------
# Token issuer
# ---------------------------------------------------------------------------


class TokenIssuer:
    """Signs and verifies bearer tokens with one process-wide key.

    Usage:
        issuer = TokenIssuer.from_settings(settings)
        token = issuer.issue(principal.id, principal.role)
        claims = issuer.decode(token)   # dict or None
    """

    def __init__(self, secret_key: str, expire_seconds: int = DEFAULT_TOKEN_EXPIRE_SECONDS) -> None:
        if not secret_key:
            raise ValueError("TokenIssuer requires a signing key")
        if expire_seconds <= 0:
            raise ValueError("expire_seconds must be positive")
        self._secret_key = secret_key
        self.expire_seconds = expire_seconds

    @classmethod
    def from_settings(cls, settings: Settings) -> TokenIssuer:
        return cls(settings.secret_key, settings.token_expire_seconds)

    def issue(self, principal_id: str, role: str, expire_seconds: int = 0) -> str:
        """Encode a signed token for an already-verified principal.

        Args:
            principal_id:   Principal id, stored as the sub claim.
            role:           Role at issuance. A snapshot only; the authorizer
                            re-reads the live role on every privileged use.
            expire_seconds: Override the configured lifetime when positive.
        """
        duration = expire_seconds if expire_seconds > 0 else self.expire_seconds
        now = datetime.now(timezone.utc)
        return self._encode(
            {
                "sub": principal_id,
                "role": role,
                "iat": now,
                "exp": now + timedelta(seconds=duration),
            }
        )

    def _encode(self, payload: dict) -> str:
        return jwt.encode(payload, self._secret_key, algorithm=ALGORITHM)

    def decode(self, token: str) -> dict | None:
        """Verify signature and expiry. Returns the claims dict or None on any failure.

        Returning None (rather than raising) keeps the caller simple: every
        invalid token is the same "not authenticated" outcome.
        """
        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[ALGORITHM],
                options={"require_exp": True, "require_iat": True},
            )
        except JWTError as exc:
            logger.debug("Token rejected by verifier: %s", exc)
            return None
        sub = payload.get("sub")
        role = payload.get("role")
        if not isinstance(sub, str) or not sub or not isinstance(role, str) or not role:
            logger.debug("Token rejected: missing sub/role claim")
            return None
        return payload


# ---------------------------------------------------------------------------
# Password login (constant-time)
# ---------------------------------------------------------------------------


def authenticate_principal(store: PrincipalStore, email: str, password: str) -> Principal | None:
    """Verify an email/password login with timing equalization.

    Always runs bcrypt whether or not the principal exists:
    - Unknown email: bcrypt runs against _DUMMY_HASH (same cost as real check)
    - Wrong password or deactivated account: bcrypt runs against the real hash

    Returns the Principal on success, None on any failure. Callers must not
    tell the client which case occurred.
    """
    principal = store.get_by_email(email)
    if principal is None or not principal.password_hash:
        verify_password(password, _DUMMY_HASH)
        logger.info("Login failed: unknown email")
        return None
    if not verify_password(password, principal.password_hash):
        logger.info("Login failed: bad password for principal %s", principal.id)
        return None
    if not principal.is_active:
        logger.warning("Login refused: principal %s is deactivated", principal.id)
        return None
    return principal
