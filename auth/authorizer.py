"""
auth/authorizer.py -- Live capability check for privileged actions.

Tokens are stateless and cannot be revoked. This re-check is the only thing
that makes demoting or deactivating an account take effect before the token
expires, so every privileged route goes through authorize() and none relies
on the role claim alone.

Order of checks (first failure wins):
  1. Re-read the principal row by id.
  2. No row, or is_active false          -> AuthenticationError (401)
  3. live role != role in the token      -> StaleRoleError (401, re-login)
  4. live role not in the allowed set    -> AuthorizationError (403)
  5. grant: return the freshly read Principal

Cost: one PrincipalStore.get_by_id() per privileged request.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from auth.errors import AuthenticationError, AuthorizationError, StaleRoleError
from auth.models import Principal, PrincipalRef
from auth.store import PrincipalStore

logger = logging.getLogger("siteadmin.auth")


class CapabilityAuthorizer:
    """Grants or denies an action against the principal's current row.

    Usage:
        authorizer = CapabilityAuthorizer(store)
        principal = authorizer.authorize(ref, {"admin", "editor"})
    """

    def __init__(self, store: PrincipalStore) -> None:
        self._store = store

    def authorize(self, ref: PrincipalRef, allowed_roles: Iterable[str]) -> Principal:
        """Return the live Principal if it may perform an action open to allowed_roles.

        Raises AuthenticationError, StaleRoleError or AuthorizationError.
        """
        allowed = frozenset(allowed_roles)
        principal = self._store.get_by_id(ref.id)

        if principal is None:
            logger.warning("Auth rejected: principal %s no longer exists", ref.id)
            raise AuthenticationError()
        if not principal.is_active:
            logger.warning("Auth rejected: principal %s is deactivated", ref.id)
            raise AuthenticationError()
        if principal.role != ref.role:
            logger.warning(
                "Auth rejected: principal %s role changed from %r to %r since token issuance",
                ref.id,
                ref.role,
                principal.role,
            )
            raise StaleRoleError()
        if principal.role not in allowed:
            logger.info(
                "Access denied: principal %s role %r not in %s",
                ref.id,
                principal.role,
                sorted(allowed),
            )
            raise AuthorizationError()

        return principal
