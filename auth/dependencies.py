"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication and authorization.

Two layers, matching the two auth components:
  authenticate_request()  Authorization header -> PrincipalRef (token only)
  require_roles(*roles)   authenticate_request + live CapabilityAuthorizer check

Every privileged route declares its capability set at registration:

    @router.post("/products", status_code=201)
    def create_product(..., principal: Principal = Depends(require_roles(ROLE_ADMIN, ROLE_EDITOR))): ...

FastAPI resolves dependencies before the handler body runs, so a rejection
always happens before any resource lookup or mutation.

The authenticator and authorizer live on app.state (built in the lifespan).
Errors are raised as auth.errors.AuthError subclasses; api/main.py maps them
onto the JSON error envelope.

Layer rule: may import from fastapi because this module is part of the
dependency injection system. No imports from api/ or content/.
"""

from __future__ import annotations

from collections.abc import Callable

from fastapi import Request

from auth.authenticator import RequestAuthenticator
from auth.authorizer import CapabilityAuthorizer
from auth.models import KNOWN_ROLES, Principal, PrincipalRef


def authenticate_request(request: Request) -> PrincipalRef:
    """Verify the bearer token and attach the PrincipalRef to request.state.

    Raises AuthenticationError (401) on any failure.
    """
    authenticator: RequestAuthenticator = request.app.state.authenticator
    ref = authenticator.authenticate(request.headers.get("Authorization"))
    request.state.principal = ref
    return ref


def require_roles(*roles: str) -> Callable[[Request], Principal]:
    """Build a dependency that admits only principals whose LIVE role is in roles.

    Raises ValueError at registration time for an empty or unknown role set,
    so a typo in a route declaration fails on import rather than denying
    (or admitting) everyone at runtime.
    """
    allowed = frozenset(roles)
    if not allowed:
        raise ValueError("require_roles() needs at least one role")
    unknown = allowed - KNOWN_ROLES
    if unknown:
        raise ValueError(f"Unknown roles in capability set: {sorted(unknown)!r}")

    def dependency(request: Request) -> Principal:
        ref = authenticate_request(request)
        authorizer: CapabilityAuthorizer = request.app.state.authorizer
        principal = authorizer.authorize(ref, allowed)
        request.state.role = principal.role
        return principal

    dependency.__name__ = f"require_{'_or_'.join(sorted(allowed))}"
    return dependency


# Any signed-in account whose session is still current. Used by the
# self-service routes (/auth/me, /auth/profile, /auth/password).
require_principal = require_roles(*KNOWN_ROLES)
