"""
api/routes/v1/auth.py -- Authentication and account management REST endpoints.

Routes:
  POST  /api/v1/auth/login         -- email/password login; returns {token, principal}
  POST  /api/v1/auth/register      -- always 403: accounts are created by admins
  GET   /api/v1/auth/me            -- current principal (any live role)
  PUT   /api/v1/auth/profile       -- update own username/avatar (any live role)
  PUT   /api/v1/auth/password      -- change own password (any live role)
  POST  /api/v1/auth/users         -- create account (admin)
  GET   /api/v1/auth/users         -- list accounts (admin)
  PATCH /api/v1/auth/users/{id}    -- change role / active flag (admin)

Security:
  POST /login is rate-limited per client IP (LOGIN_RATE_LIMIT).
  authenticate_principal() provides timing equalization -- use it, never inline.
  Unknown email, wrong password and deactivated account share one response
  so the endpoint cannot be used to enumerate accounts.
  Cache-Control: no-store on login responses.
  PATCH /users/{id} blocks self-deactivation, self-demotion and removing the
  last active admin. A role or active-flag change needs no token bookkeeping:
  the capability authorizer rejects the affected principal's old tokens on
  their next privileged use.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError

from api.limiter import limiter, login_limit
from api.models import (
    LoginRequest,
    LoginResponse,
    MessageResponse,
    PasswordChange,
    PrincipalResponse,
    ProfileUpdate,
    UserCreate,
    UserPatch,
)
from auth.dependencies import require_principal, require_roles
from auth.models import ROLE_ADMIN, Principal
from auth.store import PrincipalStore
from auth.tokens import TokenIssuer, authenticate_principal, hash_password, verify_password

logger = logging.getLogger("siteadmin.auth")

router = APIRouter()

require_admin = require_roles(ROLE_ADMIN)


# ---------------------------------------------------------------------------
# Public endpoints
# ---------------------------------------------------------------------------


@router.post("/auth/login", response_model=LoginResponse)
@limiter.limit(login_limit)
def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Authenticate with email and password; return a bearer token.

    Stamps last_login on success. The token carries the role as of now; any
    later change to the account is enforced by the live check, not here.
    """
    store: PrincipalStore = request.app.state.principal_store
    issuer: TokenIssuer = request.app.state.token_issuer

    principal = authenticate_principal(store, body.email, body.password)
    if principal is None:
        resp = JSONResponse(
            status_code=401,
            content={"error": {"code": "bad_credentials", "message": "Invalid credentials."}},
        )
        resp.headers["Cache-Control"] = "no-store"
        return resp

    store.update_last_login(principal.id)
    refreshed = store.get_by_id(principal.id) or principal
    token = issuer.issue(principal.id, principal.role)
    logger.info("Login succeeded for principal %s (role=%s)", principal.id, principal.role)

    resp = JSONResponse(
        status_code=200,
        content=LoginResponse(
            token=token,
            token_type="bearer",  # noqa: S106 # nosec B106 -- OAuth token type, not a password
            expires_in=issuer.expire_seconds,
            principal=principal_to_response(refreshed),
        ).model_dump(),
    )
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.post("/auth/register", status_code=403)
def register() -> JSONResponse:
    """Self-registration is disabled. Accounts are created by an administrator."""
    return JSONResponse(
        status_code=403,
        content={"error": {"code": "registration_disabled", "message": "Self-registration is disabled."}},
    )


# ---------------------------------------------------------------------------
# Self-service (any live role)
# ---------------------------------------------------------------------------


@router.get("/auth/me", response_model=PrincipalResponse)
def me(principal: Principal = Depends(require_principal)) -> PrincipalResponse:
    """Return the current principal as freshly read from the store."""
    return principal_to_response(principal)


@router.put("/auth/profile", response_model=PrincipalResponse)
def update_profile(
    request: Request,
    body: ProfileUpdate,
    principal: Principal = Depends(require_principal),
) -> PrincipalResponse:
    store: PrincipalStore = request.app.state.principal_store

    updates: dict = {}
    if body.username is not None:
        updates["username"] = body.username
    if body.avatar is not None:
        updates["avatar"] = body.avatar
    if not updates:
        raise HTTPException(
            status_code=400,
            detail={"code": "no_changes", "message": "No fields to update."},
        )

    try:
        store.update_principal(principal.id, **updates)
    except IntegrityError as exc:
        raise HTTPException(
            status_code=409,
            detail={"code": "conflict", "message": "That username is already taken."},
        ) from exc
    return principal_to_response(store.get_by_id(principal.id))


@router.put("/auth/password", response_model=MessageResponse)
def change_password(
    request: Request,
    body: PasswordChange,
    principal: Principal = Depends(require_principal),
) -> MessageResponse:
    store: PrincipalStore = request.app.state.principal_store

    if not verify_password(body.current_password, principal.password_hash or ""):
        raise HTTPException(
            status_code=400,
            detail={"code": "bad_password", "message": "Current password is incorrect."},
        )
    store.update_principal(principal.id, password_hash=hash_password(body.new_password))
    logger.info("Password changed for principal %s", principal.id)
    return MessageResponse(message="Password updated successfully.")


# ---------------------------------------------------------------------------
# Account management (admin only)
# ---------------------------------------------------------------------------


@router.post("/auth/users", response_model=PrincipalResponse, status_code=201)
def create_user(
    request: Request,
    body: UserCreate,
    admin: Principal = Depends(require_admin),
) -> PrincipalResponse:
    """Create a new account. This is the only way principals come into existence."""
    store: PrincipalStore = request.app.state.principal_store

    new_principal = Principal(
        username=body.username,
        email=body.email,
        role=body.role,
        password_hash=hash_password(body.password),
    )
    try:
        principal_id = store.create_principal(new_principal)
    except IntegrityError as exc:
        raise HTTPException(
            status_code=409,
            detail={"code": "conflict", "message": "A user with that username or email already exists."},
        ) from exc

    logger.info("Principal %s (role=%s) created by admin %s", principal_id, body.role, admin.id)
    return principal_to_response(store.get_by_id(principal_id))


@router.get("/auth/users", response_model=list[PrincipalResponse])
def list_users(
    request: Request,
    admin: Principal = Depends(require_admin),
) -> list[PrincipalResponse]:
    store: PrincipalStore = request.app.state.principal_store
    return [principal_to_response(p) for p in store.list_principals()]


@router.patch("/auth/users/{principal_id}", response_model=PrincipalResponse)
def update_user(
    request: Request,
    principal_id: str,
    body: UserPatch,
    admin: Principal = Depends(require_admin),
) -> PrincipalResponse:
    """Change a principal's role or active flag."""
    store: PrincipalStore = request.app.state.principal_store

    target = store.get_by_id(principal_id)
    if target is None:
        raise HTTPException(
            status_code=404,
            detail={"code": "not_found", "message": "User not found."},
        )

    updates: dict = {}
    removes_admin = False
    if body.role is not None and body.role != target.role:
        if target.id == admin.id:
            raise HTTPException(
                status_code=400,
                detail={"code": "self_demotion", "message": "You cannot change your own role."},
            )
        updates["role"] = body.role
        removes_admin = target.role == ROLE_ADMIN
    if body.is_active is not None and body.is_active != target.is_active:
        if not body.is_active and target.id == admin.id:
            raise HTTPException(
                status_code=400,
                detail={"code": "self_deactivation", "message": "You cannot deactivate your own account."},
            )
        updates["is_active"] = body.is_active
        removes_admin = removes_admin or (not body.is_active and target.role == ROLE_ADMIN)

    if not updates:
        raise HTTPException(
            status_code=400,
            detail={"code": "no_changes", "message": "No fields to update."},
        )
    if removes_admin and target.is_active and store.count_active_admins() <= 1:
        raise HTTPException(
            status_code=400,
            detail={"code": "last_admin", "message": "Cannot remove the last active admin account."},
        )

    store.update_principal(principal_id, **updates)
    logger.info("Principal %s updated by admin %s: %s", principal_id, admin.id, sorted(updates))
    return principal_to_response(store.get_by_id(principal_id))


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def principal_to_response(principal: Principal | None) -> PrincipalResponse:
    if principal is None:
        raise HTTPException(
            status_code=500,
            detail={"code": "internal_error", "message": "User not found after write."},
        )
    return PrincipalResponse(
        id=principal.id,
        username=principal.username,
        email=principal.email,
        role=principal.role,
        avatar=principal.avatar,
        is_active=principal.is_active,
        last_login=principal.last_login,
        created_at=principal.created_at or "",
    )
