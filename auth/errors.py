"""
auth/errors.py -- Exceptions raised by the request authenticator and capability authorizer.

Each error carries the client-facing status, code and message. The message is
deliberately coarse; the precise reason is logged server-side by the raiser
and never put on the exception.

  AuthenticationError  401  no usable identity (missing/bad/expired token,
                            account removed or deactivated)
  StaleRoleError       401  token role no longer matches the account: log in again
  AuthorizationError   403  valid, current session; role not allowed for the action
"""

from __future__ import annotations

NOT_AUTHENTICATED_MESSAGE = "Not authorized to access this route."
STALE_ROLE_MESSAGE = "Role has changed. Please log in again."
FORBIDDEN_MESSAGE = "Not authorized to perform this action."


class AuthError(Exception):
    """Base class for request-rejecting auth failures."""

    status_code: int = 401
    code: str = "unauthorized"
    message: str = NOT_AUTHENTICATED_MESSAGE

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)


class AuthenticationError(AuthError):
    status_code = 401
    code = "unauthorized"
    message = NOT_AUTHENTICATED_MESSAGE


class StaleRoleError(AuthenticationError):
    code = "role_changed"
    message = STALE_ROLE_MESSAGE


class AuthorizationError(AuthError):
    status_code = 403
    code = "forbidden"
    message = FORBIDDEN_MESSAGE
