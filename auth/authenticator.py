"""
auth/authenticator.py -- Bearer token gatekeeper for incoming requests.

RequestAuthenticator turns a raw Authorization header into a PrincipalRef or
raises AuthenticationError. It is a pure read-and-verify step: no database
access, no side effects.

Information hiding: a missing header, a non-Bearer scheme, a malformed token,
a bad signature and an expired token all raise the same AuthenticationError
with the same message. Only the log line says which check failed.
"""

from __future__ import annotations

import logging

from auth.errors import AuthenticationError
from auth.models import PrincipalRef
from auth.tokens import TokenIssuer

logger = logging.getLogger("siteadmin.auth")

_SCHEME = "bearer"


class RequestAuthenticator:
    """Verifies bearer tokens with the issuer's key.

    Usage:
        authenticator = RequestAuthenticator(issuer)
        ref = authenticator.authenticate(request.headers.get("Authorization"))
    """

    def __init__(self, issuer: TokenIssuer) -> None:
        self._issuer = issuer

    def authenticate(self, authorization: str | None) -> PrincipalRef:
        """Return the PrincipalRef asserted by a valid bearer token.

        Raises AuthenticationError for every failure mode.
        """
        if not authorization:
            logger.info("Auth rejected: missing Authorization header")
            raise AuthenticationError()

        parts = authorization.split()
        if len(parts) != 2 or parts[0].lower() != _SCHEME:
            logger.info("Auth rejected: Authorization header is not 'Bearer <token>'")
            raise AuthenticationError()

        payload = self._issuer.decode(parts[1])
        if payload is None:
            logger.info("Auth rejected: token failed verification (signature, expiry or claims)")
            raise AuthenticationError()

        return PrincipalRef(id=payload["sub"], role=payload["role"])
