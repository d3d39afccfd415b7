"""
tests/test_tokens.py -- TokenIssuer, password hashing and password login.

Covers:
  - issue/decode round trip carries sub and role; default lifetime is 7 days
  - expired, wrong-key, tampered and claim-less tokens decode to None
  - authenticate_principal: success, unknown email, bad password, inactive
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from auth.models import ROLE_EDITOR, Principal
from auth.store import PrincipalStore
from auth.tokens import ALGORITHM, TokenIssuer, authenticate_principal, hash_password, verify_password
from core.config import DEFAULT_TOKEN_EXPIRE_SECONDS

SECRET = "unit-test-signing-key-0123456789abcdef"


@pytest.fixture
def issuer() -> TokenIssuer:
    return TokenIssuer(SECRET)


class TestTokenIssuer:
    def test_round_trip(self, issuer):
        claims = issuer.decode(issuer.issue("p-1", "editor"))
        assert claims is not None
        assert claims["sub"] == "p-1"
        assert claims["role"] == "editor"

    def test_default_lifetime_is_seven_days(self, issuer):
        claims = issuer.decode(issuer.issue("p-1", "admin"))
        assert claims["exp"] - claims["iat"] == DEFAULT_TOKEN_EXPIRE_SECONDS

    def test_lifetime_override(self, issuer):
        claims = issuer.decode(issuer.issue("p-1", "admin", expire_seconds=60))
        assert claims["exp"] - claims["iat"] == 60

    def test_expired_token_rejected(self, issuer):
        past = datetime.now(timezone.utc) - timedelta(hours=2)
        token = jwt.encode(
            {"sub": "p-1", "role": "admin", "iat": past, "exp": past + timedelta(hours=1)},
            SECRET,
            algorithm=ALGORITHM,
        )
        assert issuer.decode(token) is None

    def test_wrong_key_rejected(self, issuer):
        other = TokenIssuer("a-completely-different-key-0123456789")
        assert issuer.decode(other.issue("p-1", "admin")) is None

    def test_tampered_token_rejected(self, issuer):
        token = issuer.issue("p-1", "viewer")
        header, payload, signature = token.split(".")
        forged = jwt.encode({"sub": "p-1", "role": "admin"}, "guess", algorithm=ALGORITHM).split(".")[1]
        assert issuer.decode(f"{header}.{forged}.{signature}") is None

    @pytest.mark.parametrize("token", ["", "garbage", "a.b.c"])
    def test_malformed_token_rejected(self, issuer, token):
        assert issuer.decode(token) is None

    def test_missing_role_claim_rejected(self, issuer):
        now = datetime.now(timezone.utc)
        token = jwt.encode({"sub": "p-1", "exp": now + timedelta(hours=1)}, SECRET, algorithm=ALGORITHM)
        assert issuer.decode(token) is None

    def test_empty_key_refused(self):
        with pytest.raises(ValueError):
            TokenIssuer("")


class TestPasswords:
    def test_hash_and_verify(self):
        hashed = hash_password("s3cret-pass")
        assert hashed != "s3cret-pass"
        assert verify_password("s3cret-pass", hashed)
        assert not verify_password("wrong", hashed)

    def test_verify_against_garbage_hash_is_false(self):
        assert verify_password("anything", "not-a-bcrypt-hash") is False


class TestAuthenticatePrincipal:
    @pytest.fixture
    def store(self, engine) -> PrincipalStore:
        store = PrincipalStore(engine)
        store.create_principal(
            Principal(
                username="alice",
                email="alice@example.com",
                role=ROLE_EDITOR,
                password_hash=hash_password("alice-password"),
            )
        )
        return store

    def test_success(self, store):
        principal = authenticate_principal(store, "alice@example.com", "alice-password")
        assert principal is not None
        assert principal.username == "alice"

    def test_unknown_email(self, store):
        assert authenticate_principal(store, "nobody@example.com", "alice-password") is None

    def test_bad_password(self, store):
        assert authenticate_principal(store, "alice@example.com", "nope") is None

    def test_inactive_account(self, store):
        principal = store.get_by_email("alice@example.com")
        store.update_principal(principal.id, is_active=False)
        assert authenticate_principal(store, "alice@example.com", "alice-password") is None


class TestRequiredTimeClaims:
    def test_token_without_exp_rejected(self, issuer):
        now = datetime.now(timezone.utc)
        token = jwt.encode({"sub": "p-1", "role": "admin", "iat": now}, SECRET, algorithm=ALGORITHM)
        assert issuer.decode(token) is None

    def test_token_without_iat_rejected(self, issuer):
        now = datetime.now(timezone.utc)
        token = jwt.encode(
            {"sub": "p-1", "role": "admin", "exp": now + timedelta(hours=1)}, SECRET, algorithm=ALGORITHM
        )
        assert issuer.decode(token) is None
