"""
Photo Browser API — Authentication Unit Tests
===============================================

What:  Password hashing and token issue/verify, including every rejection
       reason the bearer dependency must distinguish.
"""

import base64
import json
from datetime import datetime, timedelta, timezone

import jwt
import pytest

from photo_browser.config import settings
from photo_browser.exceptions import UnauthorizedError
from photo_browser.security import (
    TokenIdentity,
    hash_password,
    issue_token,
    verify_password,
    verify_token,
)


def _b64url(data: dict) -> str:
    raw = json.dumps(data, separators=(",", ":")).encode()
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode()


class TestPasswords:
    def test_hash_is_not_plaintext_and_verifies(self):
        hashed = hash_password("secret123")
        assert hashed != "secret123"
        assert hashed.startswith("$2")
        assert verify_password("secret123", hashed)

    def test_wrong_password_fails(self):
        assert not verify_password("nope", hash_password("secret123"))

    def test_hashes_are_salted(self):
        assert hash_password("same") != hash_password("same")


class TestTokens:
    def setup_method(self):
        self.identity = TokenIdentity(user_id=42, email="ada@example.com")

    def test_round_trip_identity(self):
        token = issue_token(self.identity)
        assert verify_token(token) == self.identity

    def test_payload_claims(self):
        now = datetime.now(timezone.utc).replace(microsecond=0)
        token = issue_token(self.identity, now=now)
        payload = jwt.decode(token, settings.jwt_secret, algorithms=["HS256"])

        # userId travels as a string
        assert payload["userId"] == "42"
        assert payload["email"] == "ada@example.com"
        assert payload["exp"] - payload["iat"] == 7 * 24 * 3600

    def test_expired_token(self):
        issued = datetime.now(timezone.utc) - timedelta(days=8)
        token = issue_token(self.identity, now=issued)
        with pytest.raises(UnauthorizedError, match="Token expired"):
            verify_token(token)

    def test_wrong_secret(self):
        token = jwt.encode(
            {"userId": "42", "email": "ada@example.com", "iat": datetime.now(timezone.utc),
             "exp": datetime.now(timezone.utc) + timedelta(days=1)},
            "another-secret",
            algorithm="HS256",
        )
        with pytest.raises(UnauthorizedError, match="Invalid token"):
            verify_token(token)

    def test_tampered_payload(self):
        header, _, signature = issue_token(self.identity).split(".")
        forged = _b64url({"userId": "1", "email": "ada@example.com", "iat": 0, "exp": 9999999999})
        with pytest.raises(UnauthorizedError, match="Invalid token"):
            verify_token(f"{header}.{forged}.{signature}")

    def test_garbage(self):
        with pytest.raises(UnauthorizedError, match="Invalid token"):
            verify_token("not-a-token")

    def test_missing_identity_claim(self):
        now = datetime.now(timezone.utc)
        token = jwt.encode(
            {"email": "ada@example.com", "iat": now, "exp": now + timedelta(days=1)},
            settings.jwt_secret,
            algorithm="HS256",
        )
        with pytest.raises(UnauthorizedError, match="Invalid token"):
            verify_token(token)

    def test_missing_expiry(self):
        token = jwt.encode(
            {"userId": "42", "email": "ada@example.com", "iat": datetime.now(timezone.utc)},
            settings.jwt_secret,
            algorithm="HS256",
        )
        with pytest.raises(UnauthorizedError, match="Invalid token"):
            verify_token(token)

    def test_unauthorized_status(self):
        with pytest.raises(UnauthorizedError) as exc_info:
            verify_token("x.y.z")
        assert exc_info.value.status_code == 401
