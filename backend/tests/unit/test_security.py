"""
Tests for password hashing and JWT handling.

Tests follow AAA (Arrange, Act, Assert) pattern.
"""

from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from travel_planner.core.config import settings
from travel_planner.core.security import (
    ALGORITHM,
    InvalidTokenError,
    TokenExpiredError,
    create_access_token,
    decode_access_token,
    get_password_hash,
    verify_password,
)


class TestPasswordHashing:
    """Tests for bcrypt helpers."""

    def test_hash_is_not_plaintext(self):
        hashed = get_password_hash("secret123")
        assert hashed != "secret123"
        assert hashed.startswith("$2")

    def test_verify_correct_password(self):
        hashed = get_password_hash("secret123")
        assert verify_password("secret123", hashed) is True

    def test_verify_wrong_password(self):
        hashed = get_password_hash("secret123")
        assert verify_password("secret124", hashed) is False

    def test_verify_against_non_bcrypt_value(self):
        assert verify_password("secret123", "not-a-hash") is False

    def test_long_passwords_are_truncated_consistently(self):
        """bcrypt only sees the first 72 bytes; hashing must not fail on longer input."""
        password = "x" * 100
        hashed = get_password_hash(password)
        assert verify_password(password, hashed) is True


class TestAccessTokens:
    """Tests for token issue and validation."""

    def test_round_trip_carries_user_id(self):
        token = create_access_token("user-123")
        data = decode_access_token(token)
        assert data.user_id == "user-123"
        assert data.exp is not None

    def test_default_expiry_follows_settings(self):
        token = create_access_token("user-123")
        data = decode_access_token(token)
        expected = datetime.now(timezone.utc) + timedelta(minutes=settings.access_token_expire_minutes)
        assert abs((data.exp - expected).total_seconds()) < 5

    def test_expired_token_raises(self):
        token = create_access_token("user-123", expires_delta=timedelta(seconds=-10))
        with pytest.raises(TokenExpiredError):
            decode_access_token(token)

    def test_token_signed_with_other_key_is_invalid(self):
        token = jwt.encode(
            {"sub": "user-123", "exp": datetime.now(timezone.utc) + timedelta(minutes=5)},
            "another_secret_key_that_is_long_enough_to_sign",
            algorithm=ALGORITHM,
        )
        with pytest.raises(InvalidTokenError):
            decode_access_token(token)

    def test_garbage_token_is_invalid(self):
        with pytest.raises(InvalidTokenError):
            decode_access_token("not.a.token")

    def test_token_without_subject_is_invalid(self):
        token = jwt.encode(
            {"exp": datetime.now(timezone.utc) + timedelta(minutes=5)},
            settings.secret_key,
            algorithm=ALGORITHM,
        )
        with pytest.raises(InvalidTokenError):
            decode_access_token(token)
