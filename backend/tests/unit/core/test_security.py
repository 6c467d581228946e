"""
Unit Tests for Security Module
Tests for: password hashing, JWT access tokens, OTPs, log purge confirmation tokens
"""
import pytest
from datetime import datetime, timedelta
from jose import jwt
from fastapi import HTTPException

from alumnet.core.security import (
    ACCESS_TOKEN_TYPE,
    LOG_PURGE_TOKEN_TYPE,
    verify_password,
    get_password_hash,
    create_access_token,
    decode_token,
    generate_otp,
    create_log_purge_token,
    decode_log_purge_token,
    verify_log_purge_token
)
from alumnet.core.config import settings


class TestPasswordHashing:
    """Test password hashing functions"""

    def test_hash_password_returns_different_value(self):
        password = "testpassword123"
        hashed = get_password_hash(password)

        assert hashed != password
        assert len(hashed) > 0

    def test_hash_password_different_each_time(self):
        """Bcrypt generates a new salt per hash"""
        password = "testpassword123"

        assert get_password_hash(password) != get_password_hash(password)

    def test_verify_password_correct(self):
        hashed = get_password_hash("testpassword123")

        assert verify_password("testpassword123", hashed) is True

    def test_verify_password_incorrect(self):
        hashed = get_password_hash("testpassword123")

        assert verify_password("wrongpassword", hashed) is False

    def test_long_password_truncated_to_72_bytes(self):
        """Bcrypt only looks at the first 72 bytes"""
        password = "a" * 100
        hashed = get_password_hash(password)

        assert verify_password("a" * 72, hashed) is True


class TestAccessToken:
    """Test JWT access token creation and decoding"""

    def test_create_access_token(self):
        token = create_access_token({"sub": "user-123", "role": "alumni"})

        payload = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
        assert payload["sub"] == "user-123"
        assert payload["role"] == "alumni"
        assert payload["type"] == ACCESS_TOKEN_TYPE
        assert "exp" in payload

    def test_create_access_token_custom_expiry(self):
        token = create_access_token({"sub": "user-123"}, expires_delta=timedelta(minutes=5))

        payload = decode_token(token)
        expires_at = datetime.utcfromtimestamp(payload["exp"])
        assert expires_at <= datetime.utcnow() + timedelta(minutes=5, seconds=5)

    def test_decode_token_roundtrip(self):
        token = create_access_token({"sub": "user-123"})

        assert decode_token(token)["sub"] == "user-123"

    def test_decode_invalid_token(self):
        with pytest.raises(HTTPException) as exc_info:
            decode_token("invalid.token.here")

        assert exc_info.value.status_code == 401

    def test_decode_expired_token(self):
        token = create_access_token({"sub": "user-123"}, expires_delta=timedelta(seconds=-10))

        with pytest.raises(HTTPException) as exc_info:
            decode_token(token)

        assert exc_info.value.status_code == 401

    def test_decode_token_wrong_secret(self):
        token = jwt.encode({"sub": "user-123"}, "another-secret", algorithm=settings.JWT_ALGORITHM)

        with pytest.raises(HTTPException):
            decode_token(token)


class TestOtp:
    """Test OTP generation"""

    def test_default_length(self):
        otp = generate_otp()

        assert len(otp) == settings.OTP_LENGTH
        assert otp.isdigit()

    def test_custom_length(self):
        assert len(generate_otp(8)) == 8

    def test_codes_vary(self):
        codes = {generate_otp() for _ in range(20)}

        assert len(codes) > 1


class TestLogPurgeToken:
    """Test the confirmation token for DELETE /admin/logs"""

    def test_valid_for_issuing_admin(self):
        token = create_log_purge_token("admin-1")

        assert verify_log_purge_token(token, "admin-1") is True

    def test_bound_to_admin(self):
        token = create_log_purge_token("admin-1")

        assert verify_log_purge_token(token, "admin-2") is False

    def test_missing_token(self):
        assert verify_log_purge_token(None, "admin-1") is False
        assert verify_log_purge_token("", "admin-1") is False

    def test_access_token_rejected(self):
        token = create_access_token({"sub": "admin-1"})

        assert verify_log_purge_token(token, "admin-1") is False

    def test_expired_token_rejected(self):
        token = jwt.encode(
            {
                "sub": "admin-1",
                "type": LOG_PURGE_TOKEN_TYPE,
                "exp": datetime.utcnow() - timedelta(minutes=1),
            },
            settings.JWT_SECRET_KEY,
            algorithm=settings.JWT_ALGORITHM
        )

        assert verify_log_purge_token(token, "admin-1") is False

    def test_tokens_are_unique(self):
        assert create_log_purge_token("admin-1") != create_log_purge_token("admin-1")

    def test_each_token_has_its_own_id(self):
        first = decode_log_purge_token(create_log_purge_token("admin-1"), "admin-1")
        second = decode_log_purge_token(create_log_purge_token("admin-1"), "admin-1")

        assert first and second
        assert first != second

    def test_token_without_id_rejected(self):
        token = jwt.encode(
            {
                "sub": "admin-1",
                "type": LOG_PURGE_TOKEN_TYPE,
                "exp": datetime.utcnow() + timedelta(minutes=5),
            },
            settings.JWT_SECRET_KEY,
            algorithm=settings.JWT_ALGORITHM
        )

        assert decode_log_purge_token(token, "admin-1") is None
        assert verify_log_purge_token(token, "admin-1") is False
