from datetime import timedelta

from fastapi import Response
from jose import jwt

from config.settings import settings
from services.auth_service import (
    SESSION_COOKIE_NAME,
    clear_session_cookie,
    create_access_token,
    decode_token,
    hash_password,
    issue_session_token,
    set_session_cookie,
    verify_password,
)


def test_hash_verifies_and_is_salted():
    first = hash_password("pw123")
    second = hash_password("pw123")

    assert first != second
    assert verify_password("pw123", first)
    assert verify_password("pw123", second)
    assert not verify_password("pw124", first)


def test_hash_uses_requested_cost():
    assert hash_password("pw123", rounds=5).startswith("$2b$05$")


def test_malformed_hash_does_not_verify():
    assert verify_password("pw123", "not-a-bcrypt-hash") is False


def test_session_token_round_trip():
    session = issue_session_token("abc123", "Ann", "ann@x.com")
    token_data = decode_token(session.token)

    assert token_data.user_id == "abc123"
    assert token_data.name == "Ann"
    assert token_data.email == "ann@x.com"


def test_session_token_has_expiry_claim():
    session = issue_session_token("abc123", "Ann", "ann@x.com")
    claims = jwt.get_unverified_claims(session.token)
    assert claims["sub"] == "abc123"
    assert claims["exp"] > claims.get("iat", 0)


def test_expired_token_is_rejected():
    token = create_access_token({"sub": "abc123"}, expires_delta=timedelta(seconds=-5))
    assert decode_token(token) is None


def test_token_signed_with_other_secret_is_rejected():
    token = jwt.encode({"sub": "abc123"}, "another-secret", algorithm=settings.JWT_ALGORITHM)
    assert decode_token(token) is None


def test_token_without_subject_is_rejected():
    assert decode_token(create_access_token({"email": "ann@x.com"})) is None


def test_session_cookie_attributes():
    response = Response()
    set_session_cookie(response, "tok")

    cookie = response.headers["set-cookie"]
    assert cookie.startswith(f"{SESSION_COOKIE_NAME}=tok")
    assert "HttpOnly" in cookie
    assert f"Max-Age={settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60}" in cookie
    assert f"SameSite={settings.COOKIE_SAMESITE}" in cookie


def test_clear_session_cookie():
    response = Response()
    clear_session_cookie(response)
    cookie = response.headers["set-cookie"]
    assert cookie.startswith(f"{SESSION_COOKIE_NAME}=")
    assert "Max-Age=0" in cookie


def test_passwords_longer_than_bcrypt_limit():
    password = "p" * 80
    hashed = hash_password(password)

    assert verify_password(password, hashed)
    assert verify_password("p" * 72, hashed)
    assert not verify_password("p" * 71, hashed)


def test_multibyte_password_over_limit():
    password = "ü" * 50
    assert verify_password(password, hash_password(password))
