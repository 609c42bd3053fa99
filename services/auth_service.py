"""Authentication service for password hashing and JWT session management."""

from datetime import datetime, timedelta
from typing import Optional
import bcrypt
from fastapi import Response
from jose import JWTError, jwt
from pydantic import BaseModel

from config.settings import settings
from models.user import TokenData


SESSION_COOKIE_NAME = "token"

# bcrypt only uses the first 72 bytes of a password
BCRYPT_MAX_PASSWORD_BYTES = 72


class SessionToken(BaseModel):
    """A freshly issued session credential."""
    token: str
    expires_at: datetime


def _password_bytes(password: str) -> bytes:
    return password.encode('utf-8')[:BCRYPT_MAX_PASSWORD_BYTES]


def hash_password(password: str, rounds: Optional[int] = None) -> str:
    """Hash a password using bcrypt with a fresh salt."""
    password_bytes = _password_bytes(password)
    salt = bcrypt.gensalt(rounds=rounds or settings.BCRYPT_ROUNDS)
    hashed = bcrypt.hashpw(password_bytes, salt)
    return hashed.decode('utf-8')


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash. A malformed hash never verifies."""
    password_bytes = _password_bytes(plain_password)
    hashed_bytes = hashed_password.encode('utf-8')
    try:
        return bcrypt.checkpw(password_bytes, hashed_bytes)
    except ValueError:
        return False


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create a JWT access token."""
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.utcnow() + expires_delta
    else:
        expire = datetime.utcnow() + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({"exp": expire})
    encoded_jwt = jwt.encode(to_encode, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)
    return encoded_jwt


def decode_token(token: str) -> Optional[TokenData]:
    """Decode and validate a JWT token."""
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
        user_id: str = payload.get("sub")
        if user_id is None:
            return None
        return TokenData(user_id=user_id, name=payload.get("name"), email=payload.get("email"))
    except JWTError:
        return None


def issue_session_token(user_id: str, name: Optional[str], email: str) -> SessionToken:
    """Create the session credential bound to a user."""
    lifetime = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    token = create_access_token(
        data={"sub": str(user_id), "name": name, "email": email},
        expires_delta=lifetime
    )
    return SessionToken(token=token, expires_at=datetime.utcnow() + lifetime)


def set_session_cookie(response: Response, token: str) -> None:
    """Attach the session cookie for the configured client origins."""
    response.set_cookie(
        key=SESSION_COOKIE_NAME,
        value=token,
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite=settings.COOKIE_SAMESITE,
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60
    )


def clear_session_cookie(response: Response) -> None:
    """Remove the session cookie."""
    response.delete_cookie(
        key=SESSION_COOKIE_NAME,
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite=settings.COOKIE_SAMESITE
    )
