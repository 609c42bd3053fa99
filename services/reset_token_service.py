"""Reset password token generation and expiry checks."""

import secrets
from datetime import datetime, timedelta
from typing import Optional
from pydantic import BaseModel

from config.settings import settings


RESET_TOKEN_BYTES = 20


class ResetToken(BaseModel):
    """An opaque reset token and the moment it stops being valid."""
    token: str
    expires_at: datetime


def generate_reset_token(now: Optional[datetime] = None) -> ResetToken:
    """Generate a random reset token valid for RESET_TOKEN_EXPIRE_MINUTES."""
    issued_at = now or datetime.utcnow()
    # BSON datetimes keep milliseconds only
    issued_at = issued_at.replace(microsecond=issued_at.microsecond // 1000 * 1000)
    return ResetToken(
        token=secrets.token_hex(RESET_TOKEN_BYTES),
        expires_at=issued_at + timedelta(minutes=settings.RESET_TOKEN_EXPIRE_MINUTES)
    )


def is_reset_token_expired(expires_at: Optional[datetime], now: datetime) -> bool:
    """A token expires strictly after its expiry time; a missing expiry never expires."""
    if expires_at is None:
        return False
    return expires_at < now


def build_reset_password_url(client_url: str, token: str) -> str:
    return f"{client_url.rstrip('/')}/reset-password/{token}"
