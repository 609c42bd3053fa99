"""
Auth Flow Results

Every auth flow resolves to either an AuthSuccess or an AuthFailure; the HTTP
layer renders them into responses.
"""

from enum import Enum
from typing import Any, Optional, Union
from pydantic import BaseModel


class AuthErrorKind(str, Enum):
    """Failure taxonomy shared by all auth flows."""
    INVALID_INPUT = "invalid_input"
    CONFLICT = "conflict"
    NOT_FOUND = "not_found"
    INVALID_CREDENTIALS = "invalid_credentials"
    ALREADY_AUTHENTICATED = "already_authenticated"
    GONE = "gone"
    PROVIDER_ERROR = "provider_error"
    MISSING_EMAIL = "missing_email"
    SERVER_ERROR = "server_error"


STATUS_BY_KIND = {
    AuthErrorKind.INVALID_INPUT: 400,
    AuthErrorKind.CONFLICT: 400,
    AuthErrorKind.INVALID_CREDENTIALS: 400,
    AuthErrorKind.ALREADY_AUTHENTICATED: 400,
    AuthErrorKind.NOT_FOUND: 404,
    AuthErrorKind.MISSING_EMAIL: 404,
    AuthErrorKind.GONE: 410,
    AuthErrorKind.PROVIDER_ERROR: 500,
    AuthErrorKind.SERVER_ERROR: 500,
}


class AuthSuccess(BaseModel):
    """A completed flow."""
    message: str
    data: Any = None
    status_code: int = 200
    session_token: Optional[str] = None
    redirect_url: Optional[str] = None


class AuthFailure(BaseModel):
    """A flow rejected with one of the AuthErrorKind values."""
    kind: AuthErrorKind
    message: str

    @property
    def status_code(self) -> int:
        return STATUS_BY_KIND[self.kind]


AuthResult = Union[AuthSuccess, AuthFailure]


def fail(kind: AuthErrorKind, message: str) -> AuthFailure:
    return AuthFailure(kind=kind, message=message)
