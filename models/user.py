"""User models for authentication and database storage."""

from enum import Enum
from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from typing import Optional
from datetime import datetime


class AuthProvider(str, Enum):
    """How an account authenticates."""
    LOCAL = "LOCAL"
    GOOGLE = "GOOGLE"


class SignupRequest(BaseModel):
    """Schema for user registration. Missing fields are reported by the signup flow."""
    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    repassword: Optional[str] = None


class LoginRequest(BaseModel):
    """Schema for user login."""
    email: Optional[str] = None
    password: Optional[str] = None


class ForgotPasswordRequest(BaseModel):
    """Schema for requesting a reset password link."""
    email: Optional[str] = None


class ResetPasswordRequest(BaseModel):
    """Schema for choosing a new password with a reset token."""
    password: Optional[str] = None
    repassword: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("repassword", "rePassword")
    )


class UserInDB(BaseModel):
    """Schema for user stored in database."""
    id: str
    name: Optional[str] = None
    email: str
    password: Optional[str] = None
    auth_provider: AuthProvider = AuthProvider.LOCAL
    reset_password_token: Optional[str] = None
    reset_password_token_expired: Optional[datetime] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @classmethod
    def from_document(cls, doc: dict) -> "UserInDB":
        """Build a user from a MongoDB document."""
        data = {key: value for key, value in doc.items() if key != "_id"}
        data["id"] = str(doc["_id"])
        return cls(**data)

    @property
    def has_local_password(self) -> bool:
        return bool(self.password)


class UserResponse(BaseModel):
    """Schema for user response (without sensitive data)."""
    id: str
    name: Optional[str] = None
    email: str
    auth_provider: AuthProvider = AuthProvider.LOCAL
    created_at: Optional[datetime] = None

    @classmethod
    def from_user(cls, user: UserInDB) -> "UserResponse":
        return cls(
            id=user.id,
            name=user.name,
            email=user.email,
            auth_provider=user.auth_provider,
            created_at=user.created_at
        )


class LoginData(BaseModel):
    """Payload returned by a successful login."""
    token: str
    userId: str
    email: str
    name: Optional[str] = None


class ResetTokenData(BaseModel):
    """Payload returned by forgot-password when token exposure is enabled."""
    resetPasswordToken: str
    resetPasswordTokenExpired: datetime


class TokenData(BaseModel):
    """Schema for decoded token data."""
    user_id: Optional[str] = None
    name: Optional[str] = None
    email: Optional[str] = None


class GoogleProfile(BaseModel):
    """Profile returned by the Google userinfo endpoint."""
    email: Optional[str] = None
    name: Optional[str] = None
