"""Settings configuration using pydantic-settings for environment variable management."""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import BaseModel, field_validator
from dotenv import load_dotenv

load_dotenv(override=True)


class ClientOrigins(BaseModel):
    """Client applications allowed to receive sessions from this service."""
    client_url: str
    client_local_url: str = ""

    def allowed(self) -> list[str]:
        """Allowed origins, empty entries dropped."""
        return [origin for origin in (self.client_url, self.client_local_url) if origin]


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    MONGODB_URL: str = "mongodb://localhost:27017"
    DATABASE_NAME: str = "leafguard"

    JWT_SECRET: str = "your-secret-key-change-in-production"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 1440
    BCRYPT_ROUNDS: int = 10

    COOKIE_SECURE: bool = True
    COOKIE_SAMESITE: str = "none"

    CLIENT_URL: str = "http://localhost:5173"
    CLIENT_LOCAL_URL: str = ""

    GOOGLE_CLIENT_ID: str = ""
    GOOGLE_CLIENT_SECRET: str = ""
    GOOGLE_REDIRECT_URI: str = "http://localhost:5000/api/auth/google/callback"
    GOOGLE_HTTP_TIMEOUT_SECONDS: float = 10.0

    RESET_TOKEN_EXPIRE_MINUTES: int = 5
    EXPOSE_RESET_TOKEN: bool = True

    SMTP_SERVER: str = "smtp.gmail.com"
    SMTP_PORT: int = 587
    SENDER_EMAIL: str = ""
    SENDER_PASSWORD: str = ""

    APP_NAME: str = "LeafGuard"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = True
    PORT: int = 5000

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"
    )

    @field_validator("CLIENT_URL", "CLIENT_LOCAL_URL", mode="before")
    @classmethod
    def strip_trailing_slash(cls, v):
        """Origins are compared against referer origins, which are lowercase and never end with '/'."""
        if isinstance(v, str):
            return v.strip().rstrip("/").lower()
        return v

    @field_validator("COOKIE_SAMESITE", mode="before")
    @classmethod
    def validate_samesite(cls, v):
        """Normalize and validate the cookie SameSite policy."""
        if isinstance(v, str):
            v = v.strip().lower()
            if v not in ("lax", "strict", "none"):
                raise ValueError("COOKIE_SAMESITE must be one of: lax, strict, none")
        return v

    def client_origins(self) -> ClientOrigins:
        """Build the client origin configuration handed to the auth flows."""
        return ClientOrigins(
            client_url=self.CLIENT_URL,
            client_local_url=self.CLIENT_LOCAL_URL
        )

    def get_allowed_origins(self) -> list[str]:
        """
        Origins allowed for CORS and for the Google login redirect.

        Returns:
            List of origins (e.g., ['https://app.example.com', 'http://localhost:5173'])
        """
        return self.client_origins().allowed()


settings = Settings()
