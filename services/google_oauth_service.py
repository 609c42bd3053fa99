"""
Google OAuth2 Service

Implements the authorization-code exchange with Google and fetches the
authenticated user's profile. Tokens are used once per callback and discarded.
"""

import logging
from typing import Optional
from urllib.parse import urlencode

import httpx

from config.settings import settings
from config.logging_utils import log_debug, log_error
from models.user import GoogleProfile

logger = logging.getLogger(__name__)


GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_USERINFO_URL = "https://www.googleapis.com/oauth2/v2/userinfo"

SCOPES = [
    "https://www.googleapis.com/auth/userinfo.email",
    "https://www.googleapis.com/auth/userinfo.profile",
]


class GoogleOAuthError(Exception):
    """Base exception for Google OAuth errors."""
    pass


class ProviderError(GoogleOAuthError):
    """Raised when the code exchange or the profile fetch fails."""
    pass


class MissingEmailError(GoogleOAuthError):
    """Raised when Google returns a profile without an email address."""

    def __init__(self, profile: GoogleProfile):
        super().__init__("Google profile has no email address")
        self.profile = profile


class GoogleOAuthClient:
    """Client for Google's OAuth2 authorization-code flow."""

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        redirect_uri: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri
        self.timeout = timeout
        self._transport = transport
        self._authorization_url = self._build_authorization_url()

    @property
    def authorization_url(self) -> str:
        """URL of Google's consent screen for this application."""
        return self._authorization_url

    def _build_authorization_url(self) -> str:
        params = {
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "response_type": "code",
            "scope": " ".join(SCOPES),
            "access_type": "offline",
            "include_granted_scopes": "true",
        }
        return f"{GOOGLE_AUTH_URL}?{urlencode(params)}"

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport)

    async def exchange_code_for_profile(self, code: str) -> GoogleProfile:
        """
        Exchange an authorization code for an access token and fetch the user profile.

        Args:
            code: Authorization code from the Google redirect

        Returns:
            GoogleProfile with the user's email and name

        Raises:
            ProviderError: If the code is invalid/expired or a request fails
            MissingEmailError: If the profile carries no email
        """
        async with self._client() as client:
            access_token = await self._fetch_access_token(client, code)
            profile = await self._fetch_profile(client, access_token)

        if not profile.email:
            log_error("Google profile returned without email", prefix="GOOGLE")
            raise MissingEmailError(profile)

        log_debug(f"Fetched Google profile for {profile.name or 'unnamed user'}", prefix="GOOGLE")
        return profile

    async def _fetch_access_token(self, client: httpx.AsyncClient, code: str) -> str:
        try:
            response = await client.post(
                GOOGLE_TOKEN_URL,
                data={
                    "code": code,
                    "client_id": self.client_id,
                    "client_secret": self.client_secret,
                    "redirect_uri": self.redirect_uri,
                    "grant_type": "authorization_code",
                },
                headers={"Accept": "application/json"}
            )
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            logger.warning(f"Google token exchange rejected: {e.response.status_code} {e.response.text}")
            raise ProviderError("Authorization code is invalid or expired") from e
        except httpx.RequestError as e:
            raise ProviderError(f"Network error during token exchange: {str(e)}") from e
        except ValueError as e:
            raise ProviderError("Malformed token response from Google") from e

        access_token = data.get("access_token")
        if not access_token:
            raise ProviderError("Google token response did not include an access token")
        return access_token

    async def _fetch_profile(self, client: httpx.AsyncClient, access_token: str) -> GoogleProfile:
        try:
            response = await client.get(
                GOOGLE_USERINFO_URL,
                headers={"Authorization": f"Bearer {access_token}"}
            )
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            raise ProviderError(f"Failed to fetch Google profile: {e.response.status_code}") from e
        except httpx.RequestError as e:
            raise ProviderError(f"Network error fetching Google profile: {str(e)}") from e
        except ValueError as e:
            raise ProviderError("Malformed profile response from Google") from e

        return GoogleProfile(email=data.get("email"), name=data.get("name"))


def create_google_oauth_client(transport: Optional[httpx.AsyncBaseTransport] = None) -> GoogleOAuthClient:
    """Build a client from application settings."""
    return GoogleOAuthClient(
        client_id=settings.GOOGLE_CLIENT_ID,
        client_secret=settings.GOOGLE_CLIENT_SECRET,
        redirect_uri=settings.GOOGLE_REDIRECT_URI,
        timeout=settings.GOOGLE_HTTP_TIMEOUT_SECONDS,
        transport=transport
    )
