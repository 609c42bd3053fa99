import os
from datetime import datetime
from typing import Optional
from urllib.parse import parse_qs

# Fast hashing and cookies sent back over http://testserver
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["COOKIE_SECURE"] = "false"
os.environ["CLIENT_URL"] = "https://leafguard.example.com"
os.environ["CLIENT_LOCAL_URL"] = "http://localhost:5173"

import httpx
import pytest
from bson import ObjectId
from fastapi import FastAPI
from fastapi.testclient import TestClient

from config.settings import ClientOrigins
from models.user import AuthProvider, UserInDB
from services.account_service import AccountService
from services.google_oauth_service import GoogleOAuthClient
from services.user_directory import EmailAlreadyRegisteredError


GOOGLE_USERS = {
    "at-budi": {"email": "budi@example.com", "name": "Budi"},
    "at-hidden": {"name": "Hidden Email"},
}
GOOGLE_CODES = {
    "valid-code": "at-budi",
    "no-email-code": "at-hidden",
}


class InMemoryUserDirectory:
    """User directory kept in a dict, with the same interface as MongoUserDirectory."""

    def __init__(self):
        self.users: dict[str, UserInDB] = {}
        self.fail_on: Optional[str] = None

    def _check(self, operation: str) -> None:
        if self.fail_on == operation:
            raise RuntimeError(f"directory unavailable during {operation}")

    async def find_by_email(self, email: str) -> Optional[UserInDB]:
        self._check("find_by_email")
        for user in self.users.values():
            if user.email == email:
                return user.model_copy()
        return None

    async def find_by_id(self, user_id: str) -> Optional[UserInDB]:
        user = self.users.get(user_id)
        return user.model_copy() if user else None

    async def find_by_reset_token(self, token: str) -> Optional[UserInDB]:
        if not token:
            return None
        for user in self.users.values():
            if user.reset_password_token == token:
                return user.model_copy()
        return None

    async def create(
        self,
        name: Optional[str],
        email: str,
        password: Optional[str] = None,
        auth_provider: AuthProvider = AuthProvider.LOCAL
    ) -> UserInDB:
        self._check("create")
        if any(user.email == email for user in self.users.values()):
            raise EmailAlreadyRegisteredError("Email already registered")
        user = UserInDB(
            id=str(ObjectId()),
            name=name,
            email=email,
            password=password,
            auth_provider=auth_provider,
            created_at=datetime.utcnow()
        )
        self.users[user.id] = user
        return user.model_copy()

    async def update_password(self, user_id: str, hashed_password: str) -> None:
        self._check("update_password")
        self.users[user_id].password = hashed_password

    async def update_reset_token(
        self,
        user_id: str,
        token: Optional[str],
        expires_at: Optional[datetime]
    ) -> None:
        self._check("update_reset_token")
        self.users[user_id].reset_password_token = token
        if expires_at is not None:
            # BSON datetimes keep milliseconds only
            expires_at = expires_at.replace(microsecond=expires_at.microsecond // 1000 * 1000)
        self.users[user_id].reset_password_token_expired = expires_at


class StaleReadUserDirectory(InMemoryUserDirectory):
    """Directory whose email lookups miss a user that a concurrent request just created."""

    def __init__(self, stale_reads: int = 1):
        super().__init__()
        self.stale_reads = stale_reads

    async def find_by_email(self, email: str) -> Optional[UserInDB]:
        if self.stale_reads > 0:
            self.stale_reads -= 1
            return None
        return await super().find_by_email(email)


class RecordingEmailService:
    """Email sender that keeps the links it was asked to send."""

    def __init__(self, succeed: bool = True):
        self.sent: list[tuple[str, str]] = []
        self.succeed = succeed

    async def send_reset_link(self, email: str, reset_url: str) -> bool:
        self.sent.append((email, reset_url))
        return self.succeed


class FrozenClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


def google_handler(request: httpx.Request) -> httpx.Response:
    if request.url.host == "oauth2.googleapis.com" and request.url.path == "/token":
        form = parse_qs(request.content.decode())
        access_token = GOOGLE_CODES.get(form.get("code", [""])[0])
        if access_token is None:
            return httpx.Response(400, json={"error": "invalid_grant"})
        return httpx.Response(200, json={"access_token": access_token, "token_type": "Bearer"})

    if request.url.path == "/oauth2/v2/userinfo":
        access_token = request.headers.get("Authorization", "").removeprefix("Bearer ")
        profile = GOOGLE_USERS.get(access_token)
        if profile is None:
            return httpx.Response(401, json={"error": "invalid_token"})
        return httpx.Response(200, json=profile)

    return httpx.Response(404)


@pytest.fixture
def directory() -> InMemoryUserDirectory:
    return InMemoryUserDirectory()


@pytest.fixture
def stale_directory() -> StaleReadUserDirectory:
    return StaleReadUserDirectory()


@pytest.fixture
def email_service() -> RecordingEmailService:
    return RecordingEmailService()


@pytest.fixture
def google_client() -> GoogleOAuthClient:
    return GoogleOAuthClient(
        client_id="client-123",
        client_secret="secret-456",
        redirect_uri="http://localhost:5000/api/auth/google/callback",
        transport=httpx.MockTransport(google_handler)
    )


@pytest.fixture
def origins() -> ClientOrigins:
    return ClientOrigins(
        client_url="https://leafguard.example.com",
        client_local_url="http://localhost:5173"
    )


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(datetime(2025, 3, 1, 12, 0, 0))


@pytest.fixture
def account_service(directory, google_client, email_service, origins, clock) -> AccountService:
    return AccountService(
        directory=directory,
        google_client=google_client,
        email_service=email_service,
        origins=origins,
        clock=clock
    )


@pytest.fixture
def client(account_service) -> TestClient:
    from api.routers.auth import router as auth_router

    app = FastAPI()
    app.include_router(auth_router)
    app.state.account_service = account_service
    with TestClient(app) as test_client:
        yield test_client
