"""
Account Service

Coordinates signup, password login, Google login, forgot password and reset
password. Every flow returns an AuthSuccess or an AuthFailure; collaborator
errors never escape a flow.
"""

import asyncio
import logging
from datetime import datetime
from typing import Callable, Optional
from urllib.parse import urlparse

from config.settings import ClientOrigins
from config.logging_utils import log_debug, log_step, log_success, log_error, mask_email
from models.result import AuthErrorKind, AuthResult, AuthSuccess, fail
from models.user import (
    AuthProvider,
    LoginData,
    ResetTokenData,
    UserInDB,
    UserResponse,
)
from services.auth_service import (
    decode_token,
    hash_password,
    issue_session_token,
    verify_password,
)
from services.email_service import EmailService
from services.google_oauth_service import GoogleOAuthClient, MissingEmailError, ProviderError
from services.reset_token_service import (
    build_reset_password_url,
    generate_reset_token,
    is_reset_token_expired,
)
from services.user_directory import EmailAlreadyRegisteredError, MongoUserDirectory

logger = logging.getLogger(__name__)


ALL_FIELDS_REQUIRED = "All fields are required"
PASSWORD_MISMATCH = "Password doesn't match"

DEFAULT_PORTS = {"http": 80, "https": 443}


def resolve_client_origin(referer: Optional[str], origins: ClientOrigins) -> str:
    """
    Pick the client origin to redirect to after Google login.

    The referer's origin is used when it is one of the allowed origins,
    otherwise the default client URL.
    """
    origin = referer_origin(referer) if referer else None
    if origin and origin in origins.allowed():
        return origin
    return origins.client_url


def referer_origin(referer: str) -> Optional[str]:
    """scheme://host[:port] of a URL, without userinfo or default ports."""
    parsed = urlparse(referer)
    scheme = parsed.scheme.lower()
    if not scheme or not parsed.hostname:
        return None
    try:
        port = parsed.port
    except ValueError:
        return None
    if port is None or DEFAULT_PORTS.get(scheme) == port:
        return f"{scheme}://{parsed.hostname}"
    return f"{scheme}://{parsed.hostname}:{port}"


class AccountService:
    """Auth flows over the user directory, Google and the email sender."""

    def __init__(
        self,
        directory: MongoUserDirectory,
        google_client: GoogleOAuthClient,
        email_service: EmailService,
        origins: ClientOrigins,
        expose_reset_token: bool = True,
        clock: Callable[[], datetime] = datetime.utcnow
    ):
        self.directory = directory
        self.google_client = google_client
        self.email_service = email_service
        self.origins = origins
        self.expose_reset_token = expose_reset_token
        self.clock = clock
        self._email_tasks: set[asyncio.Task] = set()

    def _server_error(self, flow: str) -> AuthResult:
        logger.exception(f"[AUTH] Unexpected error during {flow}")
        log_error(f"Server error during {flow}", prefix="AUTH")
        return fail(AuthErrorKind.SERVER_ERROR, f"Server error during {flow}")

    async def signup(
        self,
        name: Optional[str],
        email: Optional[str],
        password: Optional[str],
        repassword: Optional[str]
    ) -> AuthResult:
        """Register a local account."""
        try:
            if not name or not email or not password or not repassword:
                return fail(AuthErrorKind.INVALID_INPUT, ALL_FIELDS_REQUIRED)

            if await self.directory.find_by_email(email):
                return fail(AuthErrorKind.CONFLICT, "User already exist")

            if password != repassword:
                return fail(AuthErrorKind.INVALID_INPUT, PASSWORD_MISMATCH)

            try:
                user = await self.directory.create(
                    name=name,
                    email=email,
                    password=await asyncio.to_thread(hash_password, password),
                    auth_provider=AuthProvider.LOCAL
                )
            except EmailAlreadyRegisteredError:
                return fail(AuthErrorKind.CONFLICT, "User already exist")

            log_success(f"Registered {mask_email(email)}", prefix="AUTH")
            return AuthSuccess(
                message="Register Success!",
                data=UserResponse.from_user(user),
                status_code=201
            )
        except Exception:
            return self._server_error("signup")

    async def login(
        self,
        email: Optional[str],
        password: Optional[str],
        has_session: bool = False
    ) -> AuthResult:
        """Authenticate with email and password and issue a session."""
        try:
            if not email or not password:
                return fail(AuthErrorKind.INVALID_INPUT, ALL_FIELDS_REQUIRED)

            if has_session:
                return fail(AuthErrorKind.ALREADY_AUTHENTICATED, "You have logged in")

            user = await self.directory.find_by_email(email)
            if not user or not user.has_local_password:
                return fail(AuthErrorKind.NOT_FOUND, "User not found, please create an account")

            if not await asyncio.to_thread(verify_password, password, user.password):
                return fail(AuthErrorKind.INVALID_CREDENTIALS, "Invalid email or password")

            session = issue_session_token(user.id, user.name, user.email)
            log_debug(f"Login for user {user.id}", prefix="AUTH")
            return AuthSuccess(
                message="Login Success",
                data=LoginData(
                    token=session.token,
                    userId=user.id,
                    email=user.email,
                    name=user.name
                ),
                session_token=session.token
            )
        except Exception:
            return self._server_error("login")

    def google_login_start(self) -> str:
        """URL of the Google consent screen."""
        return self.google_client.authorization_url

    async def google_login_callback(self, code: Optional[str], referer: Optional[str] = None) -> AuthResult:
        """Finish Google login: exchange the code, find or create the user, issue a session."""
        try:
            if not code:
                return fail(AuthErrorKind.INVALID_INPUT, "Authorization code is missing")

            log_step("Exchanging Google authorization code", 1, 3)
            try:
                profile = await self.google_client.exchange_code_for_profile(code)
            except MissingEmailError:
                return fail(AuthErrorKind.MISSING_EMAIL, "User not found")
            except ProviderError as e:
                logger.warning(f"[GOOGLE] Code exchange failed: {e}")
                return fail(AuthErrorKind.PROVIDER_ERROR, "Server error during Google login")

            log_step("Resolving Google account", 2, 3)
            user = await self.directory.find_by_email(profile.email)
            if not user:
                user = await self._create_google_user(profile.name, profile.email)

            log_step("Issuing session", 3, 3)
            session = issue_session_token(user.id, user.name, user.email)
            origin = resolve_client_origin(referer, self.origins)

            return AuthSuccess(
                message="Google login success",
                status_code=302,
                session_token=session.token,
                redirect_url=f"{origin}/callback-google?token={session.token}"
            )
        except Exception:
            return self._server_error("Google login")

    async def _create_google_user(self, name: Optional[str], email: str) -> UserInDB:
        try:
            user = await self.directory.create(
                name=name,
                email=email,
                auth_provider=AuthProvider.GOOGLE
            )
        except EmailAlreadyRegisteredError:
            # Created by a concurrent callback for the same account.
            user = await self.directory.find_by_email(email)
            if user is None:
                raise
        else:
            log_success(f"Created Google account for {mask_email(email)}", prefix="GOOGLE")
        return user

    async def forgot_password(self, email: Optional[str]) -> AuthResult:
        """Issue a reset token and email the reset link."""
        try:
            if not email:
                return fail(AuthErrorKind.INVALID_INPUT, "Email is required")

            user = await self.directory.find_by_email(email)
            if not user:
                return fail(AuthErrorKind.NOT_FOUND, "User not found")

            reset = generate_reset_token(self.clock())
            await self.directory.update_reset_token(user.id, reset.token, reset.expires_at)

            reset_url = build_reset_password_url(self.origins.client_url, reset.token)
            self._send_reset_link_in_background(user.email, reset_url)

            data = None
            if self.expose_reset_token:
                data = ResetTokenData(
                    resetPasswordToken=reset.token,
                    resetPasswordTokenExpired=reset.expires_at
                )
            return AuthSuccess(
                message="Reset password link has been sent to your email",
                data=data
            )
        except Exception:
            return self._server_error("forgot password")

    def _send_reset_link_in_background(self, email: str, reset_url: str) -> None:
        task = asyncio.create_task(self._send_reset_link(email, reset_url))
        self._email_tasks.add(task)
        task.add_done_callback(self._email_tasks.discard)

    async def _send_reset_link(self, email: str, reset_url: str) -> None:
        try:
            sent = await self.email_service.send_reset_link(email, reset_url)
        except Exception:
            logger.exception(f"[EMAIL] Reset link delivery to {mask_email(email)} raised")
            return
        if not sent:
            log_error(f"Reset link was not delivered to {mask_email(email)}", prefix="EMAIL")

    async def reset_password(
        self,
        token: Optional[str],
        password: Optional[str],
        repassword: Optional[str],
        now: Optional[datetime] = None
    ) -> AuthResult:
        """Set a new password with a live reset token, consuming the token."""
        try:
            if not password or not repassword:
                return fail(AuthErrorKind.INVALID_INPUT, ALL_FIELDS_REQUIRED)

            user = await self.directory.find_by_reset_token(token)
            if not user:
                return fail(AuthErrorKind.NOT_FOUND, "Invalid link or user not found")

            if is_reset_token_expired(user.reset_password_token_expired, now or self.clock()):
                return fail(AuthErrorKind.GONE, "Your link had expire, please request a new one")

            if password != repassword:
                return fail(AuthErrorKind.INVALID_INPUT, PASSWORD_MISMATCH)

            hashed_password = await asyncio.to_thread(hash_password, password)
            # Not transactional: if the password update fails the token is already
            # consumed and the user has to request a new link.
            await self.directory.update_reset_token(user.id, None, None)
            await self.directory.update_password(user.id, hashed_password)

            log_success(f"Password reset for user {user.id}", prefix="AUTH")
            return AuthSuccess(message="Success reset password", data=UserResponse.from_user(user))
        except Exception:
            return self._server_error("reset password")

    def logout(self) -> AuthResult:
        return AuthSuccess(message="Logout successfully")

    async def current_user(self, token: Optional[str]) -> Optional[UserInDB]:
        """Resolve the user behind a session token, if the token is valid."""
        if not token:
            return None
        token_data = decode_token(token)
        if token_data is None:
            return None
        return await self.directory.find_by_id(token_data.user_id)
