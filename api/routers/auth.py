"""Authentication router for signup, login, Google login and password reset."""

from typing import Optional
from fastapi import APIRouter, Depends, Header, Request, status
from fastapi.responses import JSONResponse, RedirectResponse

from api.dependencies import get_account_service, get_current_user, has_session_cookie
from api.responses import ApiResponse, render_json, render_redirect
from models.user import (
    ForgotPasswordRequest,
    LoginRequest,
    ResetPasswordRequest,
    SignupRequest,
    UserResponse,
)
from services.account_service import AccountService
from services.auth_service import clear_session_cookie


router = APIRouter(prefix="/api/auth", tags=["Authentication"])


@router.post("/signup", response_model=ApiResponse, status_code=status.HTTP_201_CREATED)
async def signup(
    user_data: SignupRequest,
    service: AccountService = Depends(get_account_service)
) -> JSONResponse:
    """Register a new user account."""
    result = await service.signup(
        user_data.name,
        user_data.email,
        user_data.password,
        user_data.repassword
    )
    return render_json(result)


@router.post("/login", response_model=ApiResponse)
async def login(
    request: Request,
    user_data: LoginRequest,
    service: AccountService = Depends(get_account_service)
) -> JSONResponse:
    """Authenticate user, set the session cookie and return the token."""
    result = await service.login(
        user_data.email,
        user_data.password,
        has_session=has_session_cookie(request)
    )
    return render_json(result)


@router.post("/logout", response_model=ApiResponse)
async def logout(service: AccountService = Depends(get_account_service)) -> JSONResponse:
    """Logout user by clearing the session cookie."""
    response = render_json(service.logout())
    clear_session_cookie(response)
    return response


@router.get("/google")
async def login_with_google(service: AccountService = Depends(get_account_service)) -> RedirectResponse:
    """Redirect to the Google consent screen."""
    return RedirectResponse(url=service.google_login_start(), status_code=status.HTTP_302_FOUND)


@router.get("/google/callback")
async def google_callback(
    code: Optional[str] = None,
    referer: Optional[str] = Header(default=None),
    service: AccountService = Depends(get_account_service)
) -> RedirectResponse:
    """Finish Google login and hand the session over to the client application."""
    result = await service.google_login_callback(code, referer)
    return render_redirect(result)


@router.post("/forgot-password", response_model=ApiResponse)
async def forgot_password(
    payload: ForgotPasswordRequest,
    service: AccountService = Depends(get_account_service)
) -> JSONResponse:
    """Email a reset password link."""
    result = await service.forgot_password(payload.email)
    return render_json(result)


@router.post("/reset-password/{reset_password_token}", response_model=ApiResponse)
async def reset_password(
    reset_password_token: str,
    payload: ResetPasswordRequest,
    service: AccountService = Depends(get_account_service)
) -> JSONResponse:
    """Choose a new password using the token from the reset link."""
    result = await service.reset_password(
        reset_password_token,
        payload.password,
        payload.repassword
    )
    return render_json(result)


@router.get("/me", response_model=UserResponse)
async def get_me(current_user: UserResponse = Depends(get_current_user)):
    """Get current authenticated user information."""
    return current_user
