"""API dependencies for authentication and authorization."""

from fastapi import Depends, HTTPException, status, Request
from fastapi.security import OAuth2PasswordBearer
from typing import Optional

from models.user import UserResponse
from services.account_service import AccountService
from services.auth_service import SESSION_COOKIE_NAME


oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


def get_account_service(request: Request) -> AccountService:
    """The AccountService built at application startup."""
    service = getattr(request.app.state, "account_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Authentication service is not ready"
        )
    return service


def has_session_cookie(request: Request) -> bool:
    """Whether the client already carries a session cookie."""
    return bool(request.cookies.get(SESSION_COOKIE_NAME))


async def get_token_from_request(
    request: Request,
    token: Optional[str] = Depends(oauth2_scheme)
) -> Optional[str]:
    """Extract token from Authorization header or cookie."""
    if token:
        return token
    return request.cookies.get(SESSION_COOKIE_NAME)


async def get_current_user(
    token: Optional[str] = Depends(get_token_from_request),
    service: AccountService = Depends(get_account_service)
) -> UserResponse:
    """Get the current authenticated user from the session token."""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    user = await service.current_user(token)
    if user is None:
        raise credentials_exception

    return UserResponse.from_user(user)
