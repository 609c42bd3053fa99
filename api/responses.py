"""Rendering of auth flow results into HTTP responses."""

from typing import Any

from fastapi import HTTPException
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse, RedirectResponse
from pydantic import BaseModel

from models.result import AuthFailure, AuthResult
from services.auth_service import set_session_cookie


class ApiResponse(BaseModel):
    """Envelope for every JSON auth response."""
    message: str
    data: Any = None


def raise_for_failure(result: AuthResult) -> None:
    """Raise the HTTPException matching a failed flow."""
    if isinstance(result, AuthFailure):
        raise HTTPException(status_code=result.status_code, detail=result.message)


def render_json(result: AuthResult) -> JSONResponse:
    """Render a flow result as a JSON response, attaching the session cookie if one was issued."""
    raise_for_failure(result)
    response = JSONResponse(
        status_code=result.status_code,
        content=jsonable_encoder(ApiResponse(message=result.message, data=result.data))
    )
    if result.session_token:
        set_session_cookie(response, result.session_token)
    return response


def render_redirect(result: AuthResult) -> RedirectResponse:
    """Render a redirecting flow result, attaching the session cookie if one was issued."""
    raise_for_failure(result)
    response = RedirectResponse(url=result.redirect_url, status_code=result.status_code)
    if result.session_token:
        set_session_cookie(response, result.session_token)
    return response
