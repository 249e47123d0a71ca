"""
Authentication router.

Handles admin login, logout and session status.
"""

from fastapi import APIRouter, Depends, Request, Response

from api.auth import (
    SESSION_COOKIE, create_session_token, validate_credentials, is_authenticated,
)
from api.database import get_config
from api.models.auth import LoginRequest, AuthStatusResponse
from exceptions import UnauthorizedError

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("", response_model=AuthStatusResponse)
def login(body: LoginRequest, response: Response, config: dict = Depends(get_config)):
    """Check admin credentials and set the session cookie."""
    if not validate_credentials(config, body.username, body.password):
        raise UnauthorizedError("Invalid credentials")

    days = int(config.get('session_days', 7))
    token = create_session_token(body.username, config['auth_secret'], days)
    response.set_cookie(
        SESSION_COOKIE,
        token,
        max_age=days * 24 * 60 * 60,
        path="/",
        httponly=True,
        samesite="lax",
        secure=bool(config.get('secure_cookies')),
    )
    return AuthStatusResponse(authenticated=True)


@router.delete("", response_model=AuthStatusResponse)
def logout(response: Response):
    response.delete_cookie(SESSION_COOKIE, path="/")
    return AuthStatusResponse(authenticated=False)


@router.get("", response_model=AuthStatusResponse)
def auth_status(request: Request, config: dict = Depends(get_config)):
    return AuthStatusResponse(authenticated=is_authenticated(request, config))
