"""
Admin session authentication.

A single admin account from config. Logging in issues an HS256 JWT carried
in an httpOnly "session" cookie; admin routes depend on require_admin.
"""

import hmac
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from fastapi import Depends, Request

from api.config import JWT_ALGORITHM
from api.database import get_config
from exceptions import UnauthorizedError

SESSION_COOKIE = "session"


# --- JWT TOKEN MANAGEMENT ---

def create_session_token(username: str, secret: str, days: int = 7) -> str:
    """Create a signed session token for username."""
    now = datetime.now(timezone.utc)
    payload = {
        'sub': username,
        'role': 'admin',
        'iat': now,
        'exp': now + timedelta(days=days),
    }
    return jwt.encode(payload, secret, algorithm=JWT_ALGORITHM)


def decode_session_token(token: str, secret: str) -> Optional[dict]:
    """Decode a session token. Returns None if invalid or expired."""
    try:
        return jwt.decode(token, secret, algorithms=[JWT_ALGORITHM])
    except jwt.InvalidTokenError:
        return None


def validate_credentials(config: dict, username: str, password: str) -> bool:
    """Check a login against the configured admin account.

    An empty configured password disables login entirely.
    """
    expected_password = config.get('admin_password') or ''
    if not expected_password:
        return False
    user_ok = hmac.compare_digest((username or '').encode(), str(config.get('admin_username', '')).encode())
    pass_ok = hmac.compare_digest((password or '').encode(), str(expected_password).encode())
    return user_ok and pass_ok


def is_authenticated(request: Request, config: dict) -> bool:
    token = request.cookies.get(SESSION_COOKIE)
    if not token:
        return False
    payload = decode_session_token(token, config['auth_secret'])
    return payload is not None and payload.get('role') == 'admin'


# --- DEPENDENCY INJECTION ---

async def require_admin(request: Request, config: dict = Depends(get_config)) -> bool:
    """Require a valid admin session cookie. Raises 401 otherwise."""
    if not is_authenticated(request, config):
        raise UnauthorizedError("Unauthorized")
    return True
