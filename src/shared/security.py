# src/shared/security.py

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterable, Optional

import jwt

from src.shared.config import get_settings
from src.shared.exceptions import AuthenticationError


def create_access_token(
    sub: str,
    roles: Optional[Iterable[str]] = None,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Create a JWT access token for a library staff member.

    Args:
        sub: Subject (staff identifier, e.g. email or username)
        roles: Optional role names carried in the "roles" claim
        expires_delta: Token expiration time (defaults to config setting)

    Returns:
        Encoded JWT access token string
    """
    settings = get_settings()
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.access_token_exp_minutes))
    to_encode: Dict[str, Any] = {
        "sub": str(sub),
        "roles": list(roles or ["LIBRARIAN"]),
        "iat": int(now.timestamp()),
        "exp": int(expire.timestamp()),
        "typ": "access",
    }
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> Dict[str, Any]:
    """
    Decode and verify a JWT token.

    Raises:
        AuthenticationError: If token is invalid, expired, or malformed
    """
    settings = get_settings()
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm], options={"verify_exp": True})
    except jwt.ExpiredSignatureError:
        raise AuthenticationError("Token has expired", code="expired_token")
    except jwt.InvalidTokenError as e:
        raise AuthenticationError(f"Invalid token: {e}")
