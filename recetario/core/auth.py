"""
Authentication for recetario service.

Validates Supabase-issued JWT access tokens. Sign-in and sign-up happen
against Supabase Auth directly; this service only verifies the bearer
token and turns its claims into a ``UserContext``.
"""

from typing import Optional

import jwt
import structlog
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ..config import settings
from ..domain.entities import UserContext
from ..domain.exceptions import AuthenticationException
from ..routers.errors import to_http_exception

logger = structlog.get_logger(__name__)
security = HTTPBearer(auto_error=False)

JWT_ALGORITHM = "HS256"


def decode_supabase_token(token: str) -> Optional[dict]:
    """
    Decode and validate a Supabase JWT token.

    Args:
        token: JWT token string

    Returns:
        Decoded payload if valid, None otherwise
    """
    if not settings.SUPABASE_JWT_SECRET:
        logger.error("SUPABASE_JWT_SECRET is not configured")
        return None

    try:
        return jwt.decode(
            token,
            settings.SUPABASE_JWT_SECRET,
            algorithms=[JWT_ALGORITHM],
            audience=settings.SUPABASE_JWT_AUDIENCE,
        )
    except jwt.ExpiredSignatureError:
        logger.warning("Token has expired")
        return None
    except jwt.InvalidTokenError as e:
        logger.warning("Invalid token", error=str(e))
        return None


def user_from_claims(payload: dict) -> Optional[UserContext]:
    """
    Build the caller from token claims.

    Returns:
        UserContext, or None when the token carries no subject
    """
    user_id = payload.get("sub")
    if not user_id:
        logger.warning("Invalid token payload - missing subject")
        return None

    return UserContext(
        id=str(user_id),
        email=payload.get("email"),
        metadata=payload.get("user_metadata") or {},
    )


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Optional[UserContext]:
    """
    Validate the bearer token and return the caller.

    Returns None for anonymous requests and for tokens that fail
    validation, so public endpoints keep working for signed-out users.
    """
    if not credentials:
        return None

    payload = decode_supabase_token(credentials.credentials)
    if not payload:
        return None

    user = user_from_claims(payload)
    if user:
        logger.debug("User authenticated", user_id=user.id)
    return user


async def require_authentication(
    user: Optional[UserContext] = Depends(get_current_user),
) -> UserContext:
    """
    Require an authenticated caller.

    Raises:
        HTTPException: 401 if the request has no valid session
    """
    if not user:
        raise to_http_exception(AuthenticationException("Inicia sesion para continuar."))
    return user
