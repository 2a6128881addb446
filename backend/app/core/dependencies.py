"""
Authentication dependencies for FastAPI.

This module provides dependencies for protecting routes with JWT authentication.
"""

from typing import Optional
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, ExpiredSignatureError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.orm import selectinload
from backend.app.core.exceptions import AuthenticationError, TokenExpiredError
from backend.app.core.jwt import decode_access_token
from backend.app.db.session import get_db
from backend.app.models.user import User

# HTTP Bearer security scheme; missing headers are reported by get_current_user
security = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db)
) -> User:
    """
    FastAPI dependency for JWT authentication.

    Checks, in order:
    1. A bearer token is present
    2. The token signature and expiry are valid
    3. The referenced user still exists
    4. The user is still active (real-time database check)

    Args:
        credentials: HTTP Bearer token from request header
        db: Database session for the user lookup

    Returns:
        The authenticated User, with its department loaded

    Raises:
        AuthenticationError: 401 for a missing/invalid token, unknown or inactive user
        TokenExpiredError: 401 when the token has expired
    """
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Not authorized to access this route")

    try:
        payload = decode_access_token(credentials.credentials)
    except ExpiredSignatureError:
        raise TokenExpiredError()
    except JWTError:
        raise AuthenticationError("Invalid token")

    user_id = payload.get("user_id")
    if not user_id:
        raise AuthenticationError("Invalid token")

    result = await db.execute(
        select(User)
        .options(selectinload(User.department))
        .where(User.id == user_id)
    )
    user = result.scalar_one_or_none()

    if not user:
        raise AuthenticationError("User not found")

    if not user.is_active:
        raise AuthenticationError("User account is deactivated")

    return user


async def get_bearer_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> Optional[str]:
    """Raw bearer token of the current request, if any."""
    return credentials.credentials if credentials else None
