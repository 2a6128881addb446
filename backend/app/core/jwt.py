"""
JWT token utilities for authentication.

This module provides functions for encoding and decoding JWT tokens.
"""

import re
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from jose import jwt
from backend.app.core.config import settings

_DURATION_PATTERN = re.compile(r"^\s*(\d+)\s*([smhd]?)\s*$")
_DURATION_UNITS = {"": 1, "s": 1, "m": 60, "h": 3600, "d": 86400}


def parse_expires_in(value: str) -> timedelta:
    """
    Parse a token lifetime such as "24h", "30m", "7d" or "3600".

    Raises:
        ValueError: if the value is not a recognised duration
    """
    match = _DURATION_PATTERN.match(str(value))
    if not match:
        raise ValueError(f"Invalid token lifetime: {value!r}")
    amount, unit = match.groups()
    return timedelta(seconds=int(amount) * _DURATION_UNITS[unit])


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a JWT access token.

    Args:
        data: Data payload to encode in the token (should include: sub, user_id, role)
        expires_delta: Optional custom expiration time

    Returns:
        Encoded JWT token string

    Example payload:
        {
            "sub": "12",
            "user_id": 12,
            "email": "driver@fleet.test",
            "role": "driver",
            "jti": "9f1c...",
            "exp": 1234567890
        }
    """
    to_encode = data.copy()

    if expires_delta is None:
        expires_delta = parse_expires_in(settings.jwt_expires_in)
    expire = datetime.now(timezone.utc) + expires_delta

    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> Dict[str, Any]:
    """
    Decode and validate a JWT access token.

    Args:
        token: JWT token string to decode

    Returns:
        Decoded token payload (includes: sub, user_id, role, exp)

    Raises:
        jose.ExpiredSignatureError: if the token has expired
        jose.JWTError: if the token is malformed or the signature is invalid
    """
    return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])


def token_expiry(payload: Dict[str, Any]) -> datetime:
    """Naive local-time expiry of a decoded payload, for session bookkeeping."""
    return datetime.fromtimestamp(payload["exp"])
