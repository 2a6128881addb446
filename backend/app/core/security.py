"""
Password hashing utilities.

Uses a single passlib CryptContext configured for bcrypt.
"""

from typing import Optional
from passlib.context import CryptContext

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def get_password_hash(password: str) -> str:
    """Hash a plain password with bcrypt."""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """
    Check a plain password against a stored hash.

    Users created without a password never match.
    """
    if not hashed_password:
        return False
    return pwd_context.verify(plain_password, hashed_password)
