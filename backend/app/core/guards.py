"""
Security guards for role-based access control.

Provides dependencies for protecting endpoints.
"""

from typing import Iterable
from fastapi import Depends
from backend.app.core.dependencies import get_current_user
from backend.app.core.exceptions import InsufficientPermissionsError
from backend.app.models.enums import UserRole
from backend.app.models.user import User


def has_role(user: User, allowed_roles: frozenset) -> bool:
    """Pure role predicate used by require_role."""
    return user.user_role in allowed_roles


def require_role(allowed_roles: Iterable[UserRole]):
    """
    Dependency factory for role-based access control.

    Usage:
        @router.delete("/vehicles/{vehicle_id}")
        async def delete_vehicle(current_user: User = Depends(require_role([UserRole.ADMIN]))):
            ...

    Args:
        allowed_roles: UserRole values that are allowed to access the endpoint

    Returns:
        FastAPI dependency function that validates the user role

    Raises:
        InsufficientPermissionsError 403 if the user role is not allowed
    """
    roles = frozenset(allowed_roles)

    async def role_checker(current_user: User = Depends(get_current_user)) -> User:
        if not has_role(current_user, roles):
            raise InsufficientPermissionsError(
                f"User role {current_user.user_role.value} is not authorized to access this route"
            )
        return current_user

    return role_checker
