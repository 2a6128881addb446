"""
User management API endpoints.
"""

import logging
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from sqlalchemy.orm import selectinload
from backend.app.db.session import get_db
from backend.app.models.department import Department
from backend.app.models.enums import UserRole
from backend.app.models.user import User
from backend.app.schemas.common import MessageResponse
from backend.app.schemas.user import UserDetailResponse, UserUpdate, UserListResponse
from backend.app.core.dependencies import get_current_user
from backend.app.core.guards import require_role
from backend.app.core.security import get_password_hash
from backend.app.core.exceptions import ConflictError, ResourceNotFoundError, ValidationFailedError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["Users"])


async def get_user_or_404(db: AsyncSession, user_id: int) -> User:
    result = await db.execute(
        select(User)
        .options(selectinload(User.department))
        .where(User.id == user_id)
        .execution_options(populate_existing=True)
    )
    user = result.scalar_one_or_none()
    if not user:
        raise ResourceNotFoundError("User", user_id)
    return user


@router.get("", response_model=UserListResponse)
async def list_users(
    role: Optional[UserRole] = Query(None, description="Filter by role"),
    department_id: Optional[int] = Query(None, description="Filter by department"),
    is_active: Optional[bool] = Query(None, description="Filter by active status"),
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(50, ge=1, le=100, description="Items per page"),
    current_user: User = Depends(require_role([UserRole.ADMIN, UserRole.MANAGER])),
    db: AsyncSession = Depends(get_db)
):
    """
    List users with optional filters (Admin and Manager only).
    """
    query = select(User)
    if role:
        query = query.where(User.user_role == role)
    if department_id:
        query = query.where(User.department_id == department_id)
    if is_active is not None:
        query = query.where(User.is_active == is_active)

    count_query = select(func.count()).select_from(query.subquery())
    total = (await db.execute(count_query)).scalar()

    query = query.options(selectinload(User.department)).order_by(User.created_at.desc(), User.id.desc())
    query = query.offset((page - 1) * page_size).limit(page_size)
    users = (await db.execute(query)).scalars().all()

    return UserListResponse(
        items=[UserDetailResponse.model_validate(u) for u in users],
        total=total,
        page=page,
        page_size=page_size
    )


@router.get("/{user_id}", response_model=UserDetailResponse)
async def get_user(
    user_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    user = await get_user_or_404(db, user_id)
    return UserDetailResponse.model_validate(user)


@router.put("/{user_id}", response_model=UserDetailResponse)
async def update_user(
    user_id: int,
    user_data: UserUpdate,
    current_user: User = Depends(require_role([UserRole.ADMIN])),
    db: AsyncSession = Depends(get_db)
):
    """
    Update a user (Admin only). A new password is hashed before storage.
    """
    user = await get_user_or_404(db, user_id)
    update_data = user_data.model_dump(exclude_unset=True)

    if update_data.get("email") and update_data["email"] != user.email:
        result = await db.execute(
            select(User.id).where(User.email == update_data["email"], User.id != user.id)
        )
        if result.first():
            raise ConflictError("User with this email already exists")

    if update_data.get("department_id") is not None:
        if await db.get(Department, update_data["department_id"]) is None:
            raise ResourceNotFoundError("Department", update_data["department_id"])

    password = update_data.pop("password", None)
    if password:
        user.password_hash = get_password_hash(password)

    for field, value in update_data.items():
        setattr(user, field, value)

    await db.commit()

    logger.info(f"User {user_id} updated by admin {current_user.id}")
    user = await get_user_or_404(db, user_id)
    return UserDetailResponse.model_validate(user)


@router.delete("/{user_id}", response_model=MessageResponse)
async def delete_user(
    user_id: int,
    current_user: User = Depends(require_role([UserRole.ADMIN])),
    db: AsyncSession = Depends(get_db)
):
    """
    Disable a user account (Admin only). Admins cannot disable themselves.
    """
    if user_id == current_user.id:
        raise ValidationFailedError("You cannot deactivate your own account")

    user = await get_user_or_404(db, user_id)
    user.is_active = False
    await db.commit()

    logger.info(f"User {user_id} deactivated by admin {current_user.id}")
    return MessageResponse(message="User deactivated successfully")
