"""
Department API endpoints.

Reads are open to any authenticated user; writes are admin only.
"""

import logging
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.orm import selectinload
from backend.app.db.session import get_db
from backend.app.models.department import Department
from backend.app.models.enums import UserRole
from backend.app.models.user import User
from backend.app.schemas.common import MessageResponse
from backend.app.schemas.department import (
    DepartmentCreate, DepartmentUpdate, DepartmentDetailResponse, DepartmentListResponse,
)
from backend.app.core.dependencies import get_current_user
from backend.app.core.guards import require_role
from backend.app.core.exceptions import ConflictError, ResourceNotFoundError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/departments", tags=["Departments"])


async def get_department_or_404(db: AsyncSession, department_id: int) -> Department:
    result = await db.execute(
        select(Department)
        .options(selectinload(Department.users), selectinload(Department.vehicles))
        .where(Department.id == department_id)
        .execution_options(populate_existing=True)
    )
    department = result.scalar_one_or_none()
    if not department:
        raise ResourceNotFoundError("Department", department_id)
    return department


async def _ensure_code_available(db: AsyncSession, code: str, exclude_id: int = None):
    stmt = select(Department.id).where(Department.code == code)
    if exclude_id:
        stmt = stmt.where(Department.id != exclude_id)
    if (await db.execute(stmt)).first():
        raise ConflictError("Department with this code already exists")


@router.get("", response_model=DepartmentListResponse)
async def list_departments(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    List active departments with their users and vehicles.
    """
    result = await db.execute(
        select(Department)
        .options(selectinload(Department.users), selectinload(Department.vehicles))
        .where(Department.is_active == True)
        .order_by(Department.name)
    )
    departments = result.scalars().all()

    return DepartmentListResponse(
        items=[DepartmentDetailResponse.model_validate(d) for d in departments],
        total=len(departments)
    )


@router.get("/{department_id}", response_model=DepartmentDetailResponse)
async def get_department(
    department_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    department = await get_department_or_404(db, department_id)
    return DepartmentDetailResponse.model_validate(department)


@router.post("", response_model=DepartmentDetailResponse, status_code=status.HTTP_201_CREATED)
async def create_department(
    department_data: DepartmentCreate,
    current_user: User = Depends(require_role([UserRole.ADMIN])),
    db: AsyncSession = Depends(get_db)
):
    """
    Create a department (Admin only). Codes are unique.
    """
    await _ensure_code_available(db, department_data.code)

    department = Department(**department_data.model_dump(), is_active=True)
    db.add(department)
    await db.commit()

    logger.info(f"Department created: {department.code} by user {current_user.id}")
    department = await get_department_or_404(db, department.id)
    return DepartmentDetailResponse.model_validate(department)


@router.put("/{department_id}", response_model=DepartmentDetailResponse)
async def update_department(
    department_id: int,
    department_data: DepartmentUpdate,
    current_user: User = Depends(require_role([UserRole.ADMIN])),
    db: AsyncSession = Depends(get_db)
):
    department = await get_department_or_404(db, department_id)

    update_data = department_data.model_dump(exclude_unset=True)
    if update_data.get("code"):
        await _ensure_code_available(db, update_data["code"], exclude_id=department.id)

    for field, value in update_data.items():
        setattr(department, field, value)

    await db.commit()

    logger.info(f"Department updated: {department_id}")
    department = await get_department_or_404(db, department_id)
    return DepartmentDetailResponse.model_validate(department)


@router.delete("/{department_id}", response_model=MessageResponse)
async def delete_department(
    department_id: int,
    current_user: User = Depends(require_role([UserRole.ADMIN])),
    db: AsyncSession = Depends(get_db)
):
    """
    Soft-delete a department (Admin only). Members and vehicles keep their link.
    """
    department = await get_department_or_404(db, department_id)
    department.is_active = False
    await db.commit()

    logger.info(f"Department deleted: {department.code}")
    return MessageResponse(message="Department deleted successfully")
