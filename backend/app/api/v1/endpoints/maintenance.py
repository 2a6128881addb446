"""
Maintenance schedule API endpoints.

Schedules are listed by due state, completed to roll forward to the next
interval, and soft-deleted.
"""

import calendar
import logging
import math
from datetime import datetime, timedelta
from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from sqlalchemy.orm import selectinload
from backend.app.db.session import get_db
from backend.app.models.enums import MaintenanceType, MaintenanceDueStatus
from backend.app.models.maintenance_schedule import MaintenanceSchedule, DUE_SOON_DAYS
from backend.app.models.user import User
from backend.app.models.vehicle import Vehicle
from backend.app.schemas.common import MessageResponse
from backend.app.schemas.maintenance import (
    MaintenanceCreate, MaintenanceUpdate, MaintenanceComplete,
    MaintenanceResponse, MaintenanceListResponse, MaintenanceStats,
)
from backend.app.core.dependencies import get_current_user
from backend.app.core.exceptions import ResourceNotFoundError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/maintenance", tags=["Maintenance"])


def add_months(value: datetime, months: int) -> datetime:
    """Calendar month arithmetic; the day is clamped to the target month's length."""
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def _due_state_clause(due_status: MaintenanceDueStatus, now: datetime):
    soon = now + timedelta(days=DUE_SOON_DAYS)
    if due_status == MaintenanceDueStatus.OVERDUE:
        return MaintenanceSchedule.next_due_date < now
    if due_status == MaintenanceDueStatus.DUE_SOON:
        return MaintenanceSchedule.next_due_date.between(now, soon)
    return MaintenanceSchedule.next_due_date > soon


async def get_schedule_or_404(db: AsyncSession, maintenance_id: int) -> MaintenanceSchedule:
    result = await db.execute(
        select(MaintenanceSchedule)
        .options(selectinload(MaintenanceSchedule.vehicle))
        .where(MaintenanceSchedule.id == maintenance_id)
        .execution_options(populate_existing=True)
    )
    schedule = result.scalar_one_or_none()
    if not schedule:
        raise ResourceNotFoundError("Maintenance schedule", maintenance_id)
    return schedule


@router.get("", response_model=MaintenanceListResponse)
async def list_maintenance(
    vehicle_id: Optional[int] = Query(None, description="Filter by vehicle"),
    maintenance_type: Optional[MaintenanceType] = Query(None, description="Filter by type"),
    status_filter: Optional[MaintenanceDueStatus] = Query(
        None, alias="status", description="overdue, due_soon or scheduled"
    ),
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(50, ge=1, le=100, description="Items per page"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    List active maintenance schedules, soonest due first.

    The status filter is evaluated against next_due_date at request time.
    """
    query = select(MaintenanceSchedule).where(MaintenanceSchedule.is_active == True)
    if vehicle_id:
        query = query.where(MaintenanceSchedule.vehicle_id == vehicle_id)
    if maintenance_type:
        query = query.where(MaintenanceSchedule.maintenance_type == maintenance_type)
    if status_filter:
        query = query.where(_due_state_clause(status_filter, datetime.now()))

    count_query = select(func.count()).select_from(query.subquery())
    total = (await db.execute(count_query)).scalar()

    query = query.options(selectinload(MaintenanceSchedule.vehicle))
    query = query.order_by(MaintenanceSchedule.next_due_date.asc(), MaintenanceSchedule.id.asc())
    query = query.offset((page - 1) * page_size).limit(page_size)
    schedules = (await db.execute(query)).scalars().all()

    return MaintenanceListResponse(
        items=[MaintenanceResponse.model_validate(s) for s in schedules],
        total=total,
        page=page,
        page_size=page_size,
        pages=math.ceil(total / page_size) if total else 0
    )


@router.get("/stats/dashboard", response_model=MaintenanceStats)
async def get_maintenance_stats(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Counts of active schedules that are overdue, due within the week, or
    have been completed at least once.
    """
    now = datetime.now()
    base = select(func.count(MaintenanceSchedule.id)).where(MaintenanceSchedule.is_active == True)

    total = (await db.execute(base)).scalar()
    overdue = (await db.execute(
        base.where(_due_state_clause(MaintenanceDueStatus.OVERDUE, now))
    )).scalar()
    due_soon = (await db.execute(
        base.where(_due_state_clause(MaintenanceDueStatus.DUE_SOON, now))
    )).scalar()
    completed = (await db.execute(
        base.where(MaintenanceSchedule.last_performed_at.is_not(None))
    )).scalar()

    return MaintenanceStats(total=total, overdue=overdue, due_soon=due_soon, completed=completed)


@router.get("/{maintenance_id}", response_model=MaintenanceResponse)
async def get_maintenance(
    maintenance_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    schedule = await get_schedule_or_404(db, maintenance_id)
    return MaintenanceResponse.model_validate(schedule)


@router.post("", response_model=MaintenanceResponse, status_code=status.HTTP_201_CREATED)
async def create_maintenance(
    schedule_data: MaintenanceCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    vehicle = await db.get(Vehicle, schedule_data.vehicle_id)
    if not vehicle:
        raise ResourceNotFoundError("Vehicle", schedule_data.vehicle_id)

    schedule = MaintenanceSchedule(**schedule_data.model_dump(), is_active=True)
    db.add(schedule)
    await db.commit()

    logger.info(
        f"Maintenance schedule {schedule.id} created for vehicle {vehicle.number_plate}: "
        f"{schedule.maintenance_type.value}"
    )
    schedule = await get_schedule_or_404(db, schedule.id)
    return MaintenanceResponse.model_validate(schedule)


@router.put("/{maintenance_id}", response_model=MaintenanceResponse)
async def update_maintenance(
    maintenance_id: int,
    schedule_data: MaintenanceUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    schedule = await get_schedule_or_404(db, maintenance_id)

    for field, value in schedule_data.model_dump(exclude_unset=True).items():
        setattr(schedule, field, value)

    await db.commit()

    logger.info(f"Maintenance schedule updated: {maintenance_id}")
    schedule = await get_schedule_or_404(db, maintenance_id)
    return MaintenanceResponse.model_validate(schedule)


@router.put("/{maintenance_id}/complete", response_model=MaintenanceResponse)
async def complete_maintenance(
    maintenance_id: int,
    completion: MaintenanceComplete,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Record that the maintenance was performed now.

    The next due date moves interval_months past now and the next due
    odometer moves interval_km past the vehicle's current reading. Either
    is left alone when its interval is unset.
    """
    schedule = await get_schedule_or_404(db, maintenance_id)
    now = datetime.now()

    schedule.last_performed_at = now
    if completion.actual_cost is not None:
        schedule.actual_cost = completion.actual_cost
    if completion.notes is not None:
        schedule.notes = completion.notes

    if schedule.interval_months:
        schedule.next_due_date = add_months(now, schedule.interval_months)

    vehicle = schedule.vehicle
    if schedule.interval_km and vehicle is not None:
        schedule.next_due_km = vehicle.current_odometer + schedule.interval_km
    if vehicle is not None:
        vehicle.last_service_date = now

    await db.commit()

    logger.info(f"Maintenance schedule {maintenance_id} completed by user {current_user.id}")
    schedule = await get_schedule_or_404(db, maintenance_id)
    return MaintenanceResponse.model_validate(schedule)


@router.delete("/{maintenance_id}", response_model=MessageResponse)
async def delete_maintenance(
    maintenance_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    schedule = await get_schedule_or_404(db, maintenance_id)
    schedule.is_active = False
    await db.commit()

    logger.info(f"Maintenance schedule deleted: {maintenance_id}")
    return MessageResponse(message="Maintenance schedule deleted successfully")
