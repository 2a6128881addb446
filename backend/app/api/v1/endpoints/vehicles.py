"""
Vehicle API endpoints.

CRUD for fleet vehicles plus trip history and the status change log.
Deletion is soft.
"""

import base64
import logging
from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from sqlalchemy.orm import selectinload
from backend.app.db.session import get_db
from backend.app.models.department import Department
from backend.app.models.enums import UserRole, VehicleStatus
from backend.app.models.trip import Trip
from backend.app.models.user import User
from backend.app.models.vehicle import Vehicle
from backend.app.models.vehicle_status_log import VehicleStatusLog
from backend.app.schemas.common import MessageResponse
from backend.app.schemas.trip import TripDetailResponse
from backend.app.schemas.vehicle import (
    VehicleCreate, VehicleUpdate, VehicleResponse, VehicleDetailResponse,
    VehicleListResponse, VehicleStatusLogResponse, VehicleHistoryResponse,
)
from backend.app.core.dependencies import get_current_user
from backend.app.core.guards import require_role
from backend.app.core.exceptions import ConflictError, ResourceNotFoundError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/vehicles", tags=["Vehicles"])

VEHICLE_OPTIONS = (
    selectinload(Vehicle.department),
    selectinload(Vehicle.assigned_driver),
)


def generate_qr_code(number_plate: str, make: str, model: str) -> str:
    """Opaque vehicle tag printed on the QR sticker."""
    data = f"{number_plate}-{make}-{model}".encode("utf-8")
    return base64.b64encode(data).decode("ascii")[:255]


async def get_vehicle_or_404(db: AsyncSession, vehicle_id: int) -> Vehicle:
    result = await db.execute(
        select(Vehicle)
        .options(*VEHICLE_OPTIONS)
        .where(Vehicle.id == vehicle_id)
        .execution_options(populate_existing=True)
    )
    vehicle = result.scalar_one_or_none()
    if not vehicle:
        raise ResourceNotFoundError("Vehicle", vehicle_id)
    return vehicle


async def _ensure_references(db: AsyncSession, department_id: Optional[int], driver_id: Optional[int]):
    if department_id is not None and await db.get(Department, department_id) is None:
        raise ResourceNotFoundError("Department", department_id)
    if driver_id is not None and await db.get(User, driver_id) is None:
        raise ResourceNotFoundError("User", driver_id)


async def _ensure_unique(db: AsyncSession, number_plate: Optional[str], vin: Optional[str], exclude_id: Optional[int] = None):
    if number_plate:
        stmt = select(Vehicle.id).where(Vehicle.number_plate == number_plate)
        if exclude_id:
            stmt = stmt.where(Vehicle.id != exclude_id)
        if (await db.execute(stmt)).first():
            raise ConflictError("Vehicle with this number plate already exists")
    if vin:
        stmt = select(Vehicle.id).where(Vehicle.vin == vin)
        if exclude_id:
            stmt = stmt.where(Vehicle.id != exclude_id)
        if (await db.execute(stmt)).first():
            raise ConflictError("Vehicle with this VIN already exists")


@router.get("", response_model=VehicleListResponse)
async def list_vehicles(
    status_filter: Optional[VehicleStatus] = Query(None, alias="status", description="Filter by status"),
    department_id: Optional[int] = Query(None, description="Filter by department"),
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(50, ge=1, le=100, description="Items per page"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    List active vehicles, newest first.
    """
    query = select(Vehicle).where(Vehicle.is_active == True)
    if status_filter:
        query = query.where(Vehicle.status == status_filter)
    if department_id:
        query = query.where(Vehicle.department_id == department_id)

    count_query = select(func.count()).select_from(query.subquery())
    total = (await db.execute(count_query)).scalar()

    query = query.options(*VEHICLE_OPTIONS).order_by(Vehicle.created_at.desc(), Vehicle.id.desc())
    query = query.offset((page - 1) * page_size).limit(page_size)
    vehicles = (await db.execute(query)).scalars().all()

    return VehicleListResponse(
        items=[VehicleDetailResponse.model_validate(v) for v in vehicles],
        total=total,
        page=page,
        page_size=page_size
    )


@router.get("/history/{vehicle_id}", response_model=VehicleHistoryResponse)
async def get_vehicle_history(
    vehicle_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Trip history for a vehicle, with drivers and inspections.
    """
    vehicle = await get_vehicle_or_404(db, vehicle_id)

    result = await db.execute(
        select(Trip)
        .options(
            selectinload(Trip.vehicle),
            selectinload(Trip.driver),
            selectinload(Trip.inspections),
        )
        .where(Trip.vehicle_id == vehicle_id)
        .order_by(Trip.start_time.desc())
    )
    trips = result.scalars().all()

    return VehicleHistoryResponse(
        vehicle=VehicleResponse.model_validate(vehicle),
        trips=[TripDetailResponse.model_validate(t) for t in trips],
        total_trips=len(trips),
    )


@router.get("/{vehicle_id}", response_model=VehicleDetailResponse)
async def get_vehicle(
    vehicle_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Get a vehicle with its department and assigned driver.
    """
    vehicle = await get_vehicle_or_404(db, vehicle_id)
    return VehicleDetailResponse.model_validate(vehicle)


@router.get("/{vehicle_id}/status-logs", response_model=list[VehicleStatusLogResponse])
async def get_vehicle_status_logs(
    vehicle_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Status transitions for a vehicle, newest first.
    """
    await get_vehicle_or_404(db, vehicle_id)
    result = await db.execute(
        select(VehicleStatusLog)
        .where(VehicleStatusLog.vehicle_id == vehicle_id)
        .order_by(VehicleStatusLog.created_at.desc(), VehicleStatusLog.id.desc())
    )
    return [VehicleStatusLogResponse.model_validate(log) for log in result.scalars().all()]


@router.post("", response_model=VehicleDetailResponse, status_code=status.HTTP_201_CREATED)
async def create_vehicle(
    vehicle_data: VehicleCreate,
    current_user: User = Depends(require_role([UserRole.ADMIN, UserRole.MANAGER])),
    db: AsyncSession = Depends(get_db)
):
    """
    Register a new vehicle (Admin and Manager only).

    New vehicles start as available with a zero odometer and a generated QR code.
    """
    await _ensure_unique(db, vehicle_data.number_plate, vehicle_data.vin)
    await _ensure_references(db, vehicle_data.department_id, vehicle_data.assigned_driver_id)

    vehicle = Vehicle(
        **vehicle_data.model_dump(),
        qr_code=generate_qr_code(vehicle_data.number_plate, vehicle_data.make, vehicle_data.model),
        status=VehicleStatus.AVAILABLE,
        current_odometer=0,
        is_active=True,
    )
    db.add(vehicle)
    await db.commit()

    logger.info(f"New vehicle created: {vehicle.number_plate} by user {current_user.id}")
    vehicle = await get_vehicle_or_404(db, vehicle.id)
    return VehicleDetailResponse.model_validate(vehicle)


@router.put("/{vehicle_id}", response_model=VehicleDetailResponse)
async def update_vehicle(
    vehicle_id: int,
    vehicle_data: VehicleUpdate,
    current_user: User = Depends(require_role([UserRole.ADMIN, UserRole.MANAGER])),
    db: AsyncSession = Depends(get_db)
):
    """
    Update a vehicle (Admin and Manager only).

    A status change appends a row to the vehicle status log.
    """
    vehicle = await get_vehicle_or_404(db, vehicle_id)

    update_data = vehicle_data.model_dump(exclude_unset=True)
    reason = update_data.pop("reason", None)

    await _ensure_unique(db, update_data.get("number_plate"), update_data.get("vin"), exclude_id=vehicle.id)
    await _ensure_references(db, update_data.get("department_id"), update_data.get("assigned_driver_id"))

    previous_status = vehicle.status
    for field, value in update_data.items():
        setattr(vehicle, field, value)

    if vehicle.status != previous_status:
        db.add(VehicleStatusLog(
            vehicle_id=vehicle.id,
            previous_status=previous_status,
            new_status=vehicle.status,
            changed_by=current_user.id,
            reason=reason,
            odometer_reading=vehicle.current_odometer,
        ))
        logger.info(
            f"Vehicle {vehicle.number_plate} status {previous_status.value} -> {vehicle.status.value}"
        )

    await db.commit()

    logger.info(f"Vehicle updated: {vehicle.number_plate}")
    vehicle = await get_vehicle_or_404(db, vehicle_id)
    return VehicleDetailResponse.model_validate(vehicle)


@router.delete("/{vehicle_id}", response_model=MessageResponse)
async def delete_vehicle(
    vehicle_id: int,
    current_user: User = Depends(require_role([UserRole.ADMIN])),
    db: AsyncSession = Depends(get_db)
):
    """
    Soft-delete a vehicle (Admin only).
    """
    vehicle = await get_vehicle_or_404(db, vehicle_id)
    vehicle.is_active = False
    await db.commit()

    logger.info(f"Vehicle deleted: {vehicle.number_plate}")
    return MessageResponse(message="Vehicle deleted successfully")
