"""
Trip API endpoints.

Start, update, end and list trips. Ending a trip closes it exactly once.
"""

import logging
from datetime import datetime
from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from sqlalchemy.orm import selectinload
from backend.app.db.session import get_db
from backend.app.models.enums import TripStatus
from backend.app.models.trip import Trip
from backend.app.models.user import User
from backend.app.models.vehicle import Vehicle
from backend.app.models.vehicle_inspection import VehicleInspection
from backend.app.schemas.trip import (
    TripCreate, TripUpdate, TripEnd, TripDetailResponse, TripListResponse, InspectionInput,
)
from backend.app.core.dependencies import get_current_user
from backend.app.core.exceptions import ResourceNotFoundError, ValidationFailedError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/trips", tags=["Trips"])

TRIP_OPTIONS = (
    selectinload(Trip.vehicle),
    selectinload(Trip.driver),
    selectinload(Trip.inspections),
)


async def get_trip_or_404(db: AsyncSession, trip_id: int) -> Trip:
    result = await db.execute(
        select(Trip)
        .options(*TRIP_OPTIONS)
        .where(Trip.id == trip_id)
        .execution_options(populate_existing=True)
    )
    trip = result.scalar_one_or_none()
    if not trip:
        raise ResourceNotFoundError("Trip", trip_id)
    return trip


def _inspection(trip: Trip, inspection_type: str, data: InspectionInput) -> VehicleInspection:
    return VehicleInspection(
        trip_id=trip.id,
        vehicle_id=trip.vehicle_id,
        inspection_type=inspection_type,
        **data.model_dump(),
    )


@router.get("", response_model=TripListResponse)
async def list_trips(
    status_filter: Optional[TripStatus] = Query(None, alias="status", description="Filter by status"),
    vehicle_id: Optional[int] = Query(None, description="Filter by vehicle"),
    user_id: Optional[int] = Query(None, description="Filter by driver"),
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(50, ge=1, le=100, description="Items per page"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    List trips, most recently started first.
    """
    query = select(Trip)
    if status_filter:
        query = query.where(Trip.status == status_filter)
    if vehicle_id:
        query = query.where(Trip.vehicle_id == vehicle_id)
    if user_id:
        query = query.where(Trip.user_id == user_id)

    count_query = select(func.count()).select_from(query.subquery())
    total = (await db.execute(count_query)).scalar()

    query = query.options(*TRIP_OPTIONS).order_by(Trip.start_time.desc(), Trip.id.desc())
    query = query.offset((page - 1) * page_size).limit(page_size)
    trips = (await db.execute(query)).scalars().all()

    return TripListResponse(
        items=[TripDetailResponse.model_validate(t) for t in trips],
        total=total,
        page=page,
        page_size=page_size
    )


@router.get("/{trip_id}", response_model=TripDetailResponse)
async def get_trip(
    trip_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    trip = await get_trip_or_404(db, trip_id)
    return TripDetailResponse.model_validate(trip)


@router.post("", response_model=TripDetailResponse, status_code=status.HTTP_201_CREATED)
async def start_trip(
    trip_data: TripCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Start a trip.

    The driver defaults to the caller. An optional pre-trip inspection is
    stored alongside the trip.
    """
    vehicle = await db.get(Vehicle, trip_data.vehicle_id)
    if not vehicle or not vehicle.is_active:
        raise ResourceNotFoundError("Vehicle", trip_data.vehicle_id)

    driver_id = trip_data.user_id or current_user.id
    if driver_id != current_user.id and await db.get(User, driver_id) is None:
        raise ResourceNotFoundError("User", driver_id)

    trip = Trip(
        vehicle_id=vehicle.id,
        user_id=driver_id,
        purpose=trip_data.purpose,
        start_location=trip_data.start_location.model_dump(),
        start_odometer=trip_data.start_odometer,
        fuel_level_start=trip_data.fuel_level_start,
        start_time=trip_data.start_time or datetime.now(),
        status=TripStatus.ACTIVE,
    )
    db.add(trip)
    await db.flush()

    if trip_data.inspection:
        db.add(_inspection(trip, "pre_trip", trip_data.inspection))

    await db.commit()

    logger.info(f"Trip {trip.id} started: vehicle {vehicle.number_plate}, driver {driver_id}")
    trip = await get_trip_or_404(db, trip.id)
    return TripDetailResponse.model_validate(trip)


@router.put("/{trip_id}", response_model=TripDetailResponse)
async def update_trip(
    trip_id: int,
    trip_data: TripUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Update descriptive trip fields. Use the end endpoint to close a trip.

    An active trip may be cancelled here; finished trips keep their status.
    """
    trip = await get_trip_or_404(db, trip_id)

    update_data = trip_data.model_dump(exclude_unset=True)
    if "status" in update_data and trip.status != TripStatus.ACTIVE:
        raise ValidationFailedError(f"Trip is already {trip.status.value}")

    for field, value in update_data.items():
        setattr(trip, field, value)

    await db.commit()

    logger.info(f"Trip updated: {trip_id}")
    trip = await get_trip_or_404(db, trip_id)
    return TripDetailResponse.model_validate(trip)


@router.put("/{trip_id}/end", response_model=TripDetailResponse)
async def end_trip(
    trip_id: int,
    end_data: TripEnd,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    End a trip.

    Sets the end readings, marks the trip completed at the current time and
    stores the odometer distance. The vehicle odometer moves forward when
    the end reading is higher. A completed trip is rejected untouched.
    """
    trip = await get_trip_or_404(db, trip_id)

    if trip.status == TripStatus.COMPLETED:
        raise ValidationFailedError("Trip is already completed")
    if trip.status == TripStatus.CANCELLED:
        raise ValidationFailedError("Trip is cancelled")

    if end_data.end_odometer is not None and end_data.end_odometer < trip.start_odometer:
        raise ValidationFailedError(
            "End odometer cannot be less than start odometer",
            details={"start_odometer": trip.start_odometer, "end_odometer": end_data.end_odometer}
        )

    if end_data.end_location is not None:
        trip.end_location = end_data.end_location.model_dump()
    if end_data.fuel_level_end is not None:
        trip.fuel_level_end = end_data.fuel_level_end
    if end_data.damage_report is not None:
        trip.damage_report = end_data.damage_report
    if end_data.end_odometer is not None:
        trip.end_odometer = end_data.end_odometer
        trip.calculated_distance = end_data.end_odometer - trip.start_odometer

        vehicle = trip.vehicle
        if vehicle is not None and end_data.end_odometer > vehicle.current_odometer:
            vehicle.current_odometer = end_data.end_odometer

    trip.status = TripStatus.COMPLETED
    trip.end_time = datetime.now()

    if end_data.inspection:
        db.add(_inspection(trip, "post_trip", end_data.inspection))

    await db.commit()

    logger.info(f"Trip {trip_id} ended, distance {trip.calculated_distance}")
    trip = await get_trip_or_404(db, trip_id)
    return TripDetailResponse.model_validate(trip)
