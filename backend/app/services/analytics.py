"""
Analytics Service.

Folds already-fetched vehicles, trips, departments, users and maintenance
schedules into dashboard metrics. The calculate_* functions are pure; the
AnalyticsService loaders fetch the collections they consume.
Focused on READ-ONLY operations.
"""

import math
from collections import Counter
from datetime import datetime, timedelta
from typing import Iterable, List, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from backend.app.models.department import Department
from backend.app.models.enums import (
    OPERATIONAL_STATUSES, MaintenanceDueStatus, TripStatus, VehicleStatus
)
from backend.app.models.maintenance_schedule import MaintenanceSchedule, compute_due_status
from backend.app.models.trip import Trip
from backend.app.models.user import User
from backend.app.models.vehicle import Vehicle
from backend.app.services.date_range import DateRange, build_date_range, start_of_week
from backend.app.schemas.analytics import (
    DashboardAnalytics, DashboardMetrics, DateRangeResponse, DepartmentAnalytics,
    DepartmentStat, DepartmentSummary, DepartmentUtilization, FuelAnalytics,
    MaintenanceAnalytics, MaintenanceStatusBreakdown, TripAnalytics,
    TripStatusBreakdown, UserUtilization, UtilizationAnalytics, UtilizationFilter,
    UtilizationOverview, VehicleAnalytics, VehicleStatusBreakdown, WeeklyUtilization,
)

UNASSIGNED = "Unassigned"
WEEKDAY_LABELS = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")

MS_PER_MINUTE = 60 * 1000
MS_PER_HOUR = 60 * MS_PER_MINUTE


def round_half_up(value: float) -> int:
    """Round .5 towards positive infinity, unlike Python's banker's rounding."""
    return int(math.floor(value + 0.5))


def safe_ratio(numerator: float, denominator: float) -> float:
    return numerator / denominator if denominator else 0


def _enum_value(value) -> Optional[str]:
    return getattr(value, "value", value)


def is_operational(vehicle) -> bool:
    return vehicle.status in OPERATIONAL_STATUSES


def count_status(items: Iterable, status) -> int:
    return sum(1 for item in items if item.status == status)


def trip_distance(trip) -> float:
    distance = trip.distance
    return float(distance) if distance is not None else 0.0


def trip_duration_ms(trip) -> int:
    if not trip.start_time or not trip.end_time:
        return 0
    return int((trip.end_time - trip.start_time).total_seconds() * 1000)


def total_distance(trips: Iterable) -> float:
    return sum((trip_distance(trip) for trip in trips), 0.0)


def total_duration_ms(trips: Iterable) -> int:
    return sum(trip_duration_ms(trip) for trip in trips)


def total_fuel_capacity(vehicles: Iterable) -> float:
    return sum((float(vehicle.fuel_capacity or 0) for vehicle in vehicles), 0.0)


def _date_range_response(date_range: Optional[DateRange]) -> Optional[DateRangeResponse]:
    if date_range is None:
        return None
    return DateRangeResponse(start=date_range.start, end=date_range.end)


def calculate_dashboard_metrics(
    vehicles: Sequence[Vehicle],
    trips: Sequence[Trip],
    departments: Sequence[Department],
    filter: str,
) -> DashboardMetrics:
    total_vehicles = len(vehicles)
    active_vehicles = sum(1 for v in vehicles if is_operational(v))
    avg_fuel_capacity = safe_ratio(total_fuel_capacity(vehicles), total_vehicles)

    department_stats = []
    for dept in departments:
        dept_vehicles = [v for v in vehicles if v.department_id == dept.id]
        department_stats.append(DepartmentStat(
            id=dept.id,
            name=dept.name,
            vehicle_count=len(dept_vehicles),
            active_vehicles=sum(1 for v in dept_vehicles if is_operational(v)),
            maintenance_vehicles=count_status(dept_vehicles, VehicleStatus.MAINTENANCE),
        ))

    return DashboardMetrics(
        total_vehicles=total_vehicles,
        active_vehicles=active_vehicles,
        maintenance_vehicles=count_status(vehicles, VehicleStatus.MAINTENANCE),
        total_trips=len(trips),
        completed_trips=count_status(trips, TripStatus.COMPLETED),
        active_trips=count_status(trips, TripStatus.ACTIVE),
        avg_fuel_capacity=round_half_up(avg_fuel_capacity * 100) / 100,
        utilization_rate=round_half_up(safe_ratio(active_vehicles, total_vehicles) * 100),
        department_stats=department_stats,
        filter=filter,
    )


def calculate_vehicle_analytics(vehicles: Sequence[Vehicle], filter: str) -> VehicleAnalytics:
    by_department = Counter(
        v.department.name if v.department is not None else UNASSIGNED
        for v in vehicles
    )
    by_fuel_type = Counter(_enum_value(v.fuel_type) for v in vehicles)

    return VehicleAnalytics(
        total=len(vehicles),
        by_status=VehicleStatusBreakdown(
            active=sum(1 for v in vehicles if is_operational(v)),
            maintenance=count_status(vehicles, VehicleStatus.MAINTENANCE),
            retired=count_status(vehicles, VehicleStatus.RETIRED),
        ),
        by_department=dict(by_department),
        by_fuel_type=dict(by_fuel_type),
        filter=filter,
    )


def calculate_trip_analytics(trips: Sequence[Trip], filter: str) -> TripAnalytics:
    return TripAnalytics(
        total=len(trips),
        by_status=TripStatusBreakdown(
            active=count_status(trips, TripStatus.ACTIVE),
            completed=count_status(trips, TripStatus.COMPLETED),
            cancelled=count_status(trips, TripStatus.CANCELLED),
        ),
        total_distance=total_distance(trips),
        total_duration=total_duration_ms(trips),
        filter=filter,
    )


def calculate_fuel_analytics(vehicles: Sequence[Vehicle], filter: str) -> FuelAnalytics:
    capacity = total_fuel_capacity(vehicles)
    return FuelAnalytics(
        total_vehicles=len(vehicles),
        by_fuel_type=dict(Counter(_enum_value(v.fuel_type) for v in vehicles)),
        total_fuel_capacity=capacity,
        avg_fuel_capacity=safe_ratio(capacity, len(vehicles)),
        filter=filter,
    )


def schedule_due_status(schedule, now: Optional[datetime] = None) -> Optional[MaintenanceDueStatus]:
    vehicle = schedule.vehicle
    odometer = vehicle.current_odometer if vehicle is not None else None
    return compute_due_status(schedule.next_due_date, schedule.next_due_km, odometer, now=now)


def calculate_maintenance_analytics(
    schedules: Sequence[MaintenanceSchedule],
    filter: str,
    now: Optional[datetime] = None,
) -> MaintenanceAnalytics:
    statuses = Counter(schedule_due_status(s, now=now) for s in schedules)

    return MaintenanceAnalytics(
        total=len(schedules),
        by_status=MaintenanceStatusBreakdown(
            scheduled=statuses[MaintenanceDueStatus.SCHEDULED],
            due_soon=statuses[MaintenanceDueStatus.DUE_SOON],
            overdue=statuses[MaintenanceDueStatus.OVERDUE],
            completed=sum(1 for s in schedules if s.last_performed_at is not None),
        ),
        by_type=dict(Counter(_enum_value(s.maintenance_type) for s in schedules)),
        filter=filter,
    )


def calculate_department_analytics(departments: Sequence[Department], filter: str) -> DepartmentAnalytics:
    summaries = []
    for dept in departments:
        dept_vehicles = dept.vehicles or []
        summaries.append(DepartmentSummary(
            id=dept.id,
            name=dept.name,
            code=dept.code,
            vehicle_count=len(dept_vehicles),
            user_count=len(dept.users or []),
            active_vehicles=sum(1 for v in dept_vehicles if is_operational(v)),
            maintenance_vehicles=count_status(dept_vehicles, VehicleStatus.MAINTENANCE),
        ))
    return DepartmentAnalytics(total=len(departments), departments=summaries, filter=filter)


def _trip_department_id(trip) -> Optional[int]:
    return trip.vehicle.department_id if trip.vehicle is not None else None


def calculate_weekly_utilization(
    vehicles: Sequence[Vehicle],
    trips: Sequence[Trip],
    now: Optional[datetime] = None,
) -> List[WeeklyUtilization]:
    """Seven Sunday-first day buckets covering the current week."""
    week_start = start_of_week(now or datetime.now())
    vehicle_ids = {v.id for v in vehicles}

    weekly = []
    for offset, label in enumerate(WEEKDAY_LABELS):
        day_start = week_start + timedelta(days=offset)
        day_end = day_start + timedelta(days=1)
        day_trips = [t for t in trips if t.start_time and day_start <= t.start_time < day_end]

        weekly.append(WeeklyUtilization(
            day=label,
            trips=len(day_trips),
            distance=total_distance(day_trips),
            duration=round_half_up(total_duration_ms(day_trips) / MS_PER_HOUR),
            active_vehicles=len({t.vehicle_id for t in day_trips} & vehicle_ids),
        ))
    return weekly


def calculate_utilization(
    vehicles: Sequence[Vehicle],
    trips: Sequence[Trip],
    departments: Sequence[Department],
    users: Sequence[User],
    filter_info: UtilizationFilter,
    now: Optional[datetime] = None,
) -> UtilizationAnalytics:
    total_vehicles = len(vehicles)
    active_vehicles = sum(1 for v in vehicles if is_operational(v))
    total_trips = len(trips)
    distance = total_distance(trips)
    duration = total_duration_ms(trips)

    overview = UtilizationOverview(
        total_vehicles=total_vehicles,
        active_vehicles=active_vehicles,
        total_trips=total_trips,
        completed_trips=count_status(trips, TripStatus.COMPLETED),
        active_trips=count_status(trips, TripStatus.ACTIVE),
        total_distance=distance,
        total_duration=round_half_up(duration / MS_PER_HOUR),
        utilization_rate=round_half_up(safe_ratio(active_vehicles, total_vehicles) * 100),
        avg_trips_per_vehicle=round_half_up(safe_ratio(total_trips, total_vehicles)),
        avg_distance_per_trip=round_half_up(safe_ratio(distance, total_trips)),
        avg_duration_per_trip=round_half_up(safe_ratio(duration, total_trips) / MS_PER_MINUTE),
    )

    by_department = []
    for dept in departments:
        dept_vehicles = [v for v in vehicles if v.department_id == dept.id]
        dept_trips = [t for t in trips if _trip_department_id(t) == dept.id]
        dept_active = sum(1 for v in dept_vehicles if is_operational(v))
        by_department.append(DepartmentUtilization(
            id=dept.id,
            name=dept.name,
            total_vehicles=len(dept_vehicles),
            active_vehicles=dept_active,
            total_trips=len(dept_trips),
            completed_trips=count_status(dept_trips, TripStatus.COMPLETED),
            utilization_rate=round_half_up(safe_ratio(dept_active, len(dept_vehicles)) * 100),
            avg_trips_per_vehicle=round_half_up(safe_ratio(len(dept_trips), len(dept_vehicles))),
        ))

    by_user = []
    for user in users:
        user_trips = [t for t in trips if t.user_id == user.id]
        user_distance = total_distance(user_trips)
        user_duration = total_duration_ms(user_trips)
        by_user.append(UserUtilization(
            id=user.id,
            name=user.full_name,
            email=user.email,
            department=user.department.name if user.department is not None else UNASSIGNED,
            total_trips=len(user_trips),
            completed_trips=count_status(user_trips, TripStatus.COMPLETED),
            active_trips=count_status(user_trips, TripStatus.ACTIVE),
            total_distance=user_distance,
            total_duration=user_duration,
            avg_trip_duration=round_half_up(safe_ratio(user_duration, len(user_trips)) / MS_PER_MINUTE),
            avg_trip_distance=round_half_up(safe_ratio(user_distance, len(user_trips))),
        ))

    return UtilizationAnalytics(
        overview=overview,
        by_department=by_department,
        by_user=by_user,
        weekly=calculate_weekly_utilization(vehicles, trips, now=now),
        filter=filter_info,
    )


class AnalyticsService:

    @staticmethod
    async def load_vehicles(
        db: AsyncSession,
        date_range: Optional[DateRange] = None,
        company_id: Optional[str] = None,
        department_id: Optional[int] = None,
    ) -> List[Vehicle]:
        """Active vehicles created inside the window, with department and driver."""
        stmt = select(Vehicle).options(
            selectinload(Vehicle.department),
            selectinload(Vehicle.assigned_driver),
        ).where(Vehicle.is_active == True)

        if date_range:
            stmt = stmt.where(Vehicle.created_at.between(date_range.start, date_range.end))
        if company_id:
            stmt = stmt.where(Vehicle.coyno_id == company_id)
        if department_id:
            stmt = stmt.where(Vehicle.department_id == department_id)

        result = await db.execute(stmt.order_by(Vehicle.created_at.desc()))
        return list(result.scalars().all())

    @staticmethod
    async def load_trips(
        db: AsyncSession,
        date_range: Optional[DateRange] = None,
        company_id: Optional[str] = None,
        department_id: Optional[int] = None,
        user_id: Optional[int] = None,
    ) -> List[Trip]:
        """Trips started inside the window, with vehicle and driver."""
        stmt = select(Trip).options(
            selectinload(Trip.vehicle),
            selectinload(Trip.driver).selectinload(User.department),
        )

        if date_range:
            stmt = stmt.where(Trip.start_time.between(date_range.start, date_range.end))
        if user_id:
            stmt = stmt.where(Trip.user_id == user_id)
        if company_id or department_id:
            stmt = stmt.join(Vehicle, Trip.vehicle_id == Vehicle.id)
            if company_id:
                stmt = stmt.where(Vehicle.coyno_id == company_id)
            if department_id:
                stmt = stmt.where(Vehicle.department_id == department_id)

        result = await db.execute(stmt.order_by(Trip.start_time.desc()))
        return list(result.scalars().all())

    @staticmethod
    async def load_departments(
        db: AsyncSession,
        date_range: Optional[DateRange] = None,
        company_id: Optional[str] = None,
    ) -> List[Department]:
        """Active departments with their vehicles and users."""
        vehicles_option = selectinload(Department.vehicles)
        stmt = select(Department).where(Department.is_active == True)

        if date_range:
            stmt = stmt.where(Department.created_at.between(date_range.start, date_range.end))
        if company_id:
            vehicles_option = selectinload(Department.vehicles.and_(Vehicle.coyno_id == company_id))
            stmt = stmt.where(Department.vehicles.any(Vehicle.coyno_id == company_id))

        stmt = stmt.options(vehicles_option, selectinload(Department.users))
        result = await db.execute(stmt.order_by(Department.created_at.desc()))
        return list(result.scalars().all())

    @staticmethod
    async def load_users(
        db: AsyncSession,
        department_id: Optional[int] = None,
        user_id: Optional[int] = None,
    ) -> List[User]:
        stmt = select(User).options(selectinload(User.department)).where(User.is_active == True)
        if department_id:
            stmt = stmt.where(User.department_id == department_id)
        if user_id:
            stmt = stmt.where(User.id == user_id)
        result = await db.execute(stmt.order_by(User.id))
        return list(result.scalars().all())

    @staticmethod
    async def load_schedules(
        db: AsyncSession,
        date_range: Optional[DateRange] = None,
    ) -> List[MaintenanceSchedule]:
        """Active schedules falling due inside the window, with their vehicle."""
        stmt = select(MaintenanceSchedule).options(
            selectinload(MaintenanceSchedule.vehicle)
        ).where(MaintenanceSchedule.is_active == True)

        if date_range:
            stmt = stmt.where(MaintenanceSchedule.next_due_date.between(date_range.start, date_range.end))

        result = await db.execute(stmt.order_by(MaintenanceSchedule.next_due_date.desc()))
        return list(result.scalars().all())

    @staticmethod
    async def get_dashboard(
        db: AsyncSession,
        filter: str = "all",
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        company_id: Optional[str] = None,
    ) -> DashboardAnalytics:
        """Headline metrics, optionally scoped to one company."""
        date_range = build_date_range(filter, start_date, end_date)

        vehicles = await AnalyticsService.load_vehicles(db, date_range, company_id=company_id)
        trips = await AnalyticsService.load_trips(db, date_range, company_id=company_id)
        departments = await AnalyticsService.load_departments(db, company_id=company_id)

        return DashboardAnalytics(
            metrics=calculate_dashboard_metrics(vehicles, trips, departments, filter),
            vehicles=len(vehicles),
            trips=len(trips),
            departments=len(departments),
            filter=filter,
            date_range=_date_range_response(date_range),
            company_id=company_id,
        )

    @staticmethod
    async def get_vehicle_analytics(db: AsyncSession, filter: str = "all", start_date=None, end_date=None) -> VehicleAnalytics:
        date_range = build_date_range(filter, start_date, end_date)
        vehicles = await AnalyticsService.load_vehicles(db, date_range)
        return calculate_vehicle_analytics(vehicles, filter)

    @staticmethod
    async def get_trip_analytics(db: AsyncSession, filter: str = "all", start_date=None, end_date=None) -> TripAnalytics:
        date_range = build_date_range(filter, start_date, end_date)
        trips = await AnalyticsService.load_trips(db, date_range)
        return calculate_trip_analytics(trips, filter)

    @staticmethod
    async def get_fuel_analytics(db: AsyncSession, filter: str = "all", start_date=None, end_date=None) -> FuelAnalytics:
        date_range = build_date_range(filter, start_date, end_date)
        vehicles = await AnalyticsService.load_vehicles(db, date_range)
        return calculate_fuel_analytics(vehicles, filter)

    @staticmethod
    async def get_maintenance_analytics(db: AsyncSession, filter: str = "all", start_date=None, end_date=None) -> MaintenanceAnalytics:
        date_range = build_date_range(filter, start_date, end_date)
        schedules = await AnalyticsService.load_schedules(db, date_range)
        return calculate_maintenance_analytics(schedules, filter)

    @staticmethod
    async def get_department_analytics(db: AsyncSession, filter: str = "all", start_date=None, end_date=None) -> DepartmentAnalytics:
        date_range = build_date_range(filter, start_date, end_date)
        departments = await AnalyticsService.load_departments(db, date_range)
        return calculate_department_analytics(departments, filter)

    @staticmethod
    async def get_utilization(
        db: AsyncSession,
        filter: str = "all",
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        department_id: Optional[int] = None,
        user_id: Optional[int] = None,
    ) -> UtilizationAnalytics:
        """Utilization by department, driver and weekday."""
        date_range = build_date_range(filter, start_date, end_date)

        trips = await AnalyticsService.load_trips(
            db, date_range, department_id=department_id, user_id=user_id
        )
        vehicles = await AnalyticsService.load_vehicles(db, department_id=department_id)
        departments = await AnalyticsService.load_departments(db)
        users = await AnalyticsService.load_users(db, user_id=user_id)

        filter_info = UtilizationFilter(
            type=filter,
            department_id=department_id,
            user_id=user_id,
            date_range=_date_range_response(date_range),
        )
        return calculate_utilization(vehicles, trips, departments, users, filter_info)
