"""
Analytics Schemas.

Attribute names are snake_case; JSON keys are camelCase for the dashboard.
"""

from pydantic import BaseModel
from pydantic.alias_generators import to_camel
from typing import Dict, List, Optional
from datetime import datetime


class CamelModel(BaseModel):
    """Base model serialised with camelCase keys."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class DateRangeResponse(CamelModel):
    start: datetime
    end: datetime


class DepartmentStat(CamelModel):
    """Per-department vehicle counts for the dashboard."""
    id: int
    name: str
    vehicle_count: int
    active_vehicles: int
    maintenance_vehicles: int


class DashboardMetrics(CamelModel):
    """Headline fleet numbers."""
    total_vehicles: int
    active_vehicles: int
    maintenance_vehicles: int
    total_trips: int
    completed_trips: int
    active_trips: int
    avg_fuel_capacity: float
    utilization_rate: int
    department_stats: List[DepartmentStat]
    filter: str


class DashboardAnalytics(CamelModel):
    metrics: DashboardMetrics
    vehicles: int
    trips: int
    departments: int
    filter: str
    date_range: Optional[DateRangeResponse] = None
    company_id: Optional[str] = None


class VehicleStatusBreakdown(CamelModel):
    active: int
    maintenance: int
    retired: int


class VehicleAnalytics(CamelModel):
    total: int
    by_status: VehicleStatusBreakdown
    by_department: Dict[str, int]
    by_fuel_type: Dict[str, int]
    filter: str


class TripStatusBreakdown(CamelModel):
    active: int
    completed: int
    cancelled: int


class TripAnalytics(CamelModel):
    """Trip totals; distance in km, duration in milliseconds."""
    total: int
    by_status: TripStatusBreakdown
    total_distance: float
    total_duration: int
    filter: str


class FuelAnalytics(CamelModel):
    total_vehicles: int
    by_fuel_type: Dict[str, int]
    total_fuel_capacity: float
    avg_fuel_capacity: float
    filter: str


class MaintenanceStatusBreakdown(CamelModel):
    scheduled: int
    due_soon: int
    overdue: int
    completed: int


class MaintenanceAnalytics(CamelModel):
    total: int
    by_status: MaintenanceStatusBreakdown
    by_type: Dict[str, int]
    filter: str


class DepartmentSummary(CamelModel):
    id: int
    name: str
    code: str
    vehicle_count: int
    user_count: int
    active_vehicles: int
    maintenance_vehicles: int


class DepartmentAnalytics(CamelModel):
    total: int
    departments: List[DepartmentSummary]
    filter: str


class UtilizationOverview(CamelModel):
    """Fleet-wide utilization; total_duration in hours, avg_duration_per_trip in minutes."""
    total_vehicles: int
    active_vehicles: int
    total_trips: int
    completed_trips: int
    active_trips: int
    total_distance: float
    total_duration: int
    utilization_rate: int
    avg_trips_per_vehicle: int
    avg_distance_per_trip: int
    avg_duration_per_trip: int


class DepartmentUtilization(CamelModel):
    id: int
    name: str
    total_vehicles: int
    active_vehicles: int
    total_trips: int
    completed_trips: int
    utilization_rate: int
    avg_trips_per_vehicle: int


class UserUtilization(CamelModel):
    """Per-driver utilization; total_duration in milliseconds, avg_trip_duration in minutes."""
    id: int
    name: str
    email: str
    department: str
    total_trips: int
    completed_trips: int
    active_trips: int
    total_distance: float
    total_duration: int
    avg_trip_duration: int
    avg_trip_distance: int


class WeeklyUtilization(CamelModel):
    """One day of the current week; duration in hours."""
    day: str
    trips: int
    distance: float
    duration: int
    active_vehicles: int


class UtilizationFilter(CamelModel):
    type: str
    department_id: Optional[int] = None
    user_id: Optional[int] = None
    date_range: Optional[DateRangeResponse] = None


class UtilizationAnalytics(CamelModel):
    overview: UtilizationOverview
    by_department: List[DepartmentUtilization]
    by_user: List[UserUtilization]
    weekly: List[WeeklyUtilization]
    filter: UtilizationFilter
