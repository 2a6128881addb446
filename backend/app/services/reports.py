"""
CSV report generation.

Each report is a header list plus row dicts keyed by those headers, rendered
by format_csv. Rows are built from the same collections the analytics
loaders fetch.
"""

import logging
from collections import OrderedDict
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.services.analytics import (
    AnalyticsService, UNASSIGNED, MS_PER_HOUR, round_half_up,
    schedule_due_status, trip_distance, trip_duration_ms,
)
from backend.app.models.enums import TripStatus
from backend.app.services.date_range import DateRange, build_date_range

logger = logging.getLogger(__name__)

NOT_SET = "Not set"
UNKNOWN = "Unknown"

FLEET_SUMMARY_HEADERS = [
    "Vehicle ID", "Vehicle Name", "Number Plate", "Make", "Model", "Year",
    "Status", "Department", "Assigned Driver", "Current Odometer",
    "Fuel Type", "Fuel Capacity", "Next Service Due", "License Expiry",
    "Insurance Expiry",
]

FUEL_CONSUMPTION_HEADERS = [
    "Vehicle ID", "Vehicle Name", "Number Plate", "Fuel Type",
    "Fuel Capacity (L)", "Status", "Current Odometer", "Average Consumption",
]

MAINTENANCE_SCHEDULE_HEADERS = [
    "Maintenance ID", "Vehicle Name", "Vehicle Number Plate", "Type",
    "Description", "Next Due Date", "Next Due Km", "Status",
    "Estimated Cost", "Notes",
]

DRIVER_PERFORMANCE_HEADERS = [
    "Driver ID", "Driver Name", "Email", "Department", "Total Trips",
    "Completed Trips", "Total Distance", "Total Duration",
    "Average Trip Duration",
]

COST_ANALYSIS_HEADERS = [
    "Vehicle Name", "Number Plate", "Maintenance Type", "Description",
    "Next Due Date", "Status", "Estimated Cost", "Actual Cost", "Cost Variance",
]

UTILIZATION_HEADERS = [
    "Vehicle ID", "Vehicle Name", "Number Plate", "Department", "Status",
    "Total Trips", "Total Distance", "Utilization Rate", "Last Used",
    "Days Since Last Use",
]


def _render(value: Any) -> str:
    if value is None:
        return ""
    if hasattr(value, "value"):
        value = value.value
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    text = str(value)
    if "," in text or '"' in text:
        return '"' + text.replace('"', '""') + '"'
    return text


def format_csv(rows: Sequence[Mapping[str, Any]], headers: Sequence[str]) -> str:
    """
    Render rows as CSV text.

    Columns follow the order of headers, not the key order of each row.
    Missing and None values render empty; values containing a comma or a
    double quote are quoted with inner quotes doubled.
    """
    lines = [",".join(headers)]
    for row in rows:
        lines.append(",".join(_render(row.get(header)) for header in headers))
    return "\n".join(lines)


def format_date(value: Optional[datetime]) -> str:
    if value is None:
        return NOT_SET
    if isinstance(value, datetime):
        value = value.date()
    return value.isoformat()


def _money(value: Optional[Decimal]) -> float:
    return float(value) if value is not None else 0.0


def _due_status_label(schedule, now: Optional[datetime] = None) -> str:
    status = schedule_due_status(schedule, now=now)
    return status.value if status is not None else NOT_SET


def _by_due_date(schedules: Sequence) -> List:
    return sorted(schedules, key=lambda s: (s.next_due_date is None, s.next_due_date or datetime.min))


def fleet_summary_rows(vehicles: Sequence) -> List[Dict[str, Any]]:
    return [
        {
            "Vehicle ID": v.id,
            "Vehicle Name": v.name,
            "Number Plate": v.number_plate,
            "Make": v.make,
            "Model": v.model,
            "Year": v.year,
            "Status": v.status,
            "Department": v.department.name if v.department is not None else UNASSIGNED,
            "Assigned Driver": v.assigned_driver.full_name if v.assigned_driver is not None else UNASSIGNED,
            "Current Odometer": v.current_odometer,
            "Fuel Type": v.fuel_type,
            "Fuel Capacity": v.fuel_capacity,
            "Next Service Due": format_date(v.next_service_due),
            "License Expiry": format_date(v.license_expiry),
            "Insurance Expiry": format_date(v.insurance_expiry),
        }
        for v in vehicles
    ]


def fuel_consumption_rows(vehicles: Sequence, trips: Sequence) -> List[Dict[str, Any]]:
    """Average consumption is the mean fuel-level drop over the vehicle's trips in range."""
    rows = []
    for v in vehicles:
        drops = [
            t.fuel_consumption for t in trips
            if t.vehicle_id == v.id and t.fuel_consumption is not None
        ]
        average = round(sum(drops) / len(drops), 2) if drops else "N/A"
        rows.append({
            "Vehicle ID": v.id,
            "Vehicle Name": v.name,
            "Number Plate": v.number_plate,
            "Fuel Type": v.fuel_type,
            "Fuel Capacity (L)": v.fuel_capacity,
            "Status": v.status,
            "Current Odometer": v.current_odometer,
            "Average Consumption": average,
        })
    return rows


def maintenance_schedule_rows(schedules: Sequence, now: Optional[datetime] = None) -> List[Dict[str, Any]]:
    return [
        {
            "Maintenance ID": s.id,
            "Vehicle Name": s.vehicle.name if s.vehicle is not None else UNKNOWN,
            "Vehicle Number Plate": s.vehicle.number_plate if s.vehicle is not None else UNKNOWN,
            "Type": s.maintenance_type,
            "Description": s.description,
            "Next Due Date": format_date(s.next_due_date),
            "Next Due Km": s.next_due_km,
            "Status": _due_status_label(s, now=now),
            "Estimated Cost": s.estimated_cost,
            "Notes": s.notes or "",
        }
        for s in _by_due_date(schedules)
    ]


def driver_performance_rows(trips: Sequence) -> List[Dict[str, Any]]:
    """One row per driver; durations in whole hours."""
    stats: "OrderedDict[Any, Dict[str, Any]]" = OrderedDict()
    durations: Dict[Any, int] = {}

    for trip in trips:
        driver = trip.driver
        key = driver.id if driver is not None else "unknown"
        if key not in stats:
            department = driver.department if driver is not None else None
            stats[key] = {
                "Driver ID": key,
                "Driver Name": driver.full_name if driver is not None else UNKNOWN,
                "Email": driver.email if driver is not None else UNKNOWN,
                "Department": department.name if department is not None else UNKNOWN,
                "Total Trips": 0,
                "Completed Trips": 0,
                "Total Distance": 0.0,
            }
            durations[key] = 0

        row = stats[key]
        row["Total Trips"] += 1
        if trip.status == TripStatus.COMPLETED:
            row["Completed Trips"] += 1
        row["Total Distance"] += trip_distance(trip)
        durations[key] += trip_duration_ms(trip)

    for key, row in stats.items():
        row["Total Duration"] = round_half_up(durations[key] / MS_PER_HOUR)
        row["Average Trip Duration"] = round_half_up(durations[key] / row["Total Trips"] / MS_PER_HOUR)
    return list(stats.values())


def cost_analysis_rows(schedules: Sequence, now: Optional[datetime] = None) -> List[Dict[str, Any]]:
    rows = []
    for s in _by_due_date(schedules):
        estimated = _money(s.estimated_cost)
        actual = _money(s.actual_cost)
        rows.append({
            "Vehicle Name": s.vehicle.name if s.vehicle is not None else UNKNOWN,
            "Number Plate": s.vehicle.number_plate if s.vehicle is not None else UNKNOWN,
            "Maintenance Type": s.maintenance_type,
            "Description": s.description,
            "Next Due Date": format_date(s.next_due_date),
            "Status": _due_status_label(s, now=now),
            "Estimated Cost": estimated,
            "Actual Cost": actual,
            "Cost Variance": round(actual - estimated, 2),
        })
    return rows


def utilization_rows(vehicles: Sequence, trips: Sequence, now: Optional[datetime] = None) -> List[Dict[str, Any]]:
    now = now or datetime.now()
    rows = []
    for v in vehicles:
        vehicle_trips = [t for t in trips if t.vehicle_id == v.id]
        last_trip = max(vehicle_trips, key=lambda t: t.start_time, default=None)
        rows.append({
            "Vehicle ID": v.id,
            "Vehicle Name": v.name,
            "Number Plate": v.number_plate,
            "Department": v.department.name if v.department is not None else UNASSIGNED,
            "Status": v.status,
            "Total Trips": len(vehicle_trips),
            "Total Distance": sum((trip_distance(t) for t in vehicle_trips), 0.0),
            "Utilization Rate": "High" if vehicle_trips else "Low",
            "Last Used": format_date(last_trip.start_time) if last_trip else "Never",
            "Days Since Last Use": (now - last_trip.start_time).days if last_trip else "Never used",
        })
    return rows


def report_filename(report: str, filter: str, today: Optional[date] = None) -> str:
    """Download name; the date part is the UTC calendar date."""
    if today is None:
        today = datetime.now(timezone.utc).date()
    return f"{report}-{filter}-{today.isoformat()}.csv"


ReportBuilder = Callable[[AsyncSession, Optional[DateRange]], Any]


class ReportService:

    @staticmethod
    async def fleet_summary(db: AsyncSession, date_range: Optional[DateRange]) -> Tuple[List[str], List[dict]]:
        vehicles = await AnalyticsService.load_vehicles(db, date_range)
        return FLEET_SUMMARY_HEADERS, fleet_summary_rows(vehicles)

    @staticmethod
    async def fuel_consumption(db: AsyncSession, date_range: Optional[DateRange]) -> Tuple[List[str], List[dict]]:
        vehicles = await AnalyticsService.load_vehicles(db, date_range)
        trips = await AnalyticsService.load_trips(db, date_range)
        return FUEL_CONSUMPTION_HEADERS, fuel_consumption_rows(vehicles, trips)

    @staticmethod
    async def maintenance_schedule(db: AsyncSession, date_range: Optional[DateRange]) -> Tuple[List[str], List[dict]]:
        schedules = await AnalyticsService.load_schedules(db, date_range)
        return MAINTENANCE_SCHEDULE_HEADERS, maintenance_schedule_rows(schedules)

    @staticmethod
    async def driver_performance(db: AsyncSession, date_range: Optional[DateRange]) -> Tuple[List[str], List[dict]]:
        trips = await AnalyticsService.load_trips(db, date_range)
        return DRIVER_PERFORMANCE_HEADERS, driver_performance_rows(trips)

    @staticmethod
    async def cost_analysis(db: AsyncSession, date_range: Optional[DateRange]) -> Tuple[List[str], List[dict]]:
        schedules = await AnalyticsService.load_schedules(db, date_range)
        return COST_ANALYSIS_HEADERS, cost_analysis_rows(schedules)

    @staticmethod
    async def utilization(db: AsyncSession, date_range: Optional[DateRange]) -> Tuple[List[str], List[dict]]:
        vehicles = await AnalyticsService.load_vehicles(db, date_range)
        trips = await AnalyticsService.load_trips(db, date_range)
        return UTILIZATION_HEADERS, utilization_rows(vehicles, trips)

    @staticmethod
    async def generate(
        db: AsyncSession,
        report: str,
        filter: str = "month",
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
    ) -> str:
        """Build one named report as CSV text."""
        builder = REPORT_BUILDERS[report]
        date_range = build_date_range(filter, start_date, end_date)
        headers, rows = await builder(db, date_range)
        logger.info(f"Generated {report} report with filter {filter}: {len(rows)} rows")
        return format_csv(rows, headers)


REPORT_BUILDERS: Dict[str, ReportBuilder] = {
    "fleet-summary": ReportService.fleet_summary,
    "fuel-consumption": ReportService.fuel_consumption,
    "maintenance-schedule": ReportService.maintenance_schedule,
    "driver-performance": ReportService.driver_performance,
    "cost-analysis": ReportService.cost_analysis,
    "utilization": ReportService.utilization,
}
