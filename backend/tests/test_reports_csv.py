"""
Unit tests for CSV rendering and report row builders.
"""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

from backend.app.models.department import Department
from backend.app.models.enums import FuelType, MaintenanceType, TripStatus, UserRole, VehicleStatus
from backend.app.models.maintenance_schedule import MaintenanceSchedule
from backend.app.models.trip import Trip
from backend.app.models.user import User
from backend.app.models.vehicle import Vehicle
from backend.app.services.reports import (
    format_csv, format_date, report_filename,
    fleet_summary_rows, fuel_consumption_rows, maintenance_schedule_rows,
    driver_performance_rows, cost_analysis_rows, utilization_rows,
    FLEET_SUMMARY_HEADERS, MAINTENANCE_SCHEDULE_HEADERS,
)

NOW = datetime(2024, 5, 15, 12, 0)


def make_vehicle(id=1, department=None, **kwargs):
    return Vehicle(
        id=id,
        name=kwargs.pop("name", f"Van {id}"),
        number_plate=kwargs.pop("number_plate", f"PL-{id}"),
        make="Ford",
        model="Transit",
        year=2021,
        fuel_type=FuelType.DIESEL,
        fuel_capacity=kwargs.pop("fuel_capacity", 80),
        status=kwargs.pop("status", VehicleStatus.ACTIVE),
        current_odometer=kwargs.pop("current_odometer", 12000),
        department=department,
        **kwargs,
    )


def test_header_row_and_column_order():
    rows = [{"B": 2, "A": 1}]
    assert format_csv(rows, ["A", "B"]) == "A,B\n1,2"


def test_empty_rows_render_header_only():
    assert format_csv([], ["A", "B"]) == "A,B"


def test_quotes_commas_and_doubles_inner_quotes():
    rows = [{"Name": 'Van "Big", blue', "Note": "plain"}]
    assert format_csv(rows, ["Name", "Note"]) == 'Name,Note\n"Van ""Big"", blue",plain'


def test_missing_and_none_render_empty():
    rows = [{"A": None}]
    assert format_csv(rows, ["A", "B"]) == "A,B\n,"


def test_enums_and_whole_floats_render_plainly():
    rows = [{"Status": VehicleStatus.ACTIVE, "Km": 120.0, "Cost": 12.5}]
    assert format_csv(rows, ["Status", "Km", "Cost"]) == "Status,Km,Cost\nactive,120,12.5"


def test_format_date():
    assert format_date(None) == "Not set"
    assert format_date(datetime(2024, 3, 9, 17, 45)) == "2024-03-09"
    assert format_date(date(2024, 3, 9)) == "2024-03-09"


def test_report_filename():
    assert report_filename("fleet-summary", "month", today=date(2024, 5, 15)) == "fleet-summary-month-2024-05-15.csv"


def test_report_filename_defaults_to_utc_date():
    expected = datetime.now(timezone.utc).date().isoformat()
    assert report_filename("utilization", "all") == f"utilization-all-{expected}.csv"


def test_fleet_summary_rows():
    ops = Department(id=1, code="OPS", name="Operations")
    driver = User(id=3, coyno_id="D3", email="d3@fleetco.com", first_name="Ada", last_name="Okafor",
                  user_role=UserRole.DRIVER)
    assigned = make_vehicle(1, ops, assigned_driver=driver, license_expiry=datetime(2025, 1, 31))
    spare = make_vehicle(2)

    rows = fleet_summary_rows([assigned, spare])
    assert rows[0]["Department"] == "Operations"
    assert rows[0]["Assigned Driver"] == "Ada Okafor"
    assert rows[0]["License Expiry"] == "2025-01-31"
    assert rows[0]["Insurance Expiry"] == "Not set"
    assert rows[1]["Department"] == "Unassigned"
    assert rows[1]["Assigned Driver"] == "Unassigned"

    text = format_csv(rows, FLEET_SUMMARY_HEADERS)
    lines = text.split("\n")
    assert lines[0].startswith("Vehicle ID,Vehicle Name,Number Plate")
    assert len(lines) == 3


def test_fuel_consumption_average_drop():
    vehicle = make_vehicle(1)
    other = make_vehicle(2)
    trips = [
        Trip(vehicle_id=1, user_id=1, fuel_level_start=90, fuel_level_end=60, start_odometer=0,
             start_location={}, start_time=NOW),
        Trip(vehicle_id=1, user_id=1, fuel_level_start=60, fuel_level_end=50, start_odometer=0,
             start_location={}, start_time=NOW),
        Trip(vehicle_id=1, user_id=1, fuel_level_start=50, fuel_level_end=None, start_odometer=0,
             start_location={}, start_time=NOW),
    ]
    rows = fuel_consumption_rows([vehicle, other], trips)
    assert rows[0]["Average Consumption"] == 20
    assert rows[1]["Average Consumption"] == "N/A"


def test_maintenance_schedule_rows_sorted_by_due_date():
    vehicle = make_vehicle(1, name="Van, Large")
    later = MaintenanceSchedule(id=1, vehicle=vehicle, maintenance_type=MaintenanceType.INSPECTION,
                                next_due_date=NOW + timedelta(days=30), estimated_cost=Decimal("50.00"))
    sooner = MaintenanceSchedule(id=2, vehicle=vehicle, maintenance_type=MaintenanceType.OIL_CHANGE,
                                 next_due_date=NOW - timedelta(days=1))
    unset = MaintenanceSchedule(id=3, vehicle=vehicle, maintenance_type=MaintenanceType.OTHER)

    rows = maintenance_schedule_rows([later, unset, sooner], now=NOW)
    assert [r["Maintenance ID"] for r in rows] == [2, 1, 3]
    assert rows[0]["Status"] == "overdue"
    assert rows[1]["Status"] == "scheduled"
    assert rows[2]["Status"] == "Not set"
    assert rows[2]["Next Due Date"] == "Not set"

    text = format_csv(rows, MAINTENANCE_SCHEDULE_HEADERS)
    assert '"Van, Large"' in text


def test_driver_performance_rows():
    ops = Department(id=1, code="OPS", name="Operations")
    driver = User(id=5, coyno_id="D5", email="d5@fleetco.com", first_name="Sam", last_name="Eze",
                  user_role=UserRole.DRIVER, department=ops)
    trips = [
        Trip(driver=driver, user_id=5, vehicle_id=1, status=TripStatus.COMPLETED, start_odometer=0,
             end_odometer=40, fuel_level_start=80, start_location={},
             start_time=NOW, end_time=NOW + timedelta(minutes=90)),
        Trip(driver=driver, user_id=5, vehicle_id=1, status=TripStatus.ACTIVE, start_odometer=40,
             fuel_level_start=70, start_location={}, start_time=NOW),
    ]
    rows = driver_performance_rows(trips)
    assert len(rows) == 1
    row = rows[0]
    assert row["Driver Name"] == "Sam Eze"
    assert row["Department"] == "Operations"
    assert row["Total Trips"] == 2
    assert row["Completed Trips"] == 1
    assert row["Total Distance"] == 40
    # 1.5 hours total, 0.75 per trip
    assert row["Total Duration"] == 2
    assert row["Average Trip Duration"] == 1


def test_cost_analysis_variance():
    vehicle = make_vehicle(1)
    schedule = MaintenanceSchedule(id=1, vehicle=vehicle, maintenance_type=MaintenanceType.BRAKE_SERVICE,
                                   estimated_cost=Decimal("100.00"), actual_cost=Decimal("125.50"))
    no_costs = MaintenanceSchedule(id=2, vehicle=vehicle, maintenance_type=MaintenanceType.OTHER)

    rows = cost_analysis_rows([schedule, no_costs], now=NOW)
    assert rows[0]["Cost Variance"] == 25.5
    assert rows[1]["Estimated Cost"] == 0.0
    assert rows[1]["Cost Variance"] == 0.0


def test_utilization_rows():
    used = make_vehicle(1)
    idle = make_vehicle(2)
    trips = [
        Trip(vehicle_id=1, user_id=1, start_odometer=0, end_odometer=15, fuel_level_start=50,
             start_location={}, start_time=NOW - timedelta(days=3)),
        Trip(vehicle_id=1, user_id=1, start_odometer=15, end_odometer=20, fuel_level_start=50,
             start_location={}, start_time=NOW - timedelta(days=1)),
    ]
    rows = utilization_rows([used, idle], trips, now=NOW)

    assert rows[0]["Total Trips"] == 2
    assert rows[0]["Total Distance"] == 20
    assert rows[0]["Utilization Rate"] == "High"
    assert rows[0]["Last Used"] == "2024-05-14"
    assert rows[0]["Days Since Last Use"] == 1

    assert rows[1]["Utilization Rate"] == "Low"
    assert rows[1]["Last Used"] == "Never"
    assert rows[1]["Days Since Last Use"] == "Never used"
