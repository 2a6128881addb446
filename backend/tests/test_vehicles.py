"""
Integration tests for vehicle management.
"""

import pytest
from sqlalchemy import select

from backend.app.models.vehicle import Vehicle

# Note: Client and DB setup are in conftest.py


def vehicle_payload(**overrides):
    payload = {
        "name": "Van 1",
        "number_plate": "ABC-123",
        "vin": "1HGCM82633A004352",
        "make": "Ford",
        "model": "Transit",
        "year": 2021,
        "fuel_type": "diesel",
        "fuel_capacity": 80,
    }
    payload.update(overrides)
    return payload


@pytest.mark.asyncio
async def test_create_vehicle_defaults(client, manager_headers, department):
    response = await client.post(
        "/api/v1/vehicles",
        headers=manager_headers,
        json=vehicle_payload(department_id=department.id)
    )
    assert response.status_code == 201
    data = response.json()
    assert data["status"] == "available"
    assert data["current_odometer"] == 0
    assert data["qr_code"]
    assert data["full_name"] == "2021 Ford Transit"
    assert data["department"]["code"] == "OPS"


@pytest.mark.asyncio
async def test_duplicate_number_plate_is_conflict(client, admin_headers):
    first = await client.post("/api/v1/vehicles", headers=admin_headers, json=vehicle_payload())
    assert first.status_code == 201

    second = await client.post(
        "/api/v1/vehicles",
        headers=admin_headers,
        json=vehicle_payload(vin="2HGCM82633A004353")
    )
    assert second.status_code == 409
    assert second.json()["message"] == "Vehicle with this number plate already exists"


@pytest.mark.asyncio
async def test_duplicate_vin_is_conflict(client, admin_headers):
    await client.post("/api/v1/vehicles", headers=admin_headers, json=vehicle_payload())
    response = await client.post(
        "/api/v1/vehicles",
        headers=admin_headers,
        json=vehicle_payload(number_plate="XYZ-999")
    )
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_driver_cannot_create_vehicle(client, driver_headers):
    response = await client.post("/api/v1/vehicles", headers=driver_headers, json=vehicle_payload())
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_create_vehicle_unknown_department(client, admin_headers):
    response = await client.post(
        "/api/v1/vehicles",
        headers=admin_headers,
        json=vehicle_payload(department_id=999)
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_future_year_rejected(client, admin_headers):
    response = await client.post(
        "/api/v1/vehicles",
        headers=admin_headers,
        json=vehicle_payload(year=3000)
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_status_change_is_logged(client, admin_headers, admin_user):
    created = await client.post("/api/v1/vehicles", headers=admin_headers, json=vehicle_payload())
    vehicle_id = created.json()["id"]

    response = await client.put(
        f"/api/v1/vehicles/{vehicle_id}",
        headers=admin_headers,
        json={"status": "maintenance", "reason": "Brake noise"}
    )
    assert response.status_code == 200
    assert response.json()["status"] == "maintenance"

    # Unchanged status adds nothing
    await client.put(f"/api/v1/vehicles/{vehicle_id}", headers=admin_headers, json={"name": "Van One"})

    logs = await client.get(f"/api/v1/vehicles/{vehicle_id}/status-logs", headers=admin_headers)
    assert logs.status_code == 200
    entries = logs.json()
    assert len(entries) == 1
    assert entries[0]["previous_status"] == "available"
    assert entries[0]["new_status"] == "maintenance"
    assert entries[0]["reason"] == "Brake noise"
    assert entries[0]["changed_by"] == admin_user.id


@pytest.mark.asyncio
@pytest.mark.parametrize("field", ["status", "name", "number_plate", "fuel_capacity", "current_odometer"])
async def test_update_rejects_null_required_field(client, admin_headers, field):
    created = await client.post("/api/v1/vehicles", headers=admin_headers, json=vehicle_payload())
    vehicle_id = created.json()["id"]

    response = await client.put(f"/api/v1/vehicles/{vehicle_id}", headers=admin_headers, json={field: None})
    assert response.status_code == 400
    assert response.json()["error_code"] == "ERR_VALIDATION"

    current = await client.get(f"/api/v1/vehicles/{vehicle_id}", headers=admin_headers)
    assert current.status_code == 200
    assert current.json()["status"] == "available"
    assert current.json()["name"] == "Van 1"


@pytest.mark.asyncio
async def test_update_allows_clearing_nullable_field(client, admin_headers):
    created = await client.post("/api/v1/vehicles", headers=admin_headers, json=vehicle_payload())
    vehicle_id = created.json()["id"]

    response = await client.put(f"/api/v1/vehicles/{vehicle_id}", headers=admin_headers, json={"vin": None})
    assert response.status_code == 200
    assert response.json()["vin"] is None


@pytest.mark.asyncio
async def test_list_filters_and_soft_delete(client, admin_headers, driver_headers, db_session):
    a = await client.post("/api/v1/vehicles", headers=admin_headers, json=vehicle_payload())
    await client.post(
        "/api/v1/vehicles",
        headers=admin_headers,
        json=vehicle_payload(number_plate="XYZ-999", vin=None, name="Van 2")
    )
    await client.put(
        f"/api/v1/vehicles/{a.json()['id']}",
        headers=admin_headers,
        json={"status": "active"}
    )

    listing = await client.get("/api/v1/vehicles", headers=driver_headers)
    assert listing.status_code == 200
    assert listing.json()["total"] == 2

    active = await client.get("/api/v1/vehicles", headers=driver_headers, params={"status": "active"})
    assert [v["number_plate"] for v in active.json()["items"]] == ["ABC-123"]

    deleted = await client.delete(f"/api/v1/vehicles/{a.json()['id']}", headers=admin_headers)
    assert deleted.status_code == 200

    listing = await client.get("/api/v1/vehicles", headers=driver_headers)
    assert listing.json()["total"] == 1

    row = (await db_session.execute(select(Vehicle).where(Vehicle.number_plate == "ABC-123"))).scalar_one()
    assert row.is_active is False


@pytest.mark.asyncio
async def test_manager_cannot_delete_vehicle(client, admin_headers, manager_headers):
    created = await client.post("/api/v1/vehicles", headers=admin_headers, json=vehicle_payload())
    response = await client.delete(f"/api/v1/vehicles/{created.json()['id']}", headers=manager_headers)
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_get_unknown_vehicle(client, driver_headers):
    response = await client.get("/api/v1/vehicles/4242", headers=driver_headers)
    assert response.status_code == 404
    assert response.json()["message"] == "Vehicle with ID 4242 not found"


@pytest.mark.asyncio
async def test_vehicle_history_lists_trips(client, admin_headers, driver_headers, driver_user):
    created = await client.post("/api/v1/vehicles", headers=admin_headers, json=vehicle_payload())
    vehicle_id = created.json()["id"]

    await client.post("/api/v1/trips", headers=driver_headers, json={
        "vehicle_id": vehicle_id,
        "start_location": {"latitude": 6.5, "longitude": 3.4},
        "start_odometer": 100,
        "fuel_level_start": 90,
        "inspection": {"all_windows_good": True, "all_mirrors_good": True, "all_tires_good": False}
    })

    history = await client.get(f"/api/v1/vehicles/history/{vehicle_id}", headers=driver_headers)
    assert history.status_code == 200
    data = history.json()
    assert data["total_trips"] == 1
    trip = data["trips"][0]
    assert trip["driver"]["id"] == driver_user.id
    assert trip["inspections"][0]["failed_items"] == ["all_tires_good"]
