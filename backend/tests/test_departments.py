"""
Integration tests for departments and user administration.
"""

import pytest
from sqlalchemy import select

from backend.app.models.department import Department
from backend.app.models.enums import UserRole

# Note: Client and DB setup are in conftest.py


@pytest.mark.asyncio
async def test_admin_creates_department(client, admin_headers):
    response = await client.post("/api/v1/departments", headers=admin_headers, json={
        "code": "LOG",
        "name": "Logistics",
        "description": "Deliveries"
    })
    assert response.status_code == 201
    data = response.json()
    assert data["code"] == "LOG"
    assert data["users"] == []
    assert data["vehicles"] == []


@pytest.mark.asyncio
async def test_duplicate_code_is_conflict(client, admin_headers, department):
    response = await client.post("/api/v1/departments", headers=admin_headers, json={
        "code": department.code,
        "name": "Another"
    })
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_manager_cannot_create_department(client, manager_headers):
    response = await client.post("/api/v1/departments", headers=manager_headers, json={
        "code": "HR",
        "name": "Human Resources"
    })
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_list_includes_members(client, driver_headers, driver_user, department):
    response = await client.get("/api/v1/departments", headers=driver_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 1
    assert [u["coyno_id"] for u in data["items"][0]["users"]] == ["DRV001"]


@pytest.mark.asyncio
async def test_soft_delete_hides_department(client, admin_headers, department, db_session):
    response = await client.delete(f"/api/v1/departments/{department.id}", headers=admin_headers)
    assert response.status_code == 200

    listing = await client.get("/api/v1/departments", headers=admin_headers)
    assert listing.json()["total"] == 0

    row = (await db_session.execute(
        select(Department).where(Department.id == department.id).execution_options(populate_existing=True)
    )).scalar_one()
    assert row.is_active is False

    # Direct lookups still resolve
    detail = await client.get(f"/api/v1/departments/{department.id}", headers=admin_headers)
    assert detail.status_code == 200
    assert detail.json()["is_active"] is False


@pytest.mark.asyncio
async def test_update_department(client, admin_headers, department):
    response = await client.put(
        f"/api/v1/departments/{department.id}",
        headers=admin_headers,
        json={"name": "Operations & Field"}
    )
    assert response.status_code == 200
    assert response.json()["name"] == "Operations & Field"
    assert response.json()["code"] == "OPS"


@pytest.mark.asyncio
async def test_update_department_rejects_null_name(client, admin_headers, department):
    response = await client.put(
        f"/api/v1/departments/{department.id}",
        headers=admin_headers,
        json={"name": None}
    )
    assert response.status_code == 400

    current = await client.get(f"/api/v1/departments/{department.id}", headers=admin_headers)
    assert current.json()["name"] == "Operations"


@pytest.mark.asyncio
async def test_unknown_department(client, admin_headers):
    response = await client.get("/api/v1/departments/404", headers=admin_headers)
    assert response.status_code == 404


# Users

@pytest.mark.asyncio
async def test_list_users_with_filters(client, manager_headers, admin_user, driver_user, user_factory):
    await user_factory("MECH01", UserRole.MECHANIC, is_active=False)

    everyone = await client.get("/api/v1/users", headers=manager_headers)
    assert everyone.status_code == 200
    assert everyone.json()["total"] == 4

    drivers = await client.get("/api/v1/users", headers=manager_headers, params={"role": "driver"})
    assert [u["coyno_id"] for u in drivers.json()["items"]] == ["DRV001"]

    inactive = await client.get("/api/v1/users", headers=manager_headers, params={"is_active": "false"})
    assert [u["coyno_id"] for u in inactive.json()["items"]] == ["MECH01"]


@pytest.mark.asyncio
async def test_driver_cannot_list_users(client, driver_headers):
    response = await client.get("/api/v1/users", headers=driver_headers)
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_admin_updates_user_password(client, admin_headers, driver_user):
    response = await client.put(
        f"/api/v1/users/{driver_user.id}",
        headers=admin_headers,
        json={"password": "changed123", "user_role": "mechanic"}
    )
    assert response.status_code == 200
    assert response.json()["user_role"] == "mechanic"

    login = await client.post("/api/v1/auth/login", json={
        "coyno_id": driver_user.coyno_id,
        "password": "changed123"
    })
    assert login.status_code == 200


@pytest.mark.asyncio
async def test_update_user_email_conflict(client, admin_headers, admin_user, driver_user):
    response = await client.put(
        f"/api/v1/users/{driver_user.id}",
        headers=admin_headers,
        json={"email": admin_user.email}
    )
    assert response.status_code == 409


@pytest.mark.asyncio
@pytest.mark.parametrize("field", ["first_name", "email", "user_role"])
async def test_update_user_rejects_null_required_field(client, admin_headers, driver_user, field):
    response = await client.put(
        f"/api/v1/users/{driver_user.id}",
        headers=admin_headers,
        json={field: None}
    )
    assert response.status_code == 400

    current = await client.get(f"/api/v1/users/{driver_user.id}", headers=admin_headers)
    assert current.json()["first_name"] == driver_user.first_name
    assert current.json()["user_role"] == "driver"


@pytest.mark.asyncio
async def test_admin_cannot_disable_self(client, admin_headers, admin_user):
    response = await client.delete(f"/api/v1/users/{admin_user.id}", headers=admin_headers)
    assert response.status_code == 400

    me = await client.get("/api/v1/auth/me", headers=admin_headers)
    assert me.status_code == 200
