"""
Tests for mapping database constraint violations onto the error envelope.
"""

import json

import pytest
from sqlalchemy.exc import IntegrityError
from starlette.requests import Request

from backend.app.core.exceptions import integrity_error_handler


def make_request():
    return Request({
        "type": "http",
        "method": "PUT",
        "path": "/api/v1/vehicles/1",
        "headers": [],
        "query_string": b"",
    })


def integrity_error(message):
    return IntegrityError("UPDATE vehicles SET ...", {}, Exception(message))


@pytest.mark.asyncio
@pytest.mark.parametrize("message, status_code, error_code", [
    ("UNIQUE constraint failed: vehicles.number_plate", 409, "ERR_CONFLICT"),
    ('duplicate key value violates unique constraint "vehicles_number_plate_key"', 409, "ERR_CONFLICT"),
    ("NOT NULL constraint failed: vehicles.status", 400, "ERR_VALIDATION"),
    ('null value in column "status" of relation "vehicles" violates not-null constraint', 400, "ERR_VALIDATION"),
    ("FOREIGN KEY constraint failed", 400, "ERR_FOREIGN_KEY"),
    ("CHECK constraint failed: fuel_level", 400, "ERR_CONSTRAINT"),
])
async def test_integrity_errors_map_by_constraint_kind(message, status_code, error_code):
    response = await integrity_error_handler(make_request(), integrity_error(message))
    assert response.status_code == status_code
    body = json.loads(response.body)
    assert body["success"] is False
    assert body["error_code"] == error_code
