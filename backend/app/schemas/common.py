"""
Shared compact schemas for nested associations.
"""

from pydantic import BaseModel
from typing import Optional
from backend.app.models.enums import UserRole, VehicleStatus


def reject_null(value):
    """
    Validator body for optional update fields backed by NOT NULL columns.

    Pydantic only validates values the client actually sent, so an omitted
    field stays unset while an explicit null is rejected with a 400.
    """
    if value is None:
        raise ValueError("Field cannot be null")
    return value


class DepartmentBrief(BaseModel):
    id: int
    name: str
    code: str

    class Config:
        from_attributes = True


class UserBrief(BaseModel):
    id: int
    coyno_id: str
    first_name: str
    last_name: str
    email: str
    user_role: UserRole

    class Config:
        from_attributes = True


class VehicleBrief(BaseModel):
    id: int
    name: str
    number_plate: str
    make: str
    model: str
    year: int
    status: VehicleStatus
    current_odometer: int
    department_id: Optional[int] = None

    class Config:
        from_attributes = True


class MessageResponse(BaseModel):
    """Generic acknowledgement for actions without a resource body."""
    success: bool = True
    message: str
