"""
Department Pydantic schemas.
"""

from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from typing import Optional, List
from backend.app.schemas.common import UserBrief, VehicleBrief, reject_null


class DepartmentCreate(BaseModel):
    code: str = Field(..., min_length=1, max_length=10, description="Unique department code")
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None


class DepartmentUpdate(BaseModel):
    code: Optional[str] = Field(None, min_length=1, max_length=10)
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    is_active: Optional[bool] = None

    @field_validator("code", "name", "is_active")
    @classmethod
    def required_columns_not_null(cls, value):
        return reject_null(value)


class DepartmentResponse(BaseModel):
    id: int
    code: str
    name: str
    description: Optional[str] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class DepartmentDetailResponse(DepartmentResponse):
    """Department with its users and vehicles."""
    users: List[UserBrief] = []
    vehicles: List[VehicleBrief] = []


class DepartmentListResponse(BaseModel):
    items: List[DepartmentDetailResponse]
    total: int
