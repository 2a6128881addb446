"""
Maintenance schedule schemas.
"""

from pydantic import BaseModel, Field, field_validator
from typing import List, Optional
from datetime import datetime
from backend.app.models.enums import MaintenanceType, MaintenanceDueStatus
from backend.app.schemas.common import VehicleBrief, reject_null


class MaintenanceCreate(BaseModel):
    vehicle_id: int
    maintenance_type: MaintenanceType
    description: Optional[str] = None
    interval_km: Optional[int] = Field(None, ge=0)
    interval_months: Optional[int] = Field(None, ge=0)
    next_due_date: Optional[datetime] = None
    next_due_km: Optional[int] = Field(None, ge=0)
    estimated_cost: Optional[float] = Field(None, ge=0)
    notes: Optional[str] = None


class MaintenanceUpdate(BaseModel):
    maintenance_type: Optional[MaintenanceType] = None
    description: Optional[str] = None
    interval_km: Optional[int] = Field(None, ge=0)
    interval_months: Optional[int] = Field(None, ge=0)
    next_due_date: Optional[datetime] = None
    next_due_km: Optional[int] = Field(None, ge=0)
    estimated_cost: Optional[float] = Field(None, ge=0)
    actual_cost: Optional[float] = Field(None, ge=0)
    notes: Optional[str] = None

    @field_validator("maintenance_type")
    @classmethod
    def required_columns_not_null(cls, value):
        return reject_null(value)


class MaintenanceComplete(BaseModel):
    actual_cost: Optional[float] = Field(None, ge=0)
    notes: Optional[str] = None


class MaintenanceResponse(BaseModel):
    id: int
    vehicle_id: int
    maintenance_type: MaintenanceType
    description: Optional[str] = None
    interval_km: Optional[int] = None
    interval_months: Optional[int] = None
    last_performed_at: Optional[datetime] = None
    next_due_km: Optional[int] = None
    next_due_date: Optional[datetime] = None
    estimated_cost: Optional[float] = None
    actual_cost: Optional[float] = None
    notes: Optional[str] = None
    is_active: bool
    due_status: Optional[MaintenanceDueStatus] = None
    vehicle: Optional[VehicleBrief] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class MaintenanceListResponse(BaseModel):
    items: List[MaintenanceResponse]
    total: int
    page: int
    page_size: int
    pages: int


class MaintenanceStats(BaseModel):
    total: int
    overdue: int
    due_soon: int = Field(..., serialization_alias="dueSoon")
    completed: int
