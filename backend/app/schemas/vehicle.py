"""
Vehicle Pydantic schemas.

Defines request and response models for vehicle management.
"""

from pydantic import BaseModel, Field, field_validator
from datetime import date, datetime
from typing import Optional, List
from backend.app.models.enums import FuelType, VehicleStatus
from backend.app.schemas.common import DepartmentBrief, UserBrief, reject_null
from backend.app.schemas.trip import TripDetailResponse


def _check_year(value: Optional[int]) -> Optional[int]:
    if value is not None and value > date.today().year + 1:
        raise ValueError(f"year must be at most {date.today().year + 1}")
    return value


class VehicleCreate(BaseModel):
    """Schema for registering a new vehicle."""
    name: str = Field(..., min_length=1, max_length=100)
    number_plate: str = Field(..., min_length=1, max_length=20, description="Unique registration plate")
    vin: Optional[str] = Field(None, max_length=17, description="Vehicle identification number")
    make: str = Field(..., min_length=1, max_length=50)
    model: str = Field(..., min_length=1, max_length=50)
    year: int = Field(..., ge=1900)
    fuel_type: FuelType = FuelType.PETROL
    fuel_capacity: float = Field(..., ge=0, description="Tank capacity in litres")

    department_id: Optional[int] = None
    assigned_driver_id: Optional[int] = None
    coyno_id: Optional[str] = Field(None, max_length=50, description="Company tag")

    next_service_due: Optional[datetime] = None
    license_expiry: Optional[datetime] = None
    insurance_expiry: Optional[datetime] = None
    photo_url: Optional[str] = Field(None, max_length=500)

    @field_validator("year")
    @classmethod
    def year_not_in_future(cls, value):
        return _check_year(value)


class VehicleUpdate(BaseModel):
    """Schema for updating an existing vehicle. A status change is logged with reason."""
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    number_plate: Optional[str] = Field(None, min_length=1, max_length=20)
    vin: Optional[str] = Field(None, max_length=17)
    make: Optional[str] = Field(None, min_length=1, max_length=50)
    model: Optional[str] = Field(None, min_length=1, max_length=50)
    year: Optional[int] = Field(None, ge=1900)
    fuel_type: Optional[FuelType] = None
    fuel_capacity: Optional[float] = Field(None, ge=0)
    status: Optional[VehicleStatus] = None
    current_odometer: Optional[int] = Field(None, ge=0)

    department_id: Optional[int] = None
    assigned_driver_id: Optional[int] = None
    coyno_id: Optional[str] = Field(None, max_length=50)

    next_service_due: Optional[datetime] = None
    license_expiry: Optional[datetime] = None
    insurance_expiry: Optional[datetime] = None
    last_service_date: Optional[datetime] = None
    photo_url: Optional[str] = Field(None, max_length=500)

    reason: Optional[str] = Field(None, description="Reason recorded with a status change")

    @field_validator(
        "name", "number_plate", "make", "model", "year",
        "fuel_type", "fuel_capacity", "status", "current_odometer"
    )
    @classmethod
    def required_columns_not_null(cls, value):
        return reject_null(value)

    @field_validator("year")
    @classmethod
    def year_not_in_future(cls, value):
        return _check_year(value)


class VehicleResponse(BaseModel):
    """Schema for vehicle response."""
    id: int
    name: str
    number_plate: str
    vin: Optional[str] = None
    qr_code: Optional[str] = None
    make: str
    model: str
    year: int
    full_name: str
    fuel_type: FuelType
    fuel_capacity: float
    status: VehicleStatus
    current_odometer: int
    is_active: bool
    next_service_due: Optional[datetime] = None
    license_expiry: Optional[datetime] = None
    insurance_expiry: Optional[datetime] = None
    last_service_date: Optional[datetime] = None
    photo_url: Optional[str] = None
    coyno_id: Optional[str] = None
    department_id: Optional[int] = None
    assigned_driver_id: Optional[int] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class VehicleDetailResponse(VehicleResponse):
    """Vehicle with department and assigned driver."""
    department: Optional[DepartmentBrief] = None
    assigned_driver: Optional[UserBrief] = None


class VehicleListResponse(BaseModel):
    """Schema for paginated vehicle list."""
    items: List[VehicleDetailResponse]
    total: int
    page: int
    page_size: int


class VehicleStatusLogResponse(BaseModel):
    id: int
    vehicle_id: int
    previous_status: VehicleStatus
    new_status: VehicleStatus
    changed_by: int
    reason: Optional[str] = None
    odometer_reading: Optional[int] = None
    created_at: datetime

    class Config:
        from_attributes = True


class VehicleHistoryResponse(BaseModel):
    """Trip history for one vehicle, newest first."""
    vehicle: VehicleResponse
    trips: List[TripDetailResponse]
    total_trips: int
