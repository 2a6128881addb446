"""
Trip schemas.

Schemas for trip start, update, end and visibility.
"""

from pydantic import BaseModel, Field, field_validator
from typing import List, Optional
from datetime import datetime
from backend.app.models.enums import TripStatus
from backend.app.schemas.common import UserBrief, VehicleBrief, reject_null


class Location(BaseModel):
    """GPS position; extra keys such as address are kept."""
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)

    class Config:
        extra = "allow"


class InspectionInput(BaseModel):
    """Checklist submitted with a trip start or end."""
    all_windows_good: bool = False
    all_mirrors_good: bool = False
    all_tires_good: bool = False
    needs_service: bool = False
    notes: Optional[str] = None


class InspectionResponse(BaseModel):
    id: int
    trip_id: Optional[int] = None
    vehicle_id: Optional[int] = None
    inspection_type: str
    all_windows_good: bool
    all_mirrors_good: bool
    all_tires_good: bool
    needs_service: bool
    notes: Optional[str] = None
    failed_items: List[str] = []
    created_at: datetime

    class Config:
        from_attributes = True


class TripCreate(BaseModel):
    """Start a trip. The driver defaults to the caller."""
    vehicle_id: int
    user_id: Optional[int] = None
    purpose: Optional[str] = Field(None, max_length=255)
    start_location: Location
    start_odometer: int = Field(..., ge=0)
    fuel_level_start: int = Field(..., ge=0, le=100, description="Fuel level percentage")
    start_time: Optional[datetime] = None
    inspection: Optional[InspectionInput] = None


class TripUpdate(BaseModel):
    """
    Descriptive trip fields.

    The only status change allowed here is cancellation; completing a trip
    goes through the end endpoint.
    """
    purpose: Optional[str] = Field(None, max_length=255)
    start_location: Optional[Location] = None
    end_location: Optional[Location] = None
    damage_report: Optional[str] = None
    status: Optional[TripStatus] = None

    @field_validator("start_location", "status")
    @classmethod
    def required_columns_not_null(cls, value):
        return reject_null(value)

    @field_validator("status")
    @classmethod
    def only_cancellation(cls, value):
        if value != TripStatus.CANCELLED:
            raise ValueError("status can only be set to cancelled; use the end endpoint to complete a trip")
        return value


class TripEnd(BaseModel):
    """Close a trip. end_odometer must not be below the start reading."""
    end_location: Optional[Location] = None
    end_odometer: Optional[int] = Field(None, ge=0)
    fuel_level_end: Optional[int] = Field(None, ge=0, le=100)
    damage_report: Optional[str] = None
    inspection: Optional[InspectionInput] = None


class TripResponse(BaseModel):
    """Schema for trip response."""
    id: int
    vehicle_id: int
    user_id: int
    purpose: Optional[str] = None
    start_location: dict
    end_location: Optional[dict] = None
    start_odometer: int
    end_odometer: Optional[int] = None
    calculated_distance: Optional[float] = None
    fuel_level_start: int
    fuel_level_end: Optional[int] = None
    start_time: datetime
    end_time: Optional[datetime] = None
    status: TripStatus
    damage_report: Optional[str] = None
    duration_minutes: Optional[int] = None
    fuel_consumption: Optional[int] = None
    distance: Optional[float] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class TripDetailResponse(TripResponse):
    """Trip with vehicle, driver and inspections."""
    vehicle: Optional[VehicleBrief] = None
    driver: Optional[UserBrief] = None
    inspections: List[InspectionResponse] = []


class TripListResponse(BaseModel):
    """Schema for paginated trip list."""
    items: List[TripDetailResponse]
    total: int
    page: int
    page_size: int
