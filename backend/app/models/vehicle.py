"""
Vehicle database model.

Vehicles belong optionally to a department and may have an assigned driver.
"""

from datetime import datetime

from sqlalchemy import Column, Integer, String, Numeric, Boolean, DateTime, Enum, ForeignKey
from sqlalchemy.orm import relationship
from backend.app.db.session import Base
from backend.app.models.enums import FuelType, VehicleStatus


class Vehicle(Base):
    """
    Vehicle model.

    The odometer is never negative. Status transitions are unconstrained;
    every change made through the API is recorded in vehicle_status_log.
    """
    __tablename__ = "vehicles"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Identification
    name = Column(String(100), nullable=False)
    number_plate = Column(String(20), unique=True, nullable=False, index=True)
    vin = Column(String(17), unique=True, nullable=True)
    qr_code = Column(String(255), unique=True, nullable=True)
    make = Column(String(50), nullable=False)
    model = Column(String(50), nullable=False)
    year = Column(Integer, nullable=False)

    # Fuel
    fuel_type = Column(Enum(FuelType), default=FuelType.PETROL, nullable=False)
    fuel_capacity = Column(Numeric(5, 2), nullable=False)

    # Status
    status = Column(Enum(VehicleStatus), default=VehicleStatus.AVAILABLE, nullable=False, index=True)
    current_odometer = Column(Integer, default=0, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False, index=True)

    # Service and paperwork dates
    next_service_due = Column(DateTime, nullable=True)
    license_expiry = Column(DateTime, nullable=True)
    insurance_expiry = Column(DateTime, nullable=True)
    last_service_date = Column(DateTime, nullable=True)
    photo_url = Column(String(500), nullable=True)

    # Ownership
    coyno_id = Column(String(50), nullable=True, index=True)
    department_id = Column(Integer, ForeignKey("departments.id"), nullable=True, index=True)
    assigned_driver_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)

    # Timestamps
    created_at = Column(DateTime, default=datetime.now, nullable=False, index=True)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now, nullable=False)

    department = relationship("Department", back_populates="vehicles")
    assigned_driver = relationship("User", back_populates="assigned_vehicles")
    trips = relationship("Trip", back_populates="vehicle")
    maintenance_schedules = relationship("MaintenanceSchedule", back_populates="vehicle")
    inspections = relationship("VehicleInspection", back_populates="vehicle")
    status_logs = relationship("VehicleStatusLog", back_populates="vehicle")

    @property
    def full_name(self) -> str:
        return f"{self.year} {self.make} {self.model}"

    def __repr__(self):
        return f"<Vehicle(id={self.id}, plate='{self.number_plate}', status='{self.status.value}')>"
