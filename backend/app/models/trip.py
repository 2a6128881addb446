"""
Trip database model.

A trip is one driver taking one vehicle out and bringing it back.
"""

from datetime import datetime

from sqlalchemy import Column, Integer, String, Text, Numeric, DateTime, Enum, ForeignKey, JSON
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship
from backend.app.db.session import Base
from backend.app.models.enums import TripStatus

# JSONB on PostgreSQL, plain JSON elsewhere (tests run on SQLite)
LocationType = JSON().with_variant(JSONB(), "postgresql")


class Trip(Base):
    """
    Trip model.

    Locations are JSON objects with at least latitude and longitude.
    Duration, distance and fuel consumption are derived on read; only
    calculated_distance is stored.
    """
    __tablename__ = "trips"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    vehicle_id = Column(Integer, ForeignKey("vehicles.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    purpose = Column(String(255), nullable=True)

    start_location = Column(LocationType, nullable=False)
    end_location = Column(LocationType, nullable=True)

    start_odometer = Column(Integer, nullable=False)
    end_odometer = Column(Integer, nullable=True)
    calculated_distance = Column(Numeric(10, 2), nullable=True)

    fuel_level_start = Column(Integer, nullable=False)
    fuel_level_end = Column(Integer, nullable=True)

    start_time = Column(DateTime, default=datetime.now, nullable=False, index=True)
    end_time = Column(DateTime, nullable=True, index=True)

    status = Column(Enum(TripStatus), default=TripStatus.ACTIVE, nullable=False, index=True)
    damage_report = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.now, nullable=False)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now, nullable=False)

    vehicle = relationship("Vehicle", back_populates="trips")
    driver = relationship("User", back_populates="trips")
    inspections = relationship("VehicleInspection", back_populates="trip")

    @property
    def duration_minutes(self):
        """Whole minutes between start and end, or None while the trip is open."""
        if not self.start_time or not self.end_time:
            return None
        return int((self.end_time - self.start_time).total_seconds() // 60)

    @property
    def fuel_consumption(self):
        """Fuel level points used, or None if either reading is missing."""
        if self.fuel_level_start is None or self.fuel_level_end is None:
            return None
        return self.fuel_level_start - self.fuel_level_end

    @property
    def distance(self):
        if self.calculated_distance is not None:
            return float(self.calculated_distance)
        if self.start_odometer is not None and self.end_odometer is not None:
            return self.end_odometer - self.start_odometer
        return None

    def __repr__(self):
        return f"<Trip(id={self.id}, vehicle_id={self.vehicle_id}, status='{self.status.value}')>"
