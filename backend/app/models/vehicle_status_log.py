"""
Vehicle status log database model.

Append-only audit trail of vehicle status transitions.
"""

from datetime import datetime

from sqlalchemy import Column, Integer, Text, DateTime, Enum, ForeignKey
from sqlalchemy.orm import relationship
from backend.app.db.session import Base
from backend.app.models.enums import VehicleStatus


class VehicleStatusLog(Base):
    """One status transition. Rows are never updated or deleted."""
    __tablename__ = "vehicle_status_log"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id"), nullable=False, index=True)
    previous_status = Column(Enum(VehicleStatus), nullable=False)
    new_status = Column(Enum(VehicleStatus), nullable=False, index=True)
    changed_by = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    reason = Column(Text, nullable=True)
    odometer_reading = Column(Integer, nullable=True)
    created_at = Column(DateTime, default=datetime.now, nullable=False, index=True)

    vehicle = relationship("Vehicle", back_populates="status_logs")

    def __repr__(self):
        return (
            f"<VehicleStatusLog(vehicle_id={self.vehicle_id}, "
            f"{self.previous_status.value} -> {self.new_status.value})>"
        )
