"""
Maintenance schedule database model.

Interval fields and due fields are independently nullable. Whether a
schedule is due is computed on read, never stored.
"""

from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import Column, Integer, Text, Numeric, Boolean, DateTime, Enum, ForeignKey, inspect
from sqlalchemy.orm import relationship
from backend.app.db.session import Base
from backend.app.models.enums import MaintenanceType, MaintenanceDueStatus

# Lookahead window for "due soon"
DUE_SOON_DAYS = 7


def compute_due_status(
    next_due_date: Optional[datetime],
    next_due_km: Optional[int] = None,
    current_odometer: Optional[int] = None,
    now: Optional[datetime] = None,
) -> Optional[MaintenanceDueStatus]:
    """
    Classify a schedule against the clock and the vehicle odometer.

    Returns None when neither a due date nor a reachable due odometer is set.
    """
    now = now or datetime.now()

    if next_due_km is not None and current_odometer is not None and current_odometer >= next_due_km:
        return MaintenanceDueStatus.OVERDUE

    if next_due_date is None:
        return None
    if next_due_date < now:
        return MaintenanceDueStatus.OVERDUE
    if next_due_date <= now + timedelta(days=DUE_SOON_DAYS):
        return MaintenanceDueStatus.DUE_SOON
    return MaintenanceDueStatus.SCHEDULED


class MaintenanceSchedule(Base):
    """Recurring maintenance item for one vehicle."""
    __tablename__ = "maintenance_schedules"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id"), nullable=False, index=True)

    maintenance_type = Column(Enum(MaintenanceType), nullable=False, index=True)
    description = Column(Text, nullable=True)

    interval_km = Column(Integer, nullable=True)
    interval_months = Column(Integer, nullable=True)
    last_performed_at = Column(DateTime, nullable=True)
    next_due_km = Column(Integer, nullable=True)
    next_due_date = Column(DateTime, nullable=True, index=True)

    estimated_cost = Column(Numeric(10, 2), nullable=True)
    actual_cost = Column(Numeric(10, 2), nullable=True)
    notes = Column(Text, nullable=True)

    is_active = Column(Boolean, default=True, nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.now, nullable=False)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now, nullable=False)

    vehicle = relationship("Vehicle", back_populates="maintenance_schedules")

    @property
    def due_status(self) -> Optional[MaintenanceDueStatus]:
        odometer = None
        # Only consult the vehicle when it was eager-loaded
        if "vehicle" not in inspect(self).unloaded and self.vehicle is not None:
            odometer = self.vehicle.current_odometer
        return compute_due_status(self.next_due_date, self.next_due_km, odometer)

    def __repr__(self):
        return f"<MaintenanceSchedule(id={self.id}, vehicle_id={self.vehicle_id}, type='{self.maintenance_type.value}')>"
