"""
Vehicle inspection database model.
"""

from datetime import datetime

from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from backend.app.db.session import Base

CHECKLIST_FIELDS = ("all_windows_good", "all_mirrors_good", "all_tires_good")


class VehicleInspection(Base):
    """
    Checklist recorded at the start or end of a trip.

    notes is free text; clients sometimes store a JSON-encoded issue list in it.
    """
    __tablename__ = "vehicle_inspections"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    trip_id = Column(Integer, ForeignKey("trips.id", ondelete="CASCADE"), nullable=True, index=True)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id", ondelete="CASCADE"), nullable=True, index=True)

    inspection_type = Column(String(50), nullable=False, index=True)
    all_windows_good = Column(Boolean, default=False, nullable=False)
    all_mirrors_good = Column(Boolean, default=False, nullable=False)
    all_tires_good = Column(Boolean, default=False, nullable=False)
    needs_service = Column(Boolean, default=False, nullable=False, index=True)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.now, nullable=False)

    trip = relationship("Trip", back_populates="inspections")
    vehicle = relationship("Vehicle", back_populates="inspections")

    @property
    def failed_items(self):
        return [field for field in CHECKLIST_FIELDS if not getattr(self, field)]

    def __repr__(self):
        return f"<VehicleInspection(id={self.id}, trip_id={self.trip_id}, type='{self.inspection_type}')>"
