"""
User database model.

Users log in with their company ID (coyno_id) and carry a single role.
"""

from datetime import datetime

from sqlalchemy import Column, Integer, String, Boolean, DateTime, Enum, ForeignKey
from sqlalchemy.orm import relationship
from backend.app.db.session import Base
from backend.app.models.enums import UserRole


class User(Base):
    """
    User model for authentication and user management.

    Users are never hard-deleted; they are disabled by flipping is_active.
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    coyno_id = Column(String(50), index=True, nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(256), nullable=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    phone = Column(String(20), nullable=True)

    department_id = Column(Integer, ForeignKey("departments.id"), nullable=True, index=True)
    user_role = Column(Enum(UserRole), default=UserRole.DRIVER, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False, index=True)
    last_login_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.now, nullable=False)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now, nullable=False)

    department = relationship("Department", back_populates="users")
    assigned_vehicles = relationship("Vehicle", back_populates="assigned_driver")
    trips = relationship("Trip", back_populates="driver")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def __repr__(self):
        return f"<User(id={self.id}, coyno_id='{self.coyno_id}', email='{self.email}', role='{self.user_role.value}')>"
