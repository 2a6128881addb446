"""
Department database model.
"""

from datetime import datetime

from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime
from sqlalchemy.orm import relationship
from backend.app.db.session import Base


class Department(Base):
    """
    Department model.

    Users and vehicles reference a department through a nullable foreign key.
    Deletion is soft (is_active flag).
    """
    __tablename__ = "departments"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    code = Column(String(10), unique=True, index=True, nullable=False)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False, index=True)

    created_at = Column(DateTime, default=datetime.now, nullable=False)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now, nullable=False)

    users = relationship("User", back_populates="department")
    vehicles = relationship("Vehicle", back_populates="department")

    def __repr__(self):
        return f"<Department(id={self.id}, code='{self.code}', name='{self.name}')>"
