"""
Enumerations for the fleet tracker domain.

Defines roles, vehicle/trip states, and maintenance categories.
"""

import enum


class UserRole(str, enum.Enum):
    """
    User role enumeration.

    Roles:
        ADMIN: Full access, manages departments and users
        MANAGER: Manages vehicles and reviews analytics
        DRIVER: Takes vehicles on trips (default role)
        MECHANIC: Performs maintenance
    """
    ADMIN = "admin"
    MANAGER = "manager"
    DRIVER = "driver"
    MECHANIC = "mechanic"


class FuelType(str, enum.Enum):
    """Vehicle fuel type enumeration."""
    PETROL = "petrol"
    DIESEL = "diesel"
    ELECTRIC = "electric"
    HYBRID = "hybrid"


class VehicleStatus(str, enum.Enum):
    """
    Vehicle status enumeration.

    Any status may follow any other; there is no transition table.
    """
    ACTIVE = "active"
    MAINTENANCE = "maintenance"
    RETIRED = "retired"
    AVAILABLE = "available"


# Statuses counted as "in service" by analytics
OPERATIONAL_STATUSES = frozenset({VehicleStatus.ACTIVE, VehicleStatus.AVAILABLE})


class TripStatus(str, enum.Enum):
    """Trip status enumeration."""
    ACTIVE = "active"  # Vehicle is out
    COMPLETED = "completed"  # Trip ended
    CANCELLED = "cancelled"


class MaintenanceType(str, enum.Enum):
    """Maintenance schedule categories."""
    OIL_CHANGE = "oil_change"
    TIRE_ROTATION = "tire_rotation"
    BRAKE_SERVICE = "brake_service"
    ENGINE_SERVICE = "engine_service"
    INSPECTION = "inspection"
    OTHER = "other"


class MaintenanceDueStatus(str, enum.Enum):
    """Due state computed at read time, never persisted."""
    OVERDUE = "overdue"
    DUE_SOON = "due_soon"
    SCHEDULED = "scheduled"
