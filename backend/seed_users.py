"""
Database seeding script for the initial administrator.

Creates an ADMIN department and an ADMIN user so the API can be used
before anyone else is registered. Run this after the database is up.
"""

import asyncio
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from backend.app.db.session import AsyncSessionLocal, Base, engine
from backend.app.models.department import Department
from backend.app.models.user import User
from backend.app.models.vehicle import Vehicle  # noqa: F401
from backend.app.models.trip import Trip  # noqa: F401
from backend.app.models.maintenance_schedule import MaintenanceSchedule  # noqa: F401
from backend.app.models.vehicle_inspection import VehicleInspection  # noqa: F401
from backend.app.models.vehicle_status_log import VehicleStatusLog  # noqa: F401
from backend.app.models.user_session import UserSession  # noqa: F401
from backend.app.models.enums import UserRole
from backend.app.core.security import get_password_hash
from sqlalchemy import select

ADMIN_COYNO_ID = "ADMIN001"
ADMIN_EMAIL = "admin@fleettracker.com"
ADMIN_PASSWORD = "admin123"


async def seed_users():
    """
    Seed the administrator account.

    Creates:
    - the ADMIN department (if missing)
    - 1 ADMIN user
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as db:
        print("Starting user seeding...")

        result = await db.execute(
            select(User).where(User.email == ADMIN_EMAIL)
        )
        if result.scalar_one_or_none():
            print("ADMIN user already exists, skipping seeding")
            return

        result = await db.execute(
            select(Department).where(Department.code == "ADMIN")
        )
        department = result.scalar_one_or_none()
        if department is None:
            department = Department(
                code="ADMIN",
                name="Administration",
                description="Fleet administration"
            )
            db.add(department)
            await db.flush()
            print("Created ADMIN department")

        admin_user = User(
            coyno_id=ADMIN_COYNO_ID,
            email=ADMIN_EMAIL,
            password_hash=get_password_hash(ADMIN_PASSWORD),
            first_name="System",
            last_name="Administrator",
            department_id=department.id,
            user_role=UserRole.ADMIN,
            is_active=True
        )
        db.add(admin_user)
        await db.commit()

        print("\nUser seeding completed successfully!")
        print(f"  - ADMIN: {ADMIN_COYNO_ID} / {ADMIN_EMAIL} / {ADMIN_PASSWORD}")
        print("\nNote: managers and drivers are registered via POST /auth/register")


if __name__ == "__main__":
    asyncio.run(seed_users())
