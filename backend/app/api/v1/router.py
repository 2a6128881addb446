"""
API v1 Router.

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter
from backend.app.api.v1.endpoints import (
    auth, users, departments, vehicles, trips, maintenance,
    analytics, reports
)

router = APIRouter()

# Authentication and accounts
router.include_router(auth.router)
router.include_router(users.router)

# Fleet records
router.include_router(departments.router)
router.include_router(vehicles.router)
router.include_router(trips.router)
router.include_router(maintenance.router)

# Read-only aggregates
router.include_router(analytics.router)
router.include_router(reports.router)
