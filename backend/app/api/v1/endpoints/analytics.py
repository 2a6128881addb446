"""
Analytics API Endpoints.

Read-only dashboard data for any authenticated user. Every endpoint takes a
date filter (today, week, month, custom or all) and returns camelCase JSON.
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from backend.app.db.session import get_db
from backend.app.models.user import User
from backend.app.core.dependencies import get_current_user
from backend.app.services.analytics import AnalyticsService
from backend.app.schemas.analytics import (
    DashboardAnalytics, VehicleAnalytics, TripAnalytics, FuelAnalytics,
    MaintenanceAnalytics, DepartmentAnalytics, UtilizationAnalytics,
)

router = APIRouter(prefix="/analytics", tags=["Analytics"])

FILTER_DESCRIPTION = "today, week, month, custom or all"


@router.get("/dashboard", response_model=DashboardAnalytics)
async def get_dashboard_analytics(
    filter: str = Query("all", description=FILTER_DESCRIPTION),
    start_date: Optional[str] = Query(None, description="ISO start date for custom filter"),
    end_date: Optional[str] = Query(None, description="ISO end date for custom filter"),
    company_id: Optional[str] = Query(None, description="Restrict to one company"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Headline fleet metrics."""
    return await AnalyticsService.get_dashboard(db, filter, start_date, end_date, company_id=company_id)


@router.get("/vehicles", response_model=VehicleAnalytics)
async def get_vehicle_analytics(
    filter: str = Query("all", description=FILTER_DESCRIPTION),
    start_date: Optional[str] = Query(None),
    end_date: Optional[str] = Query(None),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Vehicle counts by status, department and fuel type."""
    return await AnalyticsService.get_vehicle_analytics(db, filter, start_date, end_date)


@router.get("/trips", response_model=TripAnalytics)
async def get_trip_analytics(
    filter: str = Query("all", description=FILTER_DESCRIPTION),
    start_date: Optional[str] = Query(None),
    end_date: Optional[str] = Query(None),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Trip counts with total distance and duration."""
    return await AnalyticsService.get_trip_analytics(db, filter, start_date, end_date)


@router.get("/fuel", response_model=FuelAnalytics)
async def get_fuel_analytics(
    filter: str = Query("all", description=FILTER_DESCRIPTION),
    start_date: Optional[str] = Query(None),
    end_date: Optional[str] = Query(None),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Fuel capacity totals by fuel type."""
    return await AnalyticsService.get_fuel_analytics(db, filter, start_date, end_date)


@router.get("/maintenance", response_model=MaintenanceAnalytics)
async def get_maintenance_analytics(
    filter: str = Query("all", description=FILTER_DESCRIPTION),
    start_date: Optional[str] = Query(None),
    end_date: Optional[str] = Query(None),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Maintenance schedules by due state and type."""
    return await AnalyticsService.get_maintenance_analytics(db, filter, start_date, end_date)


@router.get("/departments", response_model=DepartmentAnalytics)
async def get_department_analytics(
    filter: str = Query("all", description=FILTER_DESCRIPTION),
    start_date: Optional[str] = Query(None),
    end_date: Optional[str] = Query(None),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Per-department vehicle and user counts."""
    return await AnalyticsService.get_department_analytics(db, filter, start_date, end_date)


@router.get("/utilization", response_model=UtilizationAnalytics)
async def get_utilization_analytics(
    filter: str = Query("all", description=FILTER_DESCRIPTION),
    start_date: Optional[str] = Query(None),
    end_date: Optional[str] = Query(None),
    department_id: Optional[int] = Query(None, description="Restrict to one department"),
    user_id: Optional[int] = Query(None, description="Restrict to one driver"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Utilization by department, driver and day of the current week."""
    return await AnalyticsService.get_utilization(
        db, filter, start_date, end_date, department_id=department_id, user_id=user_id
    )
