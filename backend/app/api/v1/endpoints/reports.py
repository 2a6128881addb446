"""
CSV report download endpoints.
"""

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from backend.app.db.session import get_db
from backend.app.models.user import User
from backend.app.core.dependencies import get_current_user
from backend.app.services.reports import ReportService, report_filename

router = APIRouter(prefix="/reports", tags=["Reports"])


async def _csv_download(
    db: AsyncSession,
    report: str,
    filter: str,
    start_date: Optional[str],
    end_date: Optional[str],
) -> Response:
    content = await ReportService.generate(db, report, filter, start_date, end_date)
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{report_filename(report, filter)}"'},
    )


@router.get("/fleet-summary")
async def fleet_summary_report(
    filter: str = Query("month"),
    start_date: Optional[str] = Query(None),
    end_date: Optional[str] = Query(None),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await _csv_download(db, "fleet-summary", filter, start_date, end_date)


@router.get("/fuel-consumption")
async def fuel_consumption_report(
    filter: str = Query("month"),
    start_date: Optional[str] = Query(None),
    end_date: Optional[str] = Query(None),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await _csv_download(db, "fuel-consumption", filter, start_date, end_date)


@router.get("/maintenance-schedule")
async def maintenance_schedule_report(
    filter: str = Query("month"),
    start_date: Optional[str] = Query(None),
    end_date: Optional[str] = Query(None),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await _csv_download(db, "maintenance-schedule", filter, start_date, end_date)


@router.get("/driver-performance")
async def driver_performance_report(
    filter: str = Query("month"),
    start_date: Optional[str] = Query(None),
    end_date: Optional[str] = Query(None),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await _csv_download(db, "driver-performance", filter, start_date, end_date)


@router.get("/cost-analysis")
async def cost_analysis_report(
    filter: str = Query("month"),
    start_date: Optional[str] = Query(None),
    end_date: Optional[str] = Query(None),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await _csv_download(db, "cost-analysis", filter, start_date, end_date)


@router.get("/utilization")
async def utilization_report(
    filter: str = Query("month"),
    start_date: Optional[str] = Query(None),
    end_date: Optional[str] = Query(None),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await _csv_download(db, "utilization", filter, start_date, end_date)
