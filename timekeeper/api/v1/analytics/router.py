"""Analytics API router (admin only, read-only)."""

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from timekeeper.auth.rbac import require_admin
from timekeeper.core.exceptions import ValidationError
from timekeeper.db.session import get_db

from . import service
from .schemas import (
    AttendanceStatsResponse,
    TopPerformerItem,
    WorkTimeItem,
    WorkTimeTrendItem,
)

router = APIRouter(
    prefix="/api/v1/analytics",
    tags=["analytics"],
    dependencies=[Depends(require_admin)],
)


def _check_range(start_date: Optional[date], end_date: Optional[date]) -> None:
    if start_date and end_date and start_date > end_date:
        raise ValidationError("start_date must not be after end_date", code="INVALID_RANGE").to_http()


@router.get("/work-time", response_model=List[WorkTimeItem])
async def get_work_time(
    start_date: Optional[date] = Query(None, description="Inclusive, filters clock-in date"),
    end_date: Optional[date] = Query(None, description="Inclusive, filters clock-in date"),
    limit: int = Query(10, ge=1),
    db: AsyncSession = Depends(get_db),
) -> List[WorkTimeItem]:
    """Employees ranked by total clocked-out hours."""
    _check_range(start_date, end_date)
    return await service.work_time_by_employee(db, start_date, end_date, limit)


@router.get("/top-performers", response_model=List[TopPerformerItem])
async def get_top_performers(
    period: int = Query(30, ge=1, le=3650, description="Look-back window in days"),
    limit: int = Query(5, ge=1),
    db: AsyncSession = Depends(get_db),
) -> List[TopPerformerItem]:
    return await service.top_performers(db, period_days=period, limit=limit)


@router.get("/attendance-stats", response_model=AttendanceStatsResponse)
async def get_attendance_stats(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    db: AsyncSession = Depends(get_db),
) -> AttendanceStatsResponse:
    _check_range(start_date, end_date)
    return await service.attendance_stats(db, start_date, end_date)


@router.get("/work-time-trend", response_model=List[WorkTimeTrendItem])
async def get_work_time_trend(
    days: int = Query(7, ge=1, le=3650),
    db: AsyncSession = Depends(get_db),
) -> List[WorkTimeTrendItem]:
    return await service.work_time_trend(db, days=days)
