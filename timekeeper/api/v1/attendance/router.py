"""Attendance API router. Callers act on their own attendance only."""

from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from timekeeper.auth.dependencies import get_current_user
from timekeeper.auth.schemas import CurrentUser
from timekeeper.core.exceptions import ServiceError
from timekeeper.db.session import get_db

from . import service
from .schemas import (
    AttendanceHistoryItem,
    AttendanceRecordResponse,
    ClockRequest,
    EmployeeStats,
)

router = APIRouter(prefix="/api/v1/attendance", tags=["attendance"])


@router.post(
    "/clock-in",
    response_model=AttendanceRecordResponse,
    status_code=status.HTTP_201_CREATED,
)
async def clock_in(
    payload: ClockRequest,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> AttendanceRecordResponse:
    """Clock in. A repeated submission answers 409 ALREADY_CLOCKED_IN and is safe to ignore."""
    try:
        return await service.clock_in(db, payload.task_id, current_user.id, payload.location)
    except ServiceError as e:
        raise e.to_http()


@router.post("/clock-out", response_model=AttendanceRecordResponse)
async def clock_out(
    payload: ClockRequest,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> AttendanceRecordResponse:
    try:
        return await service.clock_out(db, payload.task_id, current_user.id, payload.location)
    except ServiceError as e:
        raise e.to_http()


@router.get("/history", response_model=List[AttendanceHistoryItem])
async def get_history(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> List[AttendanceHistoryItem]:
    return await service.get_history(db, current_user.id)


@router.get("/stats", response_model=EmployeeStats)
async def get_stats(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> EmployeeStats:
    return await service.get_stats(db, current_user.id)
