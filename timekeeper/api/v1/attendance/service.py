"""Attendance ledger: clock-in/clock-out per (task, employee), history and stats."""

import logging
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from fastapi import status
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from timekeeper.core.enums import TaskStatus
from timekeeper.core.exceptions import AuthError, NotFoundError, ServiceError, StateError
from timekeeper.core.models import Attendance, Task, task_employees
from timekeeper.core.time_rules import hours_between, local_date, today, utcnow

from .schemas import (
    AttendanceHistoryItem,
    AttendanceRecordResponse,
    EmployeeStats,
    Location,
    TaskBrief,
)

logger = logging.getLogger(__name__)


def _location(latitude: Optional[float], longitude: Optional[float]) -> Optional[Location]:
    if latitude is None or longitude is None:
        return None
    return Location(latitude=latitude, longitude=longitude)


def _to_response(a: Attendance) -> AttendanceRecordResponse:
    return AttendanceRecordResponse(
        id=a.id,
        task_id=a.task_id,
        employee_id=a.employee_id,
        clock_in_time=a.clock_in_time,
        clock_in_location=_location(a.clock_in_latitude, a.clock_in_longitude),
        clock_out_time=a.clock_out_time,
        clock_out_location=_location(a.clock_out_latitude, a.clock_out_longitude),
        created_at=a.created_at,
    )


async def _get_record(db: AsyncSession, task_id: UUID, employee_id: UUID) -> Optional[Attendance]:
    result = await db.execute(
        select(Attendance).where(
            Attendance.task_id == task_id,
            Attendance.employee_id == employee_id,
        )
    )
    return result.scalar_one_or_none()


async def _is_assigned(db: AsyncSession, task_id: UUID, employee_id: UUID) -> bool:
    result = await db.execute(
        select(task_employees.c.task_id).where(
            task_employees.c.task_id == task_id,
            task_employees.c.employee_id == employee_id,
        )
    )
    return result.first() is not None


async def clock_in(
    db: AsyncSession,
    task_id: UUID,
    employee_id: UUID,
    location: Optional[Location] = None,
    now: Optional[datetime] = None,
) -> AttendanceRecordResponse:
    """NOT_STARTED -> WORKING. First clock-in on a pending task starts it."""
    task = await db.get(Task, task_id)
    if not task:
        raise NotFoundError("Task not found", code="TASK_NOT_FOUND")
    if not await _is_assigned(db, task_id, employee_id):
        raise AuthError(
            "You are not assigned to this task",
            code="NOT_ASSIGNED",
            status_code=status.HTTP_403_FORBIDDEN,
        )
    if await _get_record(db, task_id, employee_id):
        raise StateError("Already clocked in for this task", code="ALREADY_CLOCKED_IN")

    record = Attendance(
        task_id=task_id,
        employee_id=employee_id,
        clock_in_time=now or utcnow(),
        clock_in_latitude=location.latitude if location else None,
        clock_in_longitude=location.longitude if location else None,
    )
    db.add(record)
    if task.status == TaskStatus.PENDING.value:
        task.status = TaskStatus.STARTED.value

    try:
        await db.commit()
    except IntegrityError as e:
        # A concurrent clock-in for the same pair won the unique constraint
        await db.rollback()
        raise StateError("Already clocked in for this task", code="ALREADY_CLOCKED_IN") from e
    except Exception as e:
        await db.rollback()
        logger.exception("Clock-in failed for task %s employee %s", task_id, employee_id)
        raise ServiceError("Failed to record clock-in") from e

    await db.refresh(record)
    logger.info("Employee %s clocked in to task %s", employee_id, task_id)
    return _to_response(record)


async def clock_out(
    db: AsyncSession,
    task_id: UUID,
    employee_id: UUID,
    location: Optional[Location] = None,
    now: Optional[datetime] = None,
) -> AttendanceRecordResponse:
    """WORKING -> CLOCKED_OUT. Never re-opened afterwards."""
    record = await _get_record(db, task_id, employee_id)
    if not record:
        raise NotFoundError("No clock-in record found for this task", code="NO_RECORD_FOUND")
    if record.clock_out_time is not None:
        raise StateError("Already clocked out", code="ALREADY_CLOCKED_OUT")

    record.clock_out_time = now or utcnow()
    if location:
        record.clock_out_latitude = location.latitude
        record.clock_out_longitude = location.longitude

    try:
        await db.commit()
    except Exception as e:
        await db.rollback()
        logger.exception("Clock-out failed for task %s employee %s", task_id, employee_id)
        raise ServiceError("Failed to record clock-out") from e

    await db.refresh(record)
    logger.info("Employee %s clocked out of task %s", employee_id, task_id)
    return _to_response(record)


async def get_history(db: AsyncSession, employee_id: UUID) -> List[AttendanceHistoryItem]:
    result = await db.execute(
        select(Attendance)
        .options(selectinload(Attendance.task))
        .where(Attendance.employee_id == employee_id)
        .order_by(Attendance.clock_in_time.desc())
    )
    items = []
    for a in result.scalars().all():
        items.append(
            AttendanceHistoryItem(
                **_to_response(a).model_dump(),
                task=TaskBrief(
                    id=a.task.id,
                    title=a.task.title,
                    date=a.task.date,
                    start_time=a.task.start_time,
                    end_time=a.task.end_time,
                ),
            )
        )
    return items


async def get_stats(
    db: AsyncSession,
    employee_id: UUID,
    now: Optional[datetime] = None,
) -> EmployeeStats:
    """Completed sessions, upcoming tasks, hours worked and distinct days present."""
    result = await db.execute(
        select(Attendance.clock_in_time, Attendance.clock_out_time).where(
            Attendance.employee_id == employee_id,
            Attendance.clock_out_time.is_not(None),
        )
    )
    sessions = result.all()

    upcoming_result = await db.execute(
        select(func.count())
        .select_from(Task)
        .join(task_employees, task_employees.c.task_id == Task.id)
        .where(
            task_employees.c.employee_id == employee_id,
            Task.date >= today(now),
        )
    )
    upcoming = upcoming_result.scalar() or 0

    total_hours = sum(hours_between(clock_in, clock_out) for clock_in, clock_out in sessions)
    days_present = {local_date(clock_in) for clock_in, _ in sessions}

    return EmployeeStats(
        completed_tasks=len(sessions),
        upcoming_tasks=upcoming,
        total_hours=round(total_hours, 1),
        days_present=len(days_present),
    )
