"""Task registry: scheduling with conflict detection, staff assignment, status."""

import logging
from datetime import datetime
from typing import Dict, List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from timekeeper.api.v1.employees import service as employee_service
from timekeeper.api.v1.employees.schemas import EmployeeBrief
from timekeeper.auth.models import User
from timekeeper.core.enums import EmployeeWorkStatus, MyAttendanceStatus, TaskStatus
from timekeeper.core.exceptions import ConflictError, NotFoundError, StateError, ValidationError
from timekeeper.core.models import Attendance, Task, task_employees
from timekeeper.core.time_rules import intervals_overlap, minutes_between, to_minutes, today, utcnow

from .schemas import (
    EmployeeAttendanceStatus,
    MyAttendance,
    MyTaskResponse,
    TaskAttendanceResponse,
    TaskAttendanceSummary,
    TaskCreate,
    TaskEmployeeRemove,
    TaskEmployeesAdd,
    TaskResponse,
    TaskSummaryInfo,
)

logger = logging.getLogger(__name__)


def _employee_brief(user: User) -> EmployeeBrief:
    return EmployeeBrief(
        id=user.id,
        name=user.name,
        user_id=user.user_id,
        phone=user.phone,
        email=user.email,
    )


def _to_response(task: Task) -> TaskResponse:
    return TaskResponse(
        id=task.id,
        title=task.title,
        date=task.date,
        start_time=task.start_time,
        end_time=task.end_time,
        status=task.status,
        employees=[_employee_brief(u) for u in task.employees],
        created_by=task.created_by,
        created_at=task.created_at,
    )


async def _load_task(db: AsyncSession, task_id: UUID) -> Optional[Task]:
    result = await db.execute(
        select(Task)
        .options(selectinload(Task.employees))
        .where(Task.id == task_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def _get_task_or_404(db: AsyncSession, task_id: UUID) -> Task:
    task = await _load_task(db, task_id)
    if not task:
        raise NotFoundError("Task not found", code="TASK_NOT_FOUND")
    return task


async def find_schedule_conflict(db: AsyncSession, payload: TaskCreate) -> Optional[Task]:
    """First pending/started task on the same date whose window overlaps the new one."""
    result = await db.execute(
        select(Task).where(
            Task.date == payload.date,
            Task.status != TaskStatus.COMPLETED.value,
        )
    )
    for existing in result.scalars().all():
        if intervals_overlap(payload.start_time, payload.end_time, existing.start_time, existing.end_time):
            return existing
    return None


async def create_task(
    db: AsyncSession,
    creator_id: UUID,
    payload: TaskCreate,
) -> TaskResponse:
    if to_minutes(payload.start_time) >= to_minutes(payload.end_time):
        raise ValidationError("Start time must be before end time", code="INVALID_SCHEDULE")

    # Best-effort: two concurrent creations for the same window can both pass this check
    conflict = await find_schedule_conflict(db, payload)
    if conflict:
        logger.warning(
            "Rejected task %r on %s %s-%s: overlaps task %s",
            payload.title, payload.date, payload.start_time, payload.end_time, conflict.id,
        )
        raise ConflictError(
            "Time conflict: Another task is already scheduled during this time period",
            code="SCHEDULE_CONFLICT",
        )

    employees = await employee_service.resolve_active_employees(db, payload.employee_ids)

    task = Task(
        title=payload.title,
        date=payload.date,
        start_time=payload.start_time,
        end_time=payload.end_time,
        status=TaskStatus.PENDING.value,
        created_by=creator_id,
    )
    task.employees = list(employees)
    db.add(task)
    await db.commit()
    logger.info("Created task %s on %s with %d employee(s)", task.id, task.date, len(employees))

    return _to_response(await _get_task_or_404(db, task.id))


async def list_admin_tasks(db: AsyncSession) -> List[TaskResponse]:
    result = await db.execute(
        select(Task)
        .options(selectinload(Task.employees))
        .order_by(Task.date.desc(), Task.start_time)
    )
    return [_to_response(t) for t in result.scalars().all()]


async def list_employee_tasks(
    db: AsyncSession,
    employee_id: UUID,
    now: Optional[datetime] = None,
) -> List[MyTaskResponse]:
    """Upcoming tasks (today onwards) assigned to the employee, with own attendance."""
    result = await db.execute(
        select(Task)
        .join(task_employees, task_employees.c.task_id == Task.id)
        .options(selectinload(Task.employees), selectinload(Task.creator))
        .where(
            task_employees.c.employee_id == employee_id,
            Task.date >= today(now),
        )
        .order_by(Task.date, Task.start_time)
    )
    tasks = result.scalars().unique().all()

    records: Dict[UUID, Attendance] = {}
    if tasks:
        att_result = await db.execute(
            select(Attendance).where(
                Attendance.employee_id == employee_id,
                Attendance.task_id.in_([t.id for t in tasks]),
            )
        )
        records = {a.task_id: a for a in att_result.scalars().all()}

    items: List[MyTaskResponse] = []
    for task in tasks:
        record = records.get(task.id)
        if record is None:
            mine = MyAttendance(status=MyAttendanceStatus.NONE.value)
        else:
            mine = MyAttendance(
                status=(
                    MyAttendanceStatus.CLOCKED_OUT.value
                    if record.clock_out_time
                    else MyAttendanceStatus.CLOCKED_IN.value
                ),
                clock_in_time=record.clock_in_time,
                clock_out_time=record.clock_out_time,
            )
        items.append(
            MyTaskResponse(
                **_to_response(task).model_dump(),
                created_by_name=task.creator.name if task.creator else None,
                my_attendance=mine,
            )
        )
    return items


async def add_employees(
    db: AsyncSession,
    task_id: UUID,
    payload: TaskEmployeesAdd,
) -> TaskResponse:
    task = await _get_task_or_404(db, task_id)
    employees = await employee_service.resolve_active_employees(db, payload.employee_ids)

    assigned = {u.id for u in task.employees}
    new_employees = [u for u in employees if u.id not in assigned]
    if not new_employees:
        raise StateError(
            "All selected employees are already assigned to this task",
            code="ALL_ALREADY_ASSIGNED",
        )

    task.employees.extend(new_employees)
    await db.commit()
    logger.info("Added %d employee(s) to task %s", len(new_employees), task.id)
    return _to_response(await _get_task_or_404(db, task_id))


async def remove_employee(
    db: AsyncSession,
    task_id: UUID,
    payload: TaskEmployeeRemove,
) -> TaskResponse:
    task = await _get_task_or_404(db, task_id)
    target = next((u for u in task.employees if u.id == payload.employee_id), None)
    if target is None:
        raise StateError("Employee is not assigned to this task", code="NOT_ASSIGNED")
    if len(task.employees) == 1:
        raise StateError("Cannot remove the last employee from a task", code="LAST_EMPLOYEE")

    task.employees.remove(target)
    await db.commit()
    logger.info("Removed employee %s from task %s", target.id, task.id)
    return _to_response(await _get_task_or_404(db, task_id))


async def complete_task(db: AsyncSession, task_id: UUID) -> TaskResponse:
    """Explicit admin close-out. Completed tasks no longer block their time window."""
    task = await _get_task_or_404(db, task_id)
    if task.status == TaskStatus.COMPLETED.value:
        raise StateError("Task is already completed", code="ALREADY_COMPLETED")
    task.status = TaskStatus.COMPLETED.value
    await db.commit()
    logger.info("Task %s marked completed", task.id)
    return _to_response(await _get_task_or_404(db, task_id))


async def get_task_attendance(
    db: AsyncSession,
    task_id: UUID,
    now: Optional[datetime] = None,
) -> TaskAttendanceResponse:
    """Per-employee work status for a task, for admin monitoring."""
    now = now or utcnow()
    task = await _get_task_or_404(db, task_id)

    result = await db.execute(select(Attendance).where(Attendance.task_id == task_id))
    by_employee = {a.employee_id: a for a in result.scalars().all()}

    statuses: List[EmployeeAttendanceStatus] = []
    for employee in task.employees:
        record = by_employee.get(employee.id)
        if record is None:
            statuses.append(
                EmployeeAttendanceStatus(
                    employee=_employee_brief(employee),
                    status=EmployeeWorkStatus.NOT_STARTED.value,
                )
            )
            continue
        end = record.clock_out_time or now
        statuses.append(
            EmployeeAttendanceStatus(
                employee=_employee_brief(employee),
                status=(
                    EmployeeWorkStatus.CLOCKED_OUT.value
                    if record.clock_out_time
                    else EmployeeWorkStatus.WORKING.value
                ),
                clock_in_time=record.clock_in_time,
                clock_out_time=record.clock_out_time,
                working_time=max(0, minutes_between(record.clock_in_time, end)),
            )
        )

    def _count(status_value: str) -> int:
        return sum(1 for s in statuses if s.status == status_value)

    return TaskAttendanceResponse(
        task=TaskSummaryInfo(
            id=task.id,
            title=task.title,
            date=task.date,
            start_time=task.start_time,
            end_time=task.end_time,
            status=task.status,
        ),
        employees=statuses,
        summary=TaskAttendanceSummary(
            total=len(statuses),
            working=_count(EmployeeWorkStatus.WORKING.value),
            completed=_count(EmployeeWorkStatus.CLOCKED_OUT.value),
            not_started=_count(EmployeeWorkStatus.NOT_STARTED.value),
        ),
    )
