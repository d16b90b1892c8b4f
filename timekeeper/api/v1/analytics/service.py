"""Read-only analytics over the attendance ledger.

Rows are fetched ordered by clock-in and reduced in memory. Grouping keeps
first-seen order, and rankings use a stable sort, so ties stay in that order.
"""

from datetime import date, datetime, timedelta
from typing import Dict, Iterable, List, Optional, Sequence, Tuple
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from timekeeper.auth.models import User
from timekeeper.core.enums import UserRole
from timekeeper.core.models import Attendance
from timekeeper.core.time_rules import hours_between, local_date, range_bounds, utcnow

from .schemas import (
    AttendanceOverview,
    AttendanceStatsResponse,
    DailyTrendItem,
    EmployeeInfo,
    TopPerformerItem,
    WorkTimeItem,
    WorkTimeTrendItem,
)

# (employee_id, clock_in_time, clock_out_time)
SessionRow = Tuple[UUID, datetime, Optional[datetime]]


async def _fetch_sessions(
    db: AsyncSession,
    *,
    since: Optional[datetime] = None,
    before: Optional[datetime] = None,
    until: Optional[datetime] = None,
    clocked_out_only: bool = True,
) -> Sequence[SessionRow]:
    """Sessions with since <= clock_in < before (or <= until)."""
    stmt = select(Attendance.employee_id, Attendance.clock_in_time, Attendance.clock_out_time)
    if clocked_out_only:
        stmt = stmt.where(Attendance.clock_out_time.is_not(None))
    if since is not None:
        stmt = stmt.where(Attendance.clock_in_time >= since)
    if before is not None:
        stmt = stmt.where(Attendance.clock_in_time < before)
    if until is not None:
        stmt = stmt.where(Attendance.clock_in_time <= until)
    stmt = stmt.order_by(Attendance.clock_in_time, Attendance.id)
    result = await db.execute(stmt)
    return [tuple(row) for row in result.all()]


def _group_hours(rows: Iterable[SessionRow]) -> Dict[UUID, List[float]]:
    """Per-employee session durations in hours, in first-seen order."""
    groups: Dict[UUID, List[float]] = {}
    for employee_id, clock_in, clock_out in rows:
        groups.setdefault(employee_id, []).append(hours_between(clock_in, clock_out))
    return groups


async def _employee_info(db: AsyncSession, ids: Iterable[UUID]) -> Dict[UUID, EmployeeInfo]:
    ids = list(ids)
    if not ids:
        return {}
    result = await db.execute(select(User).where(User.id.in_(ids)))
    return {
        u.id: EmployeeInfo(id=u.id, name=u.name, user_id=u.user_id, email=u.email)
        for u in result.scalars().all()
    }


async def work_time_by_employee(
    db: AsyncSession,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    limit: int = 10,
) -> List[WorkTimeItem]:
    """Employees ranked by clocked-out hours within the optional date range."""
    since, before = range_bounds(start_date, end_date)
    rows = await _fetch_sessions(db, since=since, before=before)

    ranked = sorted(_group_hours(rows).items(), key=lambda kv: sum(kv[1]), reverse=True)[:limit]
    info = await _employee_info(db, (employee_id for employee_id, _ in ranked))

    return [
        WorkTimeItem(
            employee=info[employee_id],
            total_hours=round(sum(durations), 2),
            total_sessions=len(durations),
            avg_session_hours=round(sum(durations) / len(durations), 2),
        )
        for employee_id, durations in ranked
    ]


def performance_score(completed_tasks: int, total_hours: float) -> float:
    return completed_tasks * 10 + total_hours * 2


async def top_performers(
    db: AsyncSession,
    period_days: int = 30,
    limit: int = 5,
    now: Optional[datetime] = None,
) -> List[TopPerformerItem]:
    now = now or utcnow()
    rows = await _fetch_sessions(db, since=now - timedelta(days=period_days))

    scored = [
        (employee_id, durations, performance_score(len(durations), sum(durations)))
        for employee_id, durations in _group_hours(rows).items()
    ]
    scored.sort(key=lambda item: item[2], reverse=True)
    scored = scored[:limit]
    info = await _employee_info(db, (employee_id for employee_id, _, _ in scored))

    return [
        TopPerformerItem(
            rank=index + 1,
            employee=info[employee_id],
            completed_tasks=len(durations),
            total_hours=round(sum(durations), 2),
            avg_session_hours=round(sum(durations) / len(durations), 2),
            performance_score=round(score, 2),
        )
        for index, (employee_id, durations, score) in enumerate(scored)
    ]


async def attendance_stats(
    db: AsyncSession,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    now: Optional[datetime] = None,
) -> AttendanceStatsResponse:
    now = now or utcnow()
    since, before = range_bounds(start_date, end_date)

    total_employees = (
        await db.execute(
            select(func.count())
            .select_from(User)
            .where(User.role == UserRole.EMPLOYEE.value, User.is_active.is_(True))
        )
    ).scalar() or 0

    # Active employees count open sessions too
    all_rows = await _fetch_sessions(db, since=since, before=before, clocked_out_only=False)
    completed = [row for row in all_rows if row[2] is not None]

    total_hours = round(sum(hours_between(clock_in, clock_out) for _, clock_in, clock_out in completed), 1)
    active_employees = len({employee_id for employee_id, _, _ in all_rows})
    avg_hours = round(total_hours / active_employees, 2) if active_employees > 0 else 0.0

    # Trend window: [start_date or now - 7 days, end_date or now]
    trend_rows = await _fetch_sessions(
        db,
        since=since if since is not None else now - timedelta(days=7),
        before=before,
        until=now if before is None else None,
        clocked_out_only=False,
    )

    buckets: Dict[date, List[UUID]] = {}
    for employee_id, clock_in, _ in trend_rows:
        buckets.setdefault(local_date(clock_in), []).append(employee_id)

    return AttendanceStatsResponse(
        overview=AttendanceOverview(
            total_employees=total_employees,
            active_employees=active_employees,
            total_attendance=len(completed),
            total_hours=total_hours,
            avg_hours_per_employee=avg_hours,
        ),
        daily_trend=[
            DailyTrendItem(
                date=day,
                attendance_count=len(employee_ids),
                unique_employees=len(set(employee_ids)),
            )
            for day, employee_ids in sorted(buckets.items())
        ],
    )


async def work_time_trend(
    db: AsyncSession,
    days: int = 7,
    now: Optional[datetime] = None,
) -> List[WorkTimeTrendItem]:
    """Daily totals: per-employee hours per day, then summed/averaged per day."""
    now = now or utcnow()
    rows = await _fetch_sessions(db, since=now - timedelta(days=days))

    per_employee_day: Dict[Tuple[date, UUID], float] = {}
    for employee_id, clock_in, clock_out in rows:
        key = (local_date(clock_in), employee_id)
        per_employee_day[key] = per_employee_day.get(key, 0.0) + hours_between(clock_in, clock_out)

    per_day: Dict[date, List[float]] = {}
    for (day, _), hours in per_employee_day.items():
        per_day.setdefault(day, []).append(hours)

    return [
        WorkTimeTrendItem(
            date=day,
            total_hours=round(sum(hours), 2),
            avg_hours=round(sum(hours) / len(hours), 2),
            employee_count=len(hours),
        )
        for day, hours in sorted(per_day.items())
    ]
