from datetime import date
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel


class EmployeeInfo(BaseModel):
    id: UUID
    name: str
    user_id: Optional[str] = None
    email: Optional[str] = None


class WorkTimeItem(BaseModel):
    employee: EmployeeInfo
    total_hours: float
    total_sessions: int
    avg_session_hours: float


class TopPerformerItem(BaseModel):
    """Score = completed_tasks * 10 + total_hours * 2."""

    rank: int
    employee: EmployeeInfo
    completed_tasks: int
    total_hours: float
    avg_session_hours: float
    performance_score: float


class AttendanceOverview(BaseModel):
    total_employees: int
    active_employees: int
    total_attendance: int
    total_hours: float
    avg_hours_per_employee: float


class DailyTrendItem(BaseModel):
    date: date
    attendance_count: int
    unique_employees: int


class AttendanceStatsResponse(BaseModel):
    overview: AttendanceOverview
    daily_trend: List[DailyTrendItem]


class WorkTimeTrendItem(BaseModel):
    date: date
    total_hours: float
    avg_hours: float
    employee_count: int
