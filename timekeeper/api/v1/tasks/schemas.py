from datetime import date, datetime, time
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from timekeeper.api.v1.employees.schemas import EmployeeBrief


class TaskCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    date: date
    start_time: time = Field(..., description="HH:MM, 24h clock")
    end_time: time = Field(..., description="HH:MM, 24h clock")
    employee_ids: List[UUID] = Field(..., min_length=1)

    @field_validator("title", mode="before")
    @classmethod
    def strip_title(cls, v):
        return v.strip() if isinstance(v, str) else v


class TaskEmployeesAdd(BaseModel):
    employee_ids: List[UUID] = Field(..., min_length=1)


class TaskEmployeeRemove(BaseModel):
    employee_id: UUID


class TaskResponse(BaseModel):
    id: UUID
    title: str
    date: date
    start_time: time
    end_time: time
    status: str
    employees: List[EmployeeBrief]
    created_by: UUID
    created_at: datetime


class MyAttendance(BaseModel):
    """Caller's own attendance on a task: none, clocked-in or clocked-out."""

    status: str
    clock_in_time: Optional[datetime] = None
    clock_out_time: Optional[datetime] = None


class MyTaskResponse(TaskResponse):
    created_by_name: Optional[str] = None
    my_attendance: MyAttendance


# ----- Task attendance monitoring -----
class TaskSummaryInfo(BaseModel):
    id: UUID
    title: str
    date: date
    start_time: time
    end_time: time
    status: str


class EmployeeAttendanceStatus(BaseModel):
    employee: EmployeeBrief
    status: str  # not-started, working, clocked-out
    clock_in_time: Optional[datetime] = None
    clock_out_time: Optional[datetime] = None
    working_time: int = Field(0, description="Elapsed minutes, up to now while still working")


class TaskAttendanceSummary(BaseModel):
    total: int
    working: int
    completed: int
    not_started: int


class TaskAttendanceResponse(BaseModel):
    task: TaskSummaryInfo
    employees: List[EmployeeAttendanceStatus]
    summary: TaskAttendanceSummary
