from datetime import date, datetime, time
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field


class Location(BaseModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


class ClockRequest(BaseModel):
    """Clock in or out of a task. Location is stored only when both coordinates are sent."""

    task_id: UUID
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)

    @property
    def location(self) -> Optional[Location]:
        if self.latitude is None or self.longitude is None:
            return None
        return Location(latitude=self.latitude, longitude=self.longitude)


class AttendanceRecordResponse(BaseModel):
    """Single clock-in/clock-out session."""

    id: UUID
    task_id: UUID
    employee_id: UUID
    clock_in_time: datetime
    clock_in_location: Optional[Location] = None
    clock_out_time: Optional[datetime] = None
    clock_out_location: Optional[Location] = None
    created_at: datetime


class TaskBrief(BaseModel):
    id: UUID
    title: str
    date: date
    start_time: time
    end_time: time


class AttendanceHistoryItem(AttendanceRecordResponse):
    task: TaskBrief


class EmployeeStats(BaseModel):
    completed_tasks: int
    upcoming_tasks: int
    total_hours: float = Field(..., description="Clocked-out hours, one decimal")
    days_present: int
