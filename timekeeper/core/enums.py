from enum import Enum


class UserRole(str, Enum):
    ADMIN = "admin"
    EMPLOYEE = "employee"


class TaskStatus(str, Enum):
    PENDING = "pending"
    STARTED = "started"
    COMPLETED = "completed"


class MyAttendanceStatus(str, Enum):
    """Caller's own status on a task, shown in the employee task list."""

    NONE = "none"
    CLOCKED_IN = "clocked-in"
    CLOCKED_OUT = "clocked-out"


class EmployeeWorkStatus(str, Enum):
    """Per-employee status in the admin task attendance view."""

    NOT_STARTED = "not-started"
    WORKING = "working"
    CLOCKED_OUT = "clocked-out"
