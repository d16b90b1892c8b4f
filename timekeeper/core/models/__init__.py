from timekeeper.core.models.task import Task, task_employees
from timekeeper.core.models.attendance import Attendance

__all__ = [
    "Attendance",
    "Task",
    "task_employees",
]
