import uuid

from sqlalchemy import Column, DateTime, Float, ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship

from timekeeper.core.time_rules import utcnow
from timekeeper.db.session import Base


class Attendance(Base):
    """One clock-in/clock-out session per (task, employee). Append-only."""

    __tablename__ = "attendance"
    __table_args__ = (
        # One session per employee per task, including concurrent clock-ins
        UniqueConstraint("task_id", "employee_id", name="uq_attendance_task_employee"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    task_id = Column(Uuid, ForeignKey("tasks.id", ondelete="RESTRICT"), nullable=False, index=True)
    employee_id = Column(Uuid, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False, index=True)
    clock_in_time = Column(DateTime, nullable=False, index=True)
    clock_in_latitude = Column(Float, nullable=True)
    clock_in_longitude = Column(Float, nullable=True)
    clock_out_time = Column(DateTime, nullable=True)
    clock_out_latitude = Column(Float, nullable=True)
    clock_out_longitude = Column(Float, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    task = relationship("Task")
    employee = relationship("User")
