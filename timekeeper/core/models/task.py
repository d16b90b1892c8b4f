import uuid

from sqlalchemy import Column, Date, DateTime, ForeignKey, String, Table, Time, Uuid
from sqlalchemy.orm import relationship

from timekeeper.core.time_rules import utcnow
from timekeeper.db.session import Base


# Staff assignment. Composite primary key keeps an employee on a task at most once.
task_employees = Table(
    "task_employees",
    Base.metadata,
    Column("task_id", Uuid, ForeignKey("tasks.id", ondelete="CASCADE"), primary_key=True),
    Column("employee_id", Uuid, ForeignKey("users.id", ondelete="RESTRICT"), primary_key=True),
)


class Task(Base):
    """Date- and time-windowed unit of work with assigned staff. Never deleted."""

    __tablename__ = "tasks"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    title = Column(String(255), nullable=False)
    date = Column(Date, nullable=False, index=True)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    status = Column(String(20), nullable=False, default="pending")  # pending, started, completed
    created_by = Column(Uuid, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    employees = relationship("User", secondary=task_employees, order_by="User.name")
    creator = relationship("User", foreign_keys=[created_by])
