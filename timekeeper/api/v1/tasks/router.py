"""Task API router."""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from timekeeper.auth.dependencies import get_current_user
from timekeeper.auth.rbac import require_admin
from timekeeper.auth.schemas import CurrentUser
from timekeeper.core.exceptions import ServiceError
from timekeeper.db.session import get_db

from . import service
from .schemas import (
    MyTaskResponse,
    TaskAttendanceResponse,
    TaskCreate,
    TaskEmployeeRemove,
    TaskEmployeesAdd,
    TaskResponse,
)

router = APIRouter(prefix="/api/v1/tasks", tags=["tasks"])


@router.post(
    "",
    response_model=TaskResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_task(
    payload: TaskCreate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin),
) -> TaskResponse:
    """Create a task. Rejected when it overlaps a pending/started task on the same date."""
    try:
        return await service.create_task(db, current_user.id, payload)
    except ServiceError as e:
        raise e.to_http()


@router.get(
    "/admin",
    response_model=List[TaskResponse],
    dependencies=[Depends(require_admin)],
)
async def list_admin_tasks(
    db: AsyncSession = Depends(get_db),
) -> List[TaskResponse]:
    return await service.list_admin_tasks(db)


@router.get("/my", response_model=List[MyTaskResponse])
async def list_my_tasks(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> List[MyTaskResponse]:
    """Caller's tasks from today onwards, each with the caller's own attendance status."""
    return await service.list_employee_tasks(db, current_user.id)


@router.put(
    "/{task_id}/employees/add",
    response_model=TaskResponse,
    dependencies=[Depends(require_admin)],
)
async def add_task_employees(
    task_id: UUID,
    payload: TaskEmployeesAdd,
    db: AsyncSession = Depends(get_db),
) -> TaskResponse:
    try:
        return await service.add_employees(db, task_id, payload)
    except ServiceError as e:
        raise e.to_http()


@router.put(
    "/{task_id}/employees/remove",
    response_model=TaskResponse,
    dependencies=[Depends(require_admin)],
)
async def remove_task_employee(
    task_id: UUID,
    payload: TaskEmployeeRemove,
    db: AsyncSession = Depends(get_db),
) -> TaskResponse:
    try:
        return await service.remove_employee(db, task_id, payload)
    except ServiceError as e:
        raise e.to_http()


@router.put(
    "/{task_id}/complete",
    response_model=TaskResponse,
    dependencies=[Depends(require_admin)],
)
async def complete_task(
    task_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> TaskResponse:
    try:
        return await service.complete_task(db, task_id)
    except ServiceError as e:
        raise e.to_http()


@router.get(
    "/{task_id}/attendance",
    response_model=TaskAttendanceResponse,
    dependencies=[Depends(require_admin)],
)
async def get_task_attendance(
    task_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> TaskAttendanceResponse:
    try:
        return await service.get_task_attendance(db, task_id)
    except ServiceError as e:
        raise e.to_http()
