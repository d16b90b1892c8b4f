from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from timekeeper.auth.rbac import require_admin
from timekeeper.core.exceptions import ServiceError
from timekeeper.db.session import get_db

from . import service
from .schemas import EmployeeCreate, EmployeeResponse, EmployeeUpdate, MessageResponse

router = APIRouter(
    prefix="/api/v1/employees",
    tags=["employees"],
    dependencies=[Depends(require_admin)],
)


@router.post(
    "",
    response_model=EmployeeResponse,
    status_code=status.HTTP_201_CREATED,
)
async def register_employee(
    payload: EmployeeCreate,
    db: AsyncSession = Depends(get_db),
) -> EmployeeResponse:
    try:
        return await service.create_employee(db, payload)
    except ServiceError as e:
        raise e.to_http()


@router.get("", response_model=List[EmployeeResponse])
async def list_employees(
    db: AsyncSession = Depends(get_db),
) -> List[EmployeeResponse]:
    return await service.list_employees(db)


@router.put("/{employee_id}", response_model=EmployeeResponse)
async def update_employee(
    employee_id: UUID,
    payload: EmployeeUpdate,
    db: AsyncSession = Depends(get_db),
) -> EmployeeResponse:
    try:
        return await service.update_employee(db, employee_id, payload)
    except ServiceError as e:
        raise e.to_http()


@router.delete("/{employee_id}", response_model=MessageResponse)
async def deactivate_employee(
    employee_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    """Soft delete: the account can no longer log in; history is kept."""
    try:
        await service.deactivate_employee(db, employee_id)
    except ServiceError as e:
        raise e.to_http()
    return MessageResponse(message="Employee deactivated successfully")
