"""Employee router - FastAPI endpoints for staff management"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import User
from .schemas import (
    EmployeeCreate,
    EmployeeCreatedResponse,
    EmployeeResponse,
    EmployeeUpdate,
    employee_fields,
    to_employee_response,
)
from .service import EmployeeService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/employees", tags=["Employees"])


def get_employee_service(db: Session = Depends(get_db)) -> EmployeeService:
    return EmployeeService(db)


@router.get("", response_model=list[EmployeeResponse])
async def get_employees(
    status: Optional[str] = Query(None),
    current_user: User = Depends(get_current_user),
    service: EmployeeService = Depends(get_employee_service),
):
    return [to_employee_response(e) for e in service.get_employees(current_user, status)]


@router.post("", response_model=EmployeeCreatedResponse, status_code=201)
async def create_employee(
    data: EmployeeCreate,
    current_user: User = Depends(get_current_user),
    service: EmployeeService = Depends(get_employee_service),
):
    """Create an employee; the generated password is returned only in this response"""
    employee, plain_password = service.create_employee(data, current_user)
    return EmployeeCreatedResponse(**employee_fields(employee), plainPassword=plain_password)


@router.get("/{employee_id}", response_model=EmployeeResponse)
async def get_employee(
    employee_id: int,
    current_user: User = Depends(get_current_user),
    service: EmployeeService = Depends(get_employee_service),
):
    return to_employee_response(service.get_employee(employee_id, current_user))


@router.put("/{employee_id}", response_model=EmployeeResponse)
async def update_employee(
    employee_id: int,
    data: EmployeeUpdate,
    current_user: User = Depends(get_current_user),
    service: EmployeeService = Depends(get_employee_service),
):
    return to_employee_response(service.update_employee(employee_id, data, current_user))


@router.delete("/{employee_id}")
async def delete_employee(
    employee_id: int,
    current_user: User = Depends(get_current_user),
    service: EmployeeService = Depends(get_employee_service),
):
    return service.delete_employee(employee_id, current_user)
