"""Shift router"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import User
from .schemas import ShiftCreate, ShiftResponse, ShiftUpdate, to_shift_response
from .service import ShiftService

router = APIRouter(prefix="/shifts", tags=["Shifts"])


def get_shift_service(db: Session = Depends(get_db)) -> ShiftService:
    return ShiftService(db)


@router.get("", response_model=list[ShiftResponse])
async def get_shifts(
    employeeId: Optional[int] = Query(None),
    startDate: Optional[datetime] = Query(None),
    endDate: Optional[datetime] = Query(None),
    current_user: User = Depends(get_current_user),
    service: ShiftService = Depends(get_shift_service),
):
    return [to_shift_response(s) for s in service.get_shifts(current_user, employeeId, startDate, endDate)]


@router.post("", response_model=ShiftResponse, status_code=201)
async def create_shift(
    data: ShiftCreate,
    current_user: User = Depends(get_current_user),
    service: ShiftService = Depends(get_shift_service),
):
    return to_shift_response(service.create_shift(data, current_user))


@router.get("/{shift_id}", response_model=ShiftResponse)
async def get_shift(
    shift_id: int,
    current_user: User = Depends(get_current_user),
    service: ShiftService = Depends(get_shift_service),
):
    return to_shift_response(service.get_shift(shift_id, current_user))


@router.patch("/{shift_id}", response_model=ShiftResponse)
async def update_shift(
    shift_id: int,
    data: ShiftUpdate,
    current_user: User = Depends(get_current_user),
    service: ShiftService = Depends(get_shift_service),
):
    return to_shift_response(service.update_shift(shift_id, data, current_user))


@router.delete("/{shift_id}")
async def delete_shift(
    shift_id: int,
    current_user: User = Depends(get_current_user),
    service: ShiftService = Depends(get_shift_service),
):
    return service.delete_shift(shift_id, current_user)
