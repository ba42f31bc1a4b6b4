"""Shift domain schemas"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from ...models import Shift


class ShiftCreate(BaseModel):
    employeeId: Optional[int] = None
    title: Optional[str] = None
    shiftType: Optional[str] = None
    startTime: Optional[datetime] = None
    endTime: Optional[datetime] = None
    breakMinutes: int = Field(0, ge=0)
    notes: Optional[str] = None


class ShiftUpdate(BaseModel):
    employeeId: Optional[int] = None
    title: Optional[str] = None
    shiftType: Optional[str] = None
    startTime: Optional[datetime] = None
    endTime: Optional[datetime] = None
    breakMinutes: Optional[int] = Field(None, ge=0)
    status: Optional[str] = None
    actualStartTime: Optional[datetime] = None
    actualEndTime: Optional[datetime] = None
    notes: Optional[str] = None


class ShiftResponse(BaseModel):
    id: int
    employeeId: int
    employeeName: Optional[str] = None
    title: Optional[str] = None
    shiftType: Optional[str] = None
    startTime: datetime
    endTime: datetime
    breakMinutes: int = 0
    status: str
    actualStartTime: Optional[datetime] = None
    actualEndTime: Optional[datetime] = None
    notes: Optional[str] = None
    createdAt: Optional[datetime] = None


def to_shift_response(shift: Shift) -> ShiftResponse:
    employee = shift.employee
    return ShiftResponse(
        id=shift.id,
        employeeId=shift.employee_id,
        employeeName=f"{employee.first_name} {employee.last_name}" if employee else None,
        title=shift.title,
        shiftType=shift.shift_type,
        startTime=shift.start_time,
        endTime=shift.end_time,
        breakMinutes=shift.break_minutes or 0,
        status=shift.status,
        actualStartTime=shift.actual_start_time,
        actualEndTime=shift.actual_end_time,
        notes=shift.notes,
        createdAt=shift.created_at,
    )
