"""Shift service - staff rota management"""

import logging

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import Shift, User
from ...shared.validators import normalize_datetime
from .repository import ShiftRepository
from .schemas import ShiftCreate, ShiftUpdate

logger = logging.getLogger(__name__)

SHIFT_STATUSES = {"scheduled", "in_progress", "completed", "missed"}


class ShiftService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = ShiftRepository()

    def get_shifts(self, user: User, employee_id=None, start_date=None, end_date=None) -> list[Shift]:
        return self.repo.get_shifts(
            self.db,
            user.company_id,
            employee_id,
            normalize_datetime(start_date),
            normalize_datetime(end_date),
        )

    def get_shift(self, shift_id: int, user: User) -> Shift:
        shift = self.repo.get_shift_by_id(self.db, shift_id, user.company_id)
        if not shift:
            raise HTTPException(status_code=404, detail="Shift not found")
        return shift

    def _require_employee(self, employee_id: int, user: User) -> None:
        if not self.repo.get_employee(self.db, employee_id, user.company_id):
            raise HTTPException(status_code=404, detail="Employee not found")

    def create_shift(self, data: ShiftCreate, user: User) -> Shift:
        if not data.employeeId or not data.startTime or not data.endTime:
            raise HTTPException(status_code=400, detail="Employee, start time, and end time are required")
        self._require_employee(data.employeeId, user)

        start_time = normalize_datetime(data.startTime)
        end_time = normalize_datetime(data.endTime)
        if end_time <= start_time:
            raise HTTPException(status_code=400, detail="End time must be after start time")

        shift = Shift(
            company_id=user.company_id,
            employee_id=data.employeeId,
            title=data.title,
            shift_type=data.shiftType,
            start_time=start_time,
            end_time=end_time,
            break_minutes=data.breakMinutes,
            notes=data.notes,
            status="scheduled",
        )
        self.db.add(shift)
        self.db.commit()
        logger.info(f"📅 Shift {shift.id} created for employee {data.employeeId}")
        return self.get_shift(shift.id, user)

    def update_shift(self, shift_id: int, data: ShiftUpdate, user: User) -> Shift:
        shift = self.get_shift(shift_id, user)

        if data.employeeId is not None and data.employeeId != shift.employee_id:
            self._require_employee(data.employeeId, user)
            shift.employee_id = data.employeeId
        if data.status is not None:
            if data.status not in SHIFT_STATUSES:
                raise HTTPException(status_code=400, detail="Invalid shift status")
            shift.status = data.status

        for field, column in (
            ("title", "title"),
            ("shiftType", "shift_type"),
            ("breakMinutes", "break_minutes"),
            ("notes", "notes"),
        ):
            value = getattr(data, field)
            if value is not None:
                setattr(shift, column, value)
        for field, column in (
            ("startTime", "start_time"),
            ("endTime", "end_time"),
            ("actualStartTime", "actual_start_time"),
            ("actualEndTime", "actual_end_time"),
        ):
            value = getattr(data, field)
            if value is not None:
                setattr(shift, column, normalize_datetime(value))

        if shift.end_time <= shift.start_time:
            raise HTTPException(status_code=400, detail="End time must be after start time")

        self.db.commit()
        return self.get_shift(shift.id, user)

    def delete_shift(self, shift_id: int, user: User) -> dict:
        shift = self.get_shift(shift_id, user)
        self.db.delete(shift)
        self.db.commit()
        return {"success": True, "message": "Shift deleted"}
