"""Shift repository"""

from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session, joinedload

from ...models import Employee, Shift


class ShiftRepository:
    @staticmethod
    def get_shifts(
        db: Session,
        company_id: int,
        employee_id: Optional[int] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> list[Shift]:
        query = (
            db.query(Shift)
            .options(joinedload(Shift.employee))
            .filter(Shift.company_id == company_id)
        )
        if employee_id:
            query = query.filter(Shift.employee_id == employee_id)
        if start_date:
            query = query.filter(Shift.start_time >= start_date)
        if end_date:
            query = query.filter(Shift.end_time <= end_date)
        return query.order_by(Shift.start_time.desc()).all()

    @staticmethod
    def get_shift_by_id(db: Session, shift_id: int, company_id: int) -> Optional[Shift]:
        return (
            db.query(Shift)
            .options(joinedload(Shift.employee))
            .filter(Shift.id == shift_id, Shift.company_id == company_id)
            .first()
        )

    @staticmethod
    def get_employee(db: Session, employee_id: int, company_id: int) -> Optional[Employee]:
        return (
            db.query(Employee)
            .filter(Employee.id == employee_id, Employee.company_id == company_id)
            .first()
        )
