"""Dashboard repository - aggregate queries over jobs, invoices and staff"""

from datetime import datetime
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from ...models import Employee, Invoice, Job

OPEN_JOB_STATUSES = ("scheduled", "in_progress")


class DashboardRepository:
    @staticmethod
    def paid_revenue(db: Session, company_id: int, start: datetime, end: datetime) -> float:
        total = (
            db.query(func.sum(Invoice.total))
            .filter(
                Invoice.company_id == company_id,
                Invoice.status == "paid",
                Invoice.paid_at >= start,
                Invoice.paid_at < end,
            )
            .scalar()
            or 0
        )
        return float(total)

    @staticmethod
    def outstanding_amount(db: Session, company_id: int) -> float:
        total = (
            db.query(func.sum(Invoice.amount_due))
            .filter(Invoice.company_id == company_id, Invoice.status.in_(("sent", "overdue")))
            .scalar()
            or 0
        )
        return float(total)

    @staticmethod
    def count_jobs(
        db: Session,
        company_id: int,
        start: datetime,
        end: datetime,
        statuses: Optional[tuple[str, ...]] = None,
    ) -> int:
        query = db.query(func.count(Job.id)).filter(
            Job.company_id == company_id,
            Job.scheduled_for >= start,
            Job.scheduled_for < end,
        )
        if statuses:
            query = query.filter(Job.status.in_(statuses))
        return query.scalar() or 0

    @staticmethod
    def count_overdue_jobs(db: Session, company_id: int, now: datetime) -> int:
        """Open jobs whose scheduled slot has already ended"""
        return (
            db.query(func.count(Job.id))
            .filter(
                Job.company_id == company_id,
                Job.status.in_(OPEN_JOB_STATUSES),
                func.coalesce(Job.scheduled_end, Job.scheduled_for) < now,
            )
            .scalar()
            or 0
        )

    @staticmethod
    def average_rating(db: Session, company_id: int, start: datetime, end: datetime) -> Optional[float]:
        value = (
            db.query(func.avg(Job.quality_rating))
            .filter(
                Job.company_id == company_id,
                Job.quality_rating.isnot(None),
                Job.completed_at >= start,
                Job.completed_at < end,
            )
            .scalar()
        )
        return round(float(value), 1) if value is not None else None

    @staticmethod
    def count_active_employees(db: Session, company_id: int) -> int:
        return (
            db.query(func.count(Employee.id))
            .filter(Employee.company_id == company_id, Employee.status == "active")
            .scalar()
            or 0
        )
