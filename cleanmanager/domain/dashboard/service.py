"""Dashboard service - headline numbers for a reporting period"""

import logging
from datetime import datetime, timedelta
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import User
from ...shared.totals import round_money
from ...shared.validators import normalize_datetime, start_of_today
from .repository import OPEN_JOB_STATUSES, DashboardRepository

logger = logging.getLogger(__name__)


def _add_months(value: datetime, months: int) -> datetime:
    index = value.month - 1 + months
    return value.replace(year=value.year + index // 12, month=index % 12 + 1, day=1)


def period_bounds(
    period: str,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    today: Optional[datetime] = None,
) -> tuple[datetime, datetime, datetime, datetime]:
    """Return (start, end, previous_start, previous_end); ends are exclusive"""
    today = today or start_of_today()
    if period == "today":
        start, end = today, today + timedelta(days=1)
        return start, end, start - timedelta(days=1), start
    if period == "week":
        start = today - timedelta(days=today.weekday())
        end = start + timedelta(days=7)
        return start, end, start - timedelta(days=7), start
    if period in ("month", "quarter", "year"):
        months = {"month": 1, "quarter": 3, "year": 12}[period]
        first = today.replace(day=1)
        if period == "quarter":
            first = first.replace(month=(today.month - 1) // 3 * 3 + 1)
        elif period == "year":
            first = first.replace(month=1)
        return first, _add_months(first, months), _add_months(first, -months), first
    if period == "custom":
        start = normalize_datetime(start_date)
        end = normalize_datetime(end_date)
        if not start or not end:
            raise HTTPException(status_code=400, detail="startDate and endDate are required for a custom period")
        if end <= start:
            raise HTTPException(status_code=400, detail="endDate must be after startDate")
        return start, end, start - (end - start), start
    raise HTTPException(status_code=400, detail="Invalid period")


def percent_change(current: float, previous: float) -> float:
    if not previous:
        return 100.0 if current else 0.0
    return round((current - previous) / previous * 100, 1)


class DashboardService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = DashboardRepository()

    def get_stats(
        self,
        user: User,
        period: str = "month",
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> dict:
        start, end, previous_start, previous_end = period_bounds(period, start_date, end_date)
        company_id = user.company_id

        revenue = round_money(self.repo.paid_revenue(self.db, company_id, start, end))
        previous_revenue = round_money(self.repo.paid_revenue(self.db, company_id, previous_start, previous_end))
        period_jobs = self.repo.count_jobs(self.db, company_id, start, end)
        completed_jobs = self.repo.count_jobs(self.db, company_id, start, end, ("completed",))
        previous_jobs = self.repo.count_jobs(self.db, company_id, previous_start, previous_end)
        previous_completed = self.repo.count_jobs(
            self.db, company_id, previous_start, previous_end, ("completed",)
        )
        completion_rate = round(completed_jobs / period_jobs * 100, 1) if period_jobs else 0.0
        previous_rate = round(previous_completed / previous_jobs * 100, 1) if previous_jobs else 0.0

        return {
            "period": period,
            "startDate": start,
            "endDate": end,
            "revenue": revenue,
            "previousRevenue": previous_revenue,
            "revenueChange": percent_change(revenue, previous_revenue),
            "outstandingAmount": round_money(self.repo.outstanding_amount(self.db, company_id)),
            "periodJobs": period_jobs,
            "activeJobs": self.repo.count_jobs(self.db, company_id, start, end, OPEN_JOB_STATUSES),
            "scheduledJobs": self.repo.count_jobs(self.db, company_id, start, end, ("scheduled",)),
            "completedJobs": completed_jobs,
            "cancelledJobs": self.repo.count_jobs(self.db, company_id, start, end, ("cancelled",)),
            "overdueJobs": self.repo.count_overdue_jobs(self.db, company_id, datetime.utcnow()),
            "completionRate": completion_rate,
            "completionRateChange": round(completion_rate - previous_rate, 1),
            "averageRating": self.repo.average_rating(self.db, company_id, start, end),
            "activeEmployees": self.repo.count_active_employees(self.db, company_id),
        }
