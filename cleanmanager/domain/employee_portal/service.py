"""Employee self-service - an employee's own jobs"""

import logging
from datetime import datetime, timedelta
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session, joinedload

from ...models import Employee, Job
from ...shared.validators import start_of_today
from ..event_log.repository import EventLogRepository

logger = logging.getLogger(__name__)


class EmployeeJobService:
    def __init__(self, db: Session):
        self.db = db

    def _own_jobs(self, employee: Employee):
        return (
            self.db.query(Job)
            .options(joinedload(Job.customer))
            .filter(Job.company_id == employee.company_id, Job.assigned_to == employee.id)
        )

    def get_jobs(
        self, employee: Employee, status: Optional[str] = None, date_filter: Optional[str] = None
    ) -> list[Job]:
        query = self._own_jobs(employee)
        if status:
            query = query.filter(Job.status == status)
        if date_filter == "today":
            today = start_of_today()
            query = query.filter(Job.scheduled_for >= today, Job.scheduled_for < today + timedelta(days=1))
        elif date_filter == "week":
            today = start_of_today()
            week_start = today - timedelta(days=today.weekday())
            query = query.filter(
                Job.scheduled_for >= week_start, Job.scheduled_for < week_start + timedelta(days=7)
            )
        return query.order_by(Job.scheduled_for.asc(), Job.id.asc()).all()

    def get_job(self, job_id: int, employee: Employee) -> Job:
        job = self._own_jobs(employee).filter(Job.id == job_id).first()
        if not job:
            raise HTTPException(status_code=404, detail="Job not found or not assigned to you")
        return job

    def accept_job(self, job_id: int, employee: Employee) -> Job:
        job = self.get_job(job_id, employee)
        if job.employee_accepted:
            raise HTTPException(status_code=400, detail="You have already accepted this job")
        if job.status in ("completed", "cancelled"):
            raise HTTPException(status_code=400, detail=f"Cannot accept a {job.status} job")

        job.employee_accepted = True
        job.employee_accepted_at = datetime.utcnow()
        EventLogRepository.record(
            self.db,
            job.id,
            "job_accepted",
            f"{employee.first_name} {employee.last_name} accepted the job",
            meta={"employeeId": employee.id},
        )
        self.db.commit()
        logger.info(f"👍 Employee {employee.id} accepted job {job.id}")
        return self.get_job(job.id, employee)
