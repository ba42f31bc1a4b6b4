"""Job repository - Database operations for jobs and work sessions"""

from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload

from ...models import Attachment, Customer, Employee, Invoice, Job, Message, Quote, WorkSession
from ...shared.validators import start_of_today

ACTIVE_JOB_STATUSES = ("scheduled", "in_progress")


class JobRepository:
    @staticmethod
    def get_jobs(
        db: Session,
        company_id: int,
        search: Optional[str] = None,
        status: Optional[str] = None,
        customer_id: Optional[int] = None,
        assigned_to: Optional[int] = None,
        date_filter: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        limit: Optional[int] = None,
        sort: Optional[str] = None,
    ) -> list[Job]:
        query = (
            db.query(Job)
            .options(joinedload(Job.customer), joinedload(Job.assignee))
            .filter(Job.company_id == company_id)
        )

        if search:
            pattern = f"%{search}%"
            query = query.filter(
                or_(
                    Job.title.ilike(pattern),
                    Job.description.ilike(pattern),
                    Job.location.ilike(pattern),
                )
            )
        if status:
            query = query.filter(Job.status == status)
        if customer_id:
            query = query.filter(Job.customer_id == customer_id)
        if assigned_to:
            query = query.filter(Job.assigned_to == assigned_to)

        if date_filter == "today":
            today = start_of_today()
            query = query.filter(Job.scheduled_for >= today, Job.scheduled_for < today + timedelta(days=1))
        elif date_filter == "upcoming":
            query = query.filter(
                Job.scheduled_for >= datetime.utcnow(), Job.status.in_(ACTIVE_JOB_STATUSES)
            )
        else:
            if start_date:
                query = query.filter(Job.scheduled_for >= start_date)
            if end_date:
                query = query.filter(Job.scheduled_for <= end_date)

        if sort == "updatedAt":
            query = query.order_by(Job.updated_at.desc(), Job.id.desc())
        else:
            query = query.order_by(Job.scheduled_for.desc(), Job.id.desc())

        if limit:
            query = query.limit(limit)
        return query.all()

    @staticmethod
    def get_job_by_id(db: Session, job_id: int, company_id: int) -> Optional[Job]:
        return (
            db.query(Job)
            .options(joinedload(Job.customer), joinedload(Job.assignee))
            .filter(Job.id == job_id, Job.company_id == company_id)
            .first()
        )

    @staticmethod
    def get_completed_jobs(db: Session, company_id: int, employee_id: Optional[int] = None) -> list[Job]:
        query = (
            db.query(Job)
            .options(joinedload(Job.customer), joinedload(Job.assignee))
            .filter(Job.company_id == company_id, Job.status == "completed")
        )
        if employee_id:
            query = query.filter(Job.assigned_to == employee_id)
        return query.order_by(Job.completed_at.desc(), Job.id.desc()).all()

    @staticmethod
    def get_customer(db: Session, customer_id: int, company_id: int) -> Optional[Customer]:
        return (
            db.query(Customer)
            .filter(Customer.id == customer_id, Customer.company_id == company_id)
            .first()
        )

    @staticmethod
    def get_employee(db: Session, employee_id: int, company_id: int) -> Optional[Employee]:
        return (
            db.query(Employee)
            .filter(Employee.id == employee_id, Employee.company_id == company_id)
            .first()
        )

    @staticmethod
    def get_open_work_session(db: Session, job_id: int) -> Optional[WorkSession]:
        return (
            db.query(WorkSession)
            .filter(WorkSession.job_id == job_id, WorkSession.ended_at.is_(None))
            .order_by(WorkSession.started_at.desc())
            .first()
        )

    @staticmethod
    def get_future_occurrences(db: Session, job: Job) -> list[Job]:
        """Scheduled children of a recurring job that have not happened yet"""
        return (
            db.query(Job)
            .filter(
                Job.parent_job_id == job.id,
                Job.company_id == job.company_id,
                Job.status == "scheduled",
                Job.scheduled_for >= datetime.utcnow(),
            )
            .all()
        )

    @staticmethod
    def delete_job(db: Session, job: Job) -> None:
        """Delete a job; events and work sessions cascade, linked rows are detached"""
        for model in (Invoice, Message, Attachment):
            db.query(model).filter(model.job_id == job.id).update(
                {model.job_id: None}, synchronize_session=False
            )
        db.query(Quote).filter(Quote.converted_job_id == job.id).update(
            {Quote.converted_job_id: None}, synchronize_session=False
        )
        db.query(Job).filter(Job.parent_job_id == job.id).update(
            {Job.parent_job_id: None}, synchronize_session=False
        )
        db.delete(job)
        db.commit()
