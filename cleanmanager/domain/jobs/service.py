"""Job service - scheduling, assignment and the job lifecycle"""

import logging
from datetime import datetime, timedelta
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import Invoice, Job, JobEvent, User, WorkSession
from ...security_utils import generate_secure_token
from ...shared.validators import normalize_datetime
from ..event_log.repository import EventLogRepository
from ..invoices.schemas import GenerateInvoiceRequest
from ..invoices.service import InvoiceService
from .repository import JobRepository
from .schemas import (
    AssignJobRequest,
    CancelJobRequest,
    CompleteJobRequest,
    DuplicateJobRequest,
    JobCreate,
    JobUpdate,
    RescheduleJobRequest,
)

logger = logging.getLogger(__name__)

JOB_STATUSES = {"scheduled", "in_progress", "completed", "cancelled"}
RECURRENCES = {"none", "weekly", "biweekly", "monthly"}
PRIORITIES = {"low", "normal", "high", "urgent"}


class JobService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = JobRepository()
        self.events = EventLogRepository()

    def get_jobs(self, user: User, **filters) -> list[Job]:
        return self.repo.get_jobs(self.db, user.company_id, **filters)

    def get_job(self, job_id: int, user: User) -> Job:
        job = self.repo.get_job_by_id(self.db, job_id, user.company_id)
        if not job:
            raise HTTPException(status_code=404, detail="Job not found")
        return job

    def get_completed_jobs(self, user: User, employee_id: Optional[int] = None) -> list[Job]:
        return self.repo.get_completed_jobs(self.db, user.company_id, employee_id)

    def _check_choices(self, status=None, recurrence=None, priority=None) -> None:
        if status is not None and status not in JOB_STATUSES:
            raise HTTPException(status_code=400, detail="Invalid job status")
        if recurrence is not None and recurrence not in RECURRENCES:
            raise HTTPException(status_code=400, detail="Invalid recurrence")
        if priority is not None and priority not in PRIORITIES:
            raise HTTPException(status_code=400, detail="Invalid priority")

    def _require_customer(self, customer_id: int, user: User):
        customer = self.repo.get_customer(self.db, customer_id, user.company_id)
        if not customer:
            raise HTTPException(status_code=404, detail="Customer not found")
        return customer

    def _require_employee(self, employee_id: int, user: User):
        employee = self.repo.get_employee(self.db, employee_id, user.company_id)
        if not employee:
            raise HTTPException(status_code=404, detail="Employee not found")
        return employee

    def create_job(self, data: JobCreate, user: User) -> Job:
        if not data.title or not data.title.strip() or not data.customerId or not data.location:
            raise HTTPException(status_code=400, detail="Title, customer, and location are required")
        self._check_choices(recurrence=data.recurrence, priority=data.priority)

        scheduled_for = normalize_datetime(data.scheduledFor)
        if scheduled_for and not data.allowPast and scheduled_for < datetime.utcnow():
            raise HTTPException(status_code=400, detail="Scheduled time cannot be in the past")

        self._require_customer(data.customerId, user)
        if data.assignedTo:
            self._require_employee(data.assignedTo, user)

        duration = data.durationMinutes or 60
        scheduled_end = normalize_datetime(data.scheduledEnd)
        if scheduled_for and not scheduled_end:
            scheduled_end = scheduled_for + timedelta(minutes=duration)
        if scheduled_for and scheduled_end and scheduled_end <= scheduled_for:
            raise HTTPException(status_code=400, detail="End time must be after start time")

        job = Job(
            company_id=user.company_id,
            title=data.title.strip(),
            description=data.description,
            job_type=data.jobType,
            customer_id=data.customerId,
            assigned_to=data.assignedTo,
            location=data.location,
            city=data.city,
            postcode=data.postcode,
            scheduled_for=scheduled_for,
            scheduled_end=scheduled_end,
            duration_minutes=duration,
            recurrence=data.recurrence or "none",
            recurrence_end_date=normalize_datetime(data.recurrenceEndDate),
            status="scheduled",
            priority=data.priority or "normal",
            estimated_price=data.estimatedPrice,
            currency=data.currency or "GBP",
            internal_notes=data.internalNotes,
        )
        self.db.add(job)
        self.db.flush()
        self.events.record(
            self.db,
            job.id,
            "job_created",
            f'Job "{job.title}" created',
            actor_id=user.id,
            meta={"assignedTo": job.assigned_to},
        )
        self.db.commit()
        logger.info(f"✅ Job {job.id} created for company {user.company_id}")
        return self.get_job(job.id, user)

    def update_job(self, job_id: int, data: JobUpdate, user: User) -> Job:
        job = self.get_job(job_id, user)
        self._check_choices(data.status, data.recurrence, data.priority)

        if data.title is not None and not data.title.strip():
            raise HTTPException(status_code=400, detail="Title cannot be empty")
        if data.customerId is not None and data.customerId != job.customer_id:
            self._require_customer(data.customerId, user)
        if data.assignedTo is not None and data.assignedTo != job.assigned_to:
            self._require_employee(data.assignedTo, user)
            job.employee_accepted = False
            job.employee_accepted_at = None

        fields = {
            "title": "title",
            "description": "description",
            "jobType": "job_type",
            "customerId": "customer_id",
            "assignedTo": "assigned_to",
            "location": "location",
            "city": "city",
            "postcode": "postcode",
            "recurrence": "recurrence",
            "priority": "priority",
            "estimatedPrice": "estimated_price",
            "actualPrice": "actual_price",
            "currency": "currency",
            "internalNotes": "internal_notes",
            "qualityRating": "quality_rating",
        }
        updates = data.model_dump(exclude_unset=True)
        changed = []
        for field, column in fields.items():
            if field in updates and updates[field] is not None:
                setattr(job, column, updates[field].strip() if field == "title" else updates[field])
                changed.append(field)

        if data.durationMinutes is not None:
            job.duration_minutes = data.durationMinutes
            changed.append("durationMinutes")
        if data.recurrenceEndDate is not None:
            job.recurrence_end_date = normalize_datetime(data.recurrenceEndDate)
            changed.append("recurrenceEndDate")
        if data.scheduledFor is not None:
            job.scheduled_for = normalize_datetime(data.scheduledFor)
            changed.append("scheduledFor")
        if data.scheduledEnd is not None:
            job.scheduled_end = normalize_datetime(data.scheduledEnd)
            changed.append("scheduledEnd")
        elif "scheduledFor" in changed or "durationMinutes" in changed:
            if job.scheduled_for:
                job.scheduled_end = job.scheduled_for + timedelta(minutes=job.duration_minutes or 60)

        if job.scheduled_for and job.scheduled_end and job.scheduled_end <= job.scheduled_for:
            raise HTTPException(status_code=400, detail="End time must be after start time")

        previous_status = job.status
        if data.status is not None and data.status != previous_status:
            job.status = data.status
            changed.append("status")
            if data.status == "completed":
                job.completed_at = normalize_datetime(data.completedAt) or job.completed_at or datetime.utcnow()
            elif previous_status == "completed":
                job.completed_at = None
        elif data.completedAt is not None:
            job.completed_at = normalize_datetime(data.completedAt)
            changed.append("completedAt")

        if changed:
            self.events.record(
                self.db,
                job.id,
                "job_updated",
                f'Job "{job.title}" updated',
                actor_id=user.id,
                meta={"fields": changed, "previousStatus": previous_status},
            )
        self.db.commit()
        return self.get_job(job.id, user)

    def delete_job(self, job_id: int, user: User) -> dict:
        job = self.get_job(job_id, user)
        self.repo.delete_job(self.db, job)
        logger.info(f"🗑️ Job {job_id} deleted by user {user.id}")
        return {"success": True, "message": "Job deleted"}

    def assign_job(self, job_id: int, data: AssignJobRequest, user: User) -> Job:
        if not data.employeeId:
            raise HTTPException(status_code=400, detail="Employee ID is required")
        job = self.get_job(job_id, user)
        if job.status == "completed":
            raise HTTPException(status_code=400, detail="Cannot reassign a completed job")
        employee = self._require_employee(data.employeeId, user)

        previous = job.assigned_to
        job.assigned_to = employee.id
        job.status = "scheduled"
        job.employee_accepted = False
        job.employee_accepted_at = None
        self.events.record(
            self.db,
            job.id,
            "job_assigned",
            f"Job assigned to {employee.first_name} {employee.last_name}",
            actor_id=user.id,
            meta={"employeeId": employee.id, "previousEmployeeId": previous},
        )
        self.db.commit()
        return self.get_job(job.id, user)

    def _ensure_open(self, job: Job, action: str) -> None:
        if job.status == "completed":
            raise HTTPException(status_code=400, detail=f"Cannot {action} a completed job")
        if job.status == "cancelled":
            raise HTTPException(status_code=400, detail=f"Cannot {action} a cancelled job")

    def start_job(self, job_id: int, user: User) -> Job:
        job = self.get_job(job_id, user)
        self._ensure_open(job, "start")

        now = datetime.utcnow()
        job.status = "in_progress"
        if not self.repo.get_open_work_session(self.db, job.id):
            self.db.add(
                WorkSession(
                    company_id=job.company_id,
                    job_id=job.id,
                    employee_id=job.assigned_to,
                    started_at=now,
                )
            )
        self.events.record(self.db, job.id, "job_started", f'Job "{job.title}" started', actor_id=user.id)
        self.db.commit()
        return self.get_job(job.id, user)

    def complete_job(self, job_id: int, data: CompleteJobRequest, user: User) -> Job:
        job = self.get_job(job_id, user)
        self._ensure_open(job, "complete")

        now = datetime.utcnow()
        job.status = "completed"
        job.completed_at = now
        job.actual_price = data.actualPrice if data.actualPrice is not None else job.estimated_price
        job.feedback_token = generate_secure_token()
        if data.qualityRating is not None:
            job.quality_rating = data.qualityRating
        if data.notes:
            job.internal_notes = "\n\n".join(filter(None, [job.internal_notes, f"Completion notes: {data.notes}"]))

        session = self.repo.get_open_work_session(self.db, job.id)
        if session:
            session.ended_at = now
            session.duration_minutes = max(0, int((now - session.started_at).total_seconds() // 60))

        self.events.record(
            self.db,
            job.id,
            "job_completed",
            f'Job "{job.title}" completed',
            actor_id=user.id,
            meta={"actualPrice": job.actual_price},
        )
        self.db.commit()
        logger.info(f"✅ Job {job.id} completed")
        return self.get_job(job.id, user)

    def cancel_job(self, job_id: int, data: CancelJobRequest, user: User) -> tuple[Job, int]:
        """Cancel a job and its future scheduled occurrences; returns (job, occurrences cancelled)"""
        reason = (data.reason or "").strip()
        if not reason:
            raise HTTPException(status_code=400, detail="Cancellation reason is required")
        job = self.get_job(job_id, user)
        if job.status == "completed":
            raise HTTPException(status_code=400, detail="Cannot cancel a completed job")
        if job.status == "cancelled":
            raise HTTPException(status_code=400, detail="Job is already cancelled")

        now = datetime.utcnow()
        job.status = "cancelled"
        job.cancellation_reason = reason
        job.internal_notes = "\n\n".join(
            filter(None, [job.internal_notes, f"Cancellation reason ({now.isoformat()}): {reason}"])
        )

        occurrences = self.repo.get_future_occurrences(self.db, job)
        for occurrence in occurrences:
            occurrence.status = "cancelled"
            occurrence.cancellation_reason = reason

        self.events.record(
            self.db,
            job.id,
            "job_cancelled",
            f'Job "{job.title}" cancelled: {reason}',
            actor_id=user.id,
            meta={"reason": reason, "cancelledOccurrences": len(occurrences)},
        )
        self.db.commit()
        return self.get_job(job.id, user), len(occurrences)

    def reschedule_job(
        self, job_id: int, data: RescheduleJobRequest, user: User
    ) -> tuple[Job, Optional[datetime]]:
        """Move a job to a new slot; returns (job, the previous start time)"""
        if not data.newDate:
            raise HTTPException(status_code=400, detail="New date is required")
        job = self.get_job(job_id, user)
        self._ensure_open(job, "reschedule")

        new_start = normalize_datetime(data.newDate)
        new_end = normalize_datetime(data.newEndDate)
        if not new_end:
            new_end = new_start + timedelta(minutes=job.duration_minutes or 60)
        if new_end <= new_start:
            raise HTTPException(status_code=400, detail="End time must be after start time")

        if data.assignedTo and data.assignedTo != job.assigned_to:
            employee = self.repo.get_employee(self.db, data.assignedTo, user.company_id)
            if not employee:
                raise HTTPException(status_code=404, detail="Assigned employee not found")
            job.assigned_to = employee.id
            job.employee_accepted = False
            job.employee_accepted_at = None

        original_date = job.scheduled_for
        job.scheduled_for = new_start
        job.scheduled_end = new_end
        job.status = "scheduled"

        reason = (data.reason or "").strip() or None
        if reason:
            job.internal_notes = "\n\n".join(filter(None, [job.internal_notes, f"Rescheduled: {reason}"]))

        self.events.record(
            self.db,
            job.id,
            "job_rescheduled",
            f'Job "{job.title}" rescheduled',
            actor_id=user.id,
            meta={
                "originalDate": original_date.isoformat() if original_date else None,
                "newDate": new_start.isoformat(),
                "reason": reason,
                "assignedTo": job.assigned_to,
            },
        )
        self.db.commit()
        logger.info(f"📅 Job {job.id} rescheduled to {new_start.isoformat()}")
        return self.get_job(job.id, user), original_date

    def duplicate_job(self, job_id: int, data: DuplicateJobRequest, user: User) -> Job:
        source = self.get_job(job_id, user)
        customer_id = data.customerId or source.customer_id
        if data.customerId:
            self._require_customer(data.customerId, user)
        if data.assignedTo:
            self._require_employee(data.assignedTo, user)

        scheduled_for = normalize_datetime(data.scheduledFor) or source.scheduled_for
        scheduled_end = normalize_datetime(data.scheduledEnd)
        if scheduled_for and not scheduled_end:
            scheduled_end = scheduled_for + timedelta(minutes=source.duration_minutes or 60)
        if scheduled_for and scheduled_end and scheduled_end <= scheduled_for:
            raise HTTPException(status_code=400, detail="End time must be after start time")

        job = Job(
            company_id=user.company_id,
            title=f"{source.title} (Copy)",
            description=source.description,
            job_type=source.job_type,
            customer_id=customer_id,
            assigned_to=data.assignedTo or source.assigned_to,
            location=source.location,
            city=source.city,
            postcode=source.postcode,
            scheduled_for=scheduled_for,
            scheduled_end=scheduled_end,
            duration_minutes=source.duration_minutes,
            recurrence="none",
            status="scheduled",
            priority=source.priority,
            estimated_price=source.estimated_price,
            currency=source.currency,
            internal_notes=source.internal_notes if data.copyNotes else None,
        )
        self.db.add(job)
        self.db.flush()
        self.events.record(
            self.db,
            job.id,
            "job_duplicated",
            f'Job duplicated from "{source.title}"',
            actor_id=user.id,
            meta={"sourceJobId": source.id},
        )
        self.db.commit()
        logger.info(f"✅ Job {source.id} duplicated as {job.id}")
        return self.get_job(job.id, user)

    def request_feedback(self, job_id: int, user: User) -> Job:
        job = self.get_job(job_id, user)
        if job.status != "completed":
            raise HTTPException(status_code=400, detail="Can only request feedback for completed jobs")
        if not job.customer or not job.customer.email:
            raise HTTPException(status_code=400, detail="Customer email not found")

        if not job.feedback_token:
            job.feedback_token = generate_secure_token()
        self.events.record(
            self.db,
            job.id,
            "feedback_requested",
            f"Feedback requested from {job.customer.name}",
            actor_id=user.id,
        )
        self.db.commit()
        return self.get_job(job.id, user)

    def generate_invoice(self, job_id: int, data: Optional[GenerateInvoiceRequest], user: User) -> Invoice:
        job = self.get_job(job_id, user)
        invoice = InvoiceService(self.db).generate_from_job(job, user, data)
        self.events.record(
            self.db,
            job.id,
            "invoice_generated",
            f"Invoice {invoice.invoice_number} generated",
            actor_id=user.id,
            meta={"invoiceId": invoice.id},
        )
        self.db.commit()
        return invoice

    def get_timeline(self, job_id: int, user: User) -> list[JobEvent]:
        job = self.get_job(job_id, user)
        return self.events.get_job_timeline(self.db, job.id)
