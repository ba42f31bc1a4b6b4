"""Job router - FastAPI endpoints for scheduling and the job lifecycle"""

import logging
from datetime import datetime
from typing import Literal, Optional

from fastapi import APIRouter, Body, Depends, Query
from sqlalchemy.orm import Session

from ... import email_service
from ...auth import get_current_user
from ...database import get_db
from ...models import Job, User
from ...shared.validators import normalize_datetime
from ..company.notifications import is_notification_enabled
from ..event_log.schemas import JobEventResponse, to_event_response
from ..invoices.schemas import GenerateInvoiceRequest, InvoiceResponse, to_invoice_response
from .schemas import (
    AssignJobRequest,
    CancelJobRequest,
    CompleteJobRequest,
    DuplicateJobRequest,
    JobCreate,
    JobResponse,
    JobUpdate,
    RescheduleJobRequest,
    to_job_response,
)
from .service import JobService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/jobs", tags=["Jobs"])


def get_job_service(db: Session = Depends(get_db)) -> JobService:
    return JobService(db)


def _company_name(user: User) -> str:
    return user.company.name if user.company else "Your cleaning company"


async def notify_assignee(job: Job, user: User) -> bool:
    employee = job.assignee
    if not employee or not employee.email:
        return False
    return await email_service.send_best_effort(
        email_service.send_job_assigned_email(
            employee.email, f"{employee.first_name} {employee.last_name}", _company_name(user), job
        ),
        f"assignment email for job {job.id}",
    )


@router.get("", response_model=list[JobResponse])
async def get_jobs(
    search: Optional[str] = Query(None),
    status: Optional[str] = Query(None),
    customerId: Optional[int] = Query(None),
    assignedTo: Optional[int] = Query(None),
    filter: Optional[Literal["today", "upcoming"]] = Query(None),
    startDate: Optional[datetime] = Query(None),
    endDate: Optional[datetime] = Query(None),
    limit: Optional[int] = Query(None, ge=1, le=500),
    sort: Optional[Literal["updatedAt", "scheduledFor"]] = Query(None),
    current_user: User = Depends(get_current_user),
    service: JobService = Depends(get_job_service),
):
    jobs = service.get_jobs(
        current_user,
        search=search,
        status=status,
        customer_id=customerId,
        assigned_to=assignedTo,
        date_filter=filter,
        start_date=normalize_datetime(startDate),
        end_date=normalize_datetime(endDate),
        limit=limit,
        sort=sort,
    )
    return [to_job_response(job) for job in jobs]


@router.post("", response_model=JobResponse, status_code=201)
async def create_job(
    data: JobCreate,
    current_user: User = Depends(get_current_user),
    service: JobService = Depends(get_job_service),
):
    job = service.create_job(data, current_user)
    if job.assigned_to:
        await notify_assignee(job, current_user)
    return to_job_response(job)


@router.get("/completed", response_model=list[JobResponse])
async def get_completed_jobs(
    employeeId: Optional[int] = Query(None),
    current_user: User = Depends(get_current_user),
    service: JobService = Depends(get_job_service),
):
    return [to_job_response(job) for job in service.get_completed_jobs(current_user, employeeId)]


@router.get("/{job_id}", response_model=JobResponse)
async def get_job(
    job_id: int,
    current_user: User = Depends(get_current_user),
    service: JobService = Depends(get_job_service),
):
    return to_job_response(service.get_job(job_id, current_user))


@router.patch("/{job_id}", response_model=JobResponse)
async def update_job(
    job_id: int,
    data: JobUpdate,
    current_user: User = Depends(get_current_user),
    service: JobService = Depends(get_job_service),
):
    return to_job_response(service.update_job(job_id, data, current_user))


@router.delete("/{job_id}")
async def delete_job(
    job_id: int,
    current_user: User = Depends(get_current_user),
    service: JobService = Depends(get_job_service),
):
    return service.delete_job(job_id, current_user)


@router.post("/{job_id}/assign", response_model=JobResponse)
async def assign_job(
    job_id: int,
    data: AssignJobRequest,
    current_user: User = Depends(get_current_user),
    service: JobService = Depends(get_job_service),
):
    job = service.assign_job(job_id, data, current_user)
    await notify_assignee(job, current_user)
    return to_job_response(job)


@router.post("/{job_id}/start", response_model=JobResponse)
async def start_job(
    job_id: int,
    current_user: User = Depends(get_current_user),
    service: JobService = Depends(get_job_service),
):
    return to_job_response(service.start_job(job_id, current_user))


@router.post("/{job_id}/complete", response_model=JobResponse)
async def complete_job(
    job_id: int,
    data: Optional[CompleteJobRequest] = Body(None),
    current_user: User = Depends(get_current_user),
    service: JobService = Depends(get_job_service),
):
    job = service.complete_job(job_id, data or CompleteJobRequest(), current_user)
    company_name = _company_name(current_user)

    customer = job.customer
    if customer and customer.email:
        await email_service.send_best_effort(
            email_service.send_job_completed_email(customer.email, customer.name, company_name, job),
            f"completion email for job {job.id}",
        )

    company = current_user.company
    if company and company.email and is_notification_enabled(company, "jobUpdates"):
        await email_service.send_best_effort(
            email_service.send_job_update_notification(
                company.email,
                company_name,
                job.title,
                "completed",
                f"{current_user.first_name} {current_user.last_name}",
            ),
            f"company notification for job {job.id}",
        )

    return to_job_response(job)


@router.post("/{job_id}/cancel")
async def cancel_job(
    job_id: int,
    data: CancelJobRequest,
    current_user: User = Depends(get_current_user),
    service: JobService = Depends(get_job_service),
):
    job, cancelled_occurrences = service.cancel_job(job_id, data, current_user)
    company_name = _company_name(current_user)

    if data.notifyCustomer and job.customer and job.customer.email:
        await email_service.send_best_effort(
            email_service.send_job_cancelled_email(
                job.customer.email, job.customer.name, company_name, job, data.reason
            ),
            f"cancellation email to customer for job {job.id}",
        )
    if data.notifyEmployee and job.assignee and job.assignee.email:
        await email_service.send_best_effort(
            email_service.send_job_cancelled_email(
                job.assignee.email,
                f"{job.assignee.first_name} {job.assignee.last_name}",
                company_name,
                job,
                data.reason,
            ),
            f"cancellation email to employee for job {job.id}",
        )

    return {
        "success": True,
        "message": "Job cancelled successfully",
        "job": to_job_response(job),
        "cancelledRecurrences": cancelled_occurrences,
    }


@router.post("/{job_id}/reschedule")
async def reschedule_job(
    job_id: int,
    data: RescheduleJobRequest,
    current_user: User = Depends(get_current_user),
    service: JobService = Depends(get_job_service),
):
    job, original_date = service.reschedule_job(job_id, data, current_user)
    company_name = _company_name(current_user)
    reason = (data.reason or "").strip() or "No reason given"

    if data.notifyCustomer and job.customer and job.customer.email:
        await email_service.send_best_effort(
            email_service.send_job_rescheduled_email(
                job.customer.email, job.customer.name, company_name, job, original_date, reason
            ),
            f"reschedule email to customer for job {job.id}",
        )
    if data.notifyEmployee and job.assignee and job.assignee.email:
        await email_service.send_best_effort(
            email_service.send_job_rescheduled_email(
                job.assignee.email,
                f"{job.assignee.first_name} {job.assignee.last_name}",
                company_name,
                job,
                original_date,
                reason,
            ),
            f"reschedule email to employee for job {job.id}",
        )

    return {
        "success": True,
        "message": "Job rescheduled successfully",
        "job": to_job_response(job),
        "originalDate": original_date,
        "newDate": job.scheduled_for,
    }


@router.post("/{job_id}/duplicate", response_model=JobResponse, status_code=201)
async def duplicate_job(
    job_id: int,
    data: Optional[DuplicateJobRequest] = Body(None),
    current_user: User = Depends(get_current_user),
    service: JobService = Depends(get_job_service),
):
    job = service.duplicate_job(job_id, data or DuplicateJobRequest(), current_user)
    if job.assigned_to:
        await notify_assignee(job, current_user)
    return to_job_response(job)


@router.post("/{job_id}/request-feedback")
async def request_feedback(
    job_id: int,
    current_user: User = Depends(get_current_user),
    service: JobService = Depends(get_job_service),
):
    job = service.request_feedback(job_id, current_user)
    staff_name = f"{job.assignee.first_name} {job.assignee.last_name}" if job.assignee else None
    email_sent = await email_service.send_best_effort(
        email_service.send_feedback_request_email(
            job.customer.email, job.customer.name, _company_name(current_user), job, staff_name
        ),
        f"feedback request for job {job.id}",
    )
    return {
        "success": True,
        "message": f"Feedback request sent to {job.customer.email}" if email_sent else "Feedback link created",
        "emailSent": email_sent,
        "feedbackUrl": email_service.feedback_link_for(job.feedback_token),
    }


@router.post("/{job_id}/generate-invoice", response_model=InvoiceResponse, status_code=201)
async def generate_invoice(
    job_id: int,
    data: Optional[GenerateInvoiceRequest] = Body(None),
    current_user: User = Depends(get_current_user),
    service: JobService = Depends(get_job_service),
):
    return to_invoice_response(service.generate_invoice(job_id, data, current_user))


@router.get("/{job_id}/timeline", response_model=list[JobEventResponse])
async def get_job_timeline(
    job_id: int,
    current_user: User = Depends(get_current_user),
    service: JobService = Depends(get_job_service),
):
    return [to_event_response(event) for event in service.get_timeline(job_id, current_user)]
