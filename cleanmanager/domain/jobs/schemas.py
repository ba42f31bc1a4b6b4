"""Job domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from ...models import Job


class JobBase(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    jobType: Optional[str] = None
    customerId: Optional[int] = None
    assignedTo: Optional[int] = None
    location: Optional[str] = None
    city: Optional[str] = None
    postcode: Optional[str] = None
    scheduledFor: Optional[datetime] = None
    scheduledEnd: Optional[datetime] = None
    durationMinutes: Optional[int] = Field(None, ge=1)
    recurrence: Optional[str] = None
    recurrenceEndDate: Optional[datetime] = None
    priority: Optional[str] = None
    estimatedPrice: Optional[float] = Field(None, ge=0)
    currency: Optional[str] = None
    internalNotes: Optional[str] = None


class JobCreate(JobBase):
    allowPast: bool = False


class JobUpdate(JobBase):
    status: Optional[str] = None
    actualPrice: Optional[float] = Field(None, ge=0)
    completedAt: Optional[datetime] = None
    qualityRating: Optional[int] = Field(None, ge=1, le=5)


class AssignJobRequest(BaseModel):
    employeeId: Optional[int] = None


class CompleteJobRequest(BaseModel):
    actualPrice: Optional[float] = Field(None, ge=0)
    notes: Optional[str] = None
    qualityRating: Optional[int] = Field(None, ge=1, le=5)


class CancelJobRequest(BaseModel):
    reason: Optional[str] = None
    notifyCustomer: bool = True
    notifyEmployee: bool = True


class RescheduleJobRequest(BaseModel):
    newDate: Optional[datetime] = None
    newEndDate: Optional[datetime] = None
    reason: Optional[str] = None
    assignedTo: Optional[int] = None
    notifyCustomer: bool = True
    notifyEmployee: bool = True


class DuplicateJobRequest(BaseModel):
    scheduledFor: Optional[datetime] = None
    scheduledEnd: Optional[datetime] = None
    customerId: Optional[int] = None
    assignedTo: Optional[int] = None
    copyNotes: bool = False


class JobCustomerSummary(BaseModel):
    id: int
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None


class JobEmployeeSummary(BaseModel):
    id: int
    name: str
    email: Optional[str] = None


class JobResponse(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    jobType: Optional[str] = None
    customerId: Optional[int] = None
    assignedTo: Optional[int] = None
    location: Optional[str] = None
    city: Optional[str] = None
    postcode: Optional[str] = None
    scheduledFor: Optional[datetime] = None
    scheduledEnd: Optional[datetime] = None
    durationMinutes: Optional[int] = None
    recurrence: Optional[str] = None
    recurrenceEndDate: Optional[datetime] = None
    parentJobId: Optional[int] = None
    status: str
    priority: Optional[str] = None
    completedAt: Optional[datetime] = None
    employeeAccepted: bool = False
    employeeAcceptedAt: Optional[datetime] = None
    estimatedPrice: Optional[float] = None
    actualPrice: Optional[float] = None
    currency: Optional[str] = None
    qualityRating: Optional[int] = None
    customerFeedback: Optional[str] = None
    feedbackSubmittedAt: Optional[datetime] = None
    internalNotes: Optional[str] = None
    cancellationReason: Optional[str] = None
    customer: Optional[JobCustomerSummary] = None
    assignee: Optional[JobEmployeeSummary] = None
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None


def to_job_response(job: Job) -> JobResponse:
    customer = None
    if job.customer:
        customer = JobCustomerSummary(
            id=job.customer.id,
            name=job.customer.name,
            email=job.customer.email,
            phone=job.customer.phone,
        )
    assignee = None
    if job.assignee:
        assignee = JobEmployeeSummary(
            id=job.assignee.id,
            name=f"{job.assignee.first_name} {job.assignee.last_name}".strip(),
            email=job.assignee.email,
        )

    return JobResponse(
        id=job.id,
        title=job.title,
        description=job.description,
        jobType=job.job_type,
        customerId=job.customer_id,
        assignedTo=job.assigned_to,
        location=job.location,
        city=job.city,
        postcode=job.postcode,
        scheduledFor=job.scheduled_for,
        scheduledEnd=job.scheduled_end,
        durationMinutes=job.duration_minutes,
        recurrence=job.recurrence,
        recurrenceEndDate=job.recurrence_end_date,
        parentJobId=job.parent_job_id,
        status=job.status,
        priority=job.priority,
        completedAt=job.completed_at,
        employeeAccepted=bool(job.employee_accepted),
        employeeAcceptedAt=job.employee_accepted_at,
        estimatedPrice=job.estimated_price,
        actualPrice=job.actual_price,
        currency=job.currency,
        qualityRating=job.quality_rating,
        customerFeedback=job.customer_feedback,
        feedbackSubmittedAt=job.feedback_submitted_at,
        internalNotes=job.internal_notes,
        cancellationReason=job.cancellation_reason,
        customer=customer,
        assignee=assignee,
        createdAt=job.created_at,
        updatedAt=job.updated_at,
    )
