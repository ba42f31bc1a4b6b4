"""Schemas for the employee self-service area"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from ...models import Job


class EmployeeJobResponse(BaseModel):
    """Job as seen by the assigned employee; pricing and internal notes are left out"""

    id: int
    title: str
    description: Optional[str] = None
    status: str
    priority: Optional[str] = None
    location: Optional[str] = None
    city: Optional[str] = None
    postcode: Optional[str] = None
    scheduledFor: Optional[datetime] = None
    scheduledEnd: Optional[datetime] = None
    durationMinutes: Optional[int] = None
    customerName: Optional[str] = None
    customerPhone: Optional[str] = None
    accessInstructions: Optional[str] = None
    employeeAccepted: bool = False
    employeeAcceptedAt: Optional[datetime] = None
    completedAt: Optional[datetime] = None


def to_employee_job_response(job: Job) -> EmployeeJobResponse:
    customer = job.customer
    return EmployeeJobResponse(
        id=job.id,
        title=job.title,
        description=job.description,
        status=job.status,
        priority=job.priority,
        location=job.location,
        city=job.city,
        postcode=job.postcode,
        scheduledFor=job.scheduled_for,
        scheduledEnd=job.scheduled_end,
        durationMinutes=job.duration_minutes,
        customerName=customer.name if customer else None,
        customerPhone=customer.phone if customer else None,
        accessInstructions=customer.access_instructions if customer else None,
        employeeAccepted=bool(job.employee_accepted),
        employeeAcceptedAt=job.employee_accepted_at,
        completedAt=job.completed_at,
    )
