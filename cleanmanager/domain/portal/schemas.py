"""Customer portal schemas"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from ...models import Invoice, Job


class PortalLoginRequest(BaseModel):
    email: Optional[str] = None
    code: Optional[str] = None


class PortalCustomer(BaseModel):
    id: int
    name: str
    email: str


class PortalLoginResponse(BaseModel):
    token: str
    customer: PortalCustomer


class PortalJob(BaseModel):
    id: int
    title: str
    status: str
    location: Optional[str] = None
    scheduledFor: Optional[datetime] = None
    scheduledEnd: Optional[datetime] = None
    completedAt: Optional[datetime] = None
    price: Optional[float] = None
    currency: Optional[str] = None


class PortalInvoice(BaseModel):
    id: int
    invoiceNumber: str
    status: str
    total: float
    amountPaid: float
    amountDue: float
    currency: str
    issuedAt: Optional[datetime] = None
    dueAt: Optional[datetime] = None
    paidAt: Optional[datetime] = None


def to_portal_job(job: Job) -> PortalJob:
    return PortalJob(
        id=job.id,
        title=job.title,
        status=job.status,
        location=job.location,
        scheduledFor=job.scheduled_for,
        scheduledEnd=job.scheduled_end,
        completedAt=job.completed_at,
        price=job.actual_price if job.actual_price is not None else job.estimated_price,
        currency=job.currency,
    )


def to_portal_invoice(invoice: Invoice) -> PortalInvoice:
    return PortalInvoice(
        id=invoice.id,
        invoiceNumber=invoice.invoice_number,
        status=invoice.status,
        total=invoice.total or 0,
        amountPaid=invoice.amount_paid or 0,
        amountDue=invoice.amount_due or 0,
        currency=invoice.currency or "GBP",
        issuedAt=invoice.issued_at,
        dueAt=invoice.due_at,
        paidAt=invoice.paid_at,
    )
