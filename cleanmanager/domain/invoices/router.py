"""Invoice router - FastAPI endpoints for invoices and payments"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ... import email_service
from ...auth import get_current_user
from ...database import get_db
from ...models import Invoice, User
from .schemas import InvoiceCreate, InvoiceResponse, InvoiceUpdate, PaymentCreate, to_invoice_response
from .service import InvoiceService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/invoices", tags=["Invoices"])


def get_invoice_service(db: Session = Depends(get_db)) -> InvoiceService:
    return InvoiceService(db)


async def send_invoice_notification(invoice: Invoice, user: User) -> bool:
    customer = invoice.customer
    if not customer or not customer.email:
        return False
    company_name = user.company.name if user.company else "Your cleaning company"
    return await email_service.send_best_effort(
        email_service.send_invoice_email(customer.email, customer.name, company_name, invoice),
        f"invoice email for {invoice.invoice_number}",
    )


@router.get("", response_model=list[InvoiceResponse])
async def get_invoices(
    customerId: Optional[int] = Query(None),
    jobId: Optional[int] = Query(None),
    status: Optional[str] = Query(None, description="Comma separated statuses"),
    search: Optional[str] = Query(None),
    fromDate: Optional[datetime] = Query(None),
    toDate: Optional[datetime] = Query(None),
    limit: Optional[int] = Query(None, ge=1, le=500),
    current_user: User = Depends(get_current_user),
    service: InvoiceService = Depends(get_invoice_service),
):
    invoices = service.get_invoices(
        current_user, customerId, jobId, status, search, fromDate, toDate, limit
    )
    return [to_invoice_response(i, include_lines=False) for i in invoices]


@router.post("", response_model=InvoiceResponse, status_code=201)
async def create_invoice(
    data: InvoiceCreate,
    current_user: User = Depends(get_current_user),
    service: InvoiceService = Depends(get_invoice_service),
):
    invoice = service.create_invoice(data, current_user)
    if data.sendEmail:
        await send_invoice_notification(invoice, current_user)
    return to_invoice_response(invoice)


@router.get("/{invoice_id}", response_model=InvoiceResponse)
async def get_invoice(
    invoice_id: int,
    current_user: User = Depends(get_current_user),
    service: InvoiceService = Depends(get_invoice_service),
):
    return to_invoice_response(service.get_invoice(invoice_id, current_user))


@router.put("/{invoice_id}", response_model=InvoiceResponse)
async def update_invoice(
    invoice_id: int,
    data: InvoiceUpdate,
    current_user: User = Depends(get_current_user),
    service: InvoiceService = Depends(get_invoice_service),
):
    return to_invoice_response(service.update_invoice(invoice_id, data, current_user))


@router.delete("/{invoice_id}")
async def delete_invoice(
    invoice_id: int,
    current_user: User = Depends(get_current_user),
    service: InvoiceService = Depends(get_invoice_service),
):
    return service.delete_invoice(invoice_id, current_user)


@router.post("/{invoice_id}/payments", response_model=InvoiceResponse, status_code=201)
async def record_payment(
    invoice_id: int,
    data: PaymentCreate,
    current_user: User = Depends(get_current_user),
    service: InvoiceService = Depends(get_invoice_service),
):
    return to_invoice_response(service.record_payment(invoice_id, data, current_user))


@router.post("/{invoice_id}/send-reminder")
async def send_payment_reminder(
    invoice_id: int,
    current_user: User = Depends(get_current_user),
    service: InvoiceService = Depends(get_invoice_service),
):
    invoice, days_overdue = service.prepare_reminder(invoice_id, current_user)
    customer = invoice.customer
    company_name = current_user.company.name if current_user.company else "Your cleaning company"
    email_sent = await email_service.send_best_effort(
        email_service.send_payment_reminder_email(customer.email, customer.name, company_name, invoice, days_overdue),
        f"payment reminder for {invoice.invoice_number}",
    )
    return {
        "success": True,
        "message": "Payment reminder sent" if email_sent else "Payment reminder could not be delivered",
        "emailSent": email_sent,
        "customerName": customer.name,
        "customerEmail": customer.email,
        "invoiceNumber": invoice.invoice_number,
        "daysOverdue": days_overdue,
    }
