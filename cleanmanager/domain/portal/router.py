"""Customer portal router - code sign in plus the customer's jobs and invoices"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ... import email_service
from ...auth import get_portal_customer
from ...database import get_db
from ...models import Customer
from ...rate_limiter import rate_limiter_for
from .schemas import (
    PortalCustomer,
    PortalInvoice,
    PortalJob,
    PortalLoginRequest,
    PortalLoginResponse,
    to_portal_invoice,
    to_portal_job,
)
from .service import PortalService

router = APIRouter(prefix="/customer-portal", tags=["Customer Portal"])

portal_rate_limit = rate_limiter_for("portal_auth")

CODE_SENT_MESSAGE = "If an account exists with this email, a login code has been sent."


def get_portal_service(db: Session = Depends(get_db)) -> PortalService:
    return PortalService(db)


@router.get("/auth", dependencies=[Depends(portal_rate_limit)])
async def request_login_code(
    email: Optional[str] = Query(None),
    service: PortalService = Depends(get_portal_service),
):
    """Email a six digit sign-in code; the response never reveals whether the email is known"""
    customer, code = service.request_code(email)
    if customer and code:
        await email_service.send_best_effort(
            email_service.send_portal_login_code(customer.email, customer.name, code),
            f"portal login code for customer {customer.id}",
        )
    return {"success": True, "message": CODE_SENT_MESSAGE}


@router.post("/auth", response_model=PortalLoginResponse, dependencies=[Depends(portal_rate_limit)])
async def verify_login_code(
    data: PortalLoginRequest,
    service: PortalService = Depends(get_portal_service),
):
    token, customer = service.verify_code(data.email, data.code)
    return PortalLoginResponse(
        token=token,
        customer=PortalCustomer(id=customer.id, name=customer.name, email=customer.email),
    )


@router.get("/jobs", response_model=list[PortalJob])
async def get_my_jobs(
    customer: Customer = Depends(get_portal_customer),
    service: PortalService = Depends(get_portal_service),
):
    return [to_portal_job(job) for job in service.get_jobs(customer)]


@router.get("/invoices", response_model=list[PortalInvoice])
async def get_my_invoices(
    customer: Customer = Depends(get_portal_customer),
    service: PortalService = Depends(get_portal_service),
):
    return [to_portal_invoice(invoice) for invoice in service.get_invoices(customer)]
