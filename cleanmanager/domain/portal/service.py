"""Customer portal service - passwordless sign in and read-only customer data"""

import logging
from datetime import timedelta
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ... import config
from ...models import Customer, Invoice, Job
from ...security_utils import create_jwt_token, mask_email
from ...shared.validators import normalize_email
from .codes import LoginCodeError, login_codes

logger = logging.getLogger(__name__)


class PortalService:
    def __init__(self, db: Session):
        self.db = db

    def find_customer(self, email: str) -> Optional[Customer]:
        return (
            self.db.query(Customer)
            .filter(Customer.email == normalize_email(email))
            .order_by(Customer.id.asc())
            .first()
        )

    def request_code(self, email: Optional[str]) -> tuple[Optional[Customer], Optional[str]]:
        """Issue a code when the email belongs to a customer; returns (customer, code)"""
        if not email or not email.strip():
            raise HTTPException(status_code=400, detail="Email is required")
        customer = self.find_customer(email)
        if not customer:
            logger.info(f"Portal code requested for unknown email {mask_email(email)}")
            return None, None
        return customer, login_codes.issue(customer.email)

    def verify_code(self, email: Optional[str], code: Optional[str]) -> tuple[str, Customer]:
        if not email:
            raise HTTPException(status_code=400, detail="Email is required")
        if not code:
            raise HTTPException(status_code=400, detail="Verification code is required")

        try:
            login_codes.verify(normalize_email(email), code)
        except LoginCodeError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e

        customer = self.find_customer(email)
        if not customer:
            raise HTTPException(status_code=404, detail="Customer not found")

        token = create_jwt_token(
            {"customerId": customer.id, "email": customer.email, "type": "customer"},
            expires_delta=timedelta(days=config.PORTAL_TOKEN_EXPIRE_DAYS),
        )
        logger.info(f"🔓 Customer {customer.id} signed in to the portal")
        return token, customer

    def get_jobs(self, customer: Customer) -> list[Job]:
        return (
            self.db.query(Job)
            .filter(Job.customer_id == customer.id, Job.company_id == customer.company_id)
            .order_by(Job.scheduled_for.desc(), Job.id.desc())
            .all()
        )

    def get_invoices(self, customer: Customer) -> list[Invoice]:
        return (
            self.db.query(Invoice)
            .filter(Invoice.customer_id == customer.id, Invoice.company_id == customer.company_id)
            .order_by(Invoice.issued_at.desc(), Invoice.id.desc())
            .all()
        )
