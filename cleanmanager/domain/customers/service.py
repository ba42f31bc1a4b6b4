"""Customer service - Business logic for customer operations"""

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import Customer, User
from ...shared.validators import (
    UK_PHONE_ERROR,
    format_uk_phone,
    is_valid_email,
    is_valid_uk_phone,
    normalize_email,
)
from .repository import CustomerRepository
from .schemas import CustomerBase

logger = logging.getLogger(__name__)

CUSTOMER_STATUSES = {"active", "inactive"}


class CustomerService:
    """Service layer for customer business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = CustomerRepository()

    def get_customers(
        self,
        user: User,
        search: Optional[str] = None,
        customer_type: Optional[str] = None,
        status: Optional[str] = None,
    ) -> list[Customer]:
        return self.repo.get_customers(self.db, user.company_id, search, customer_type, status)

    def get_customer(self, customer_id: int, user: User) -> Customer:
        customer = self.repo.get_customer_by_id(self.db, customer_id, user.company_id)
        if not customer:
            raise HTTPException(status_code=404, detail="Customer not found")
        return customer

    def _validated_fields(self, data: CustomerBase, user: User, exclude_id: Optional[int] = None) -> dict:
        """Check required fields, formats and duplicates; returns model column values"""
        if not data.firstName or not data.lastName or not data.email:
            raise HTTPException(status_code=400, detail="First name, last name, and email are required")
        if not data.phone:
            raise HTTPException(status_code=400, detail="Phone number is required")
        if not data.address or not data.city or not data.postcode or not data.country:
            raise HTTPException(
                status_code=400, detail="Address, city, postcode, and country are required"
            )

        email = normalize_email(data.email)
        if not is_valid_email(email):
            raise HTTPException(status_code=400, detail="Invalid email format")
        if not is_valid_uk_phone(data.phone):
            raise HTTPException(status_code=400, detail=UK_PHONE_ERROR)
        if data.alternatePhone and not is_valid_uk_phone(data.alternatePhone):
            raise HTTPException(status_code=400, detail=f"Invalid alternate phone. {UK_PHONE_ERROR}")

        phone = format_uk_phone(data.phone)

        if self.repo.find_duplicate(self.db, user.company_id, email=email, exclude_id=exclude_id):
            raise HTTPException(
                status_code=409, detail="A customer with this email already exists in your company"
            )
        if self.repo.find_duplicate(self.db, user.company_id, phone=phone, exclude_id=exclude_id):
            raise HTTPException(
                status_code=409, detail="A customer with this phone number already exists in your company"
            )

        if data.status and data.status not in CUSTOMER_STATUSES:
            raise HTTPException(status_code=400, detail="Invalid customer status")

        return {
            "first_name": data.firstName.strip(),
            "last_name": data.lastName.strip(),
            "email": email,
            "phone": phone,
            "alternate_phone": format_uk_phone(data.alternatePhone) if data.alternatePhone else None,
            "address": data.address,
            "address_line2": data.addressLine2 or None,
            "city": data.city,
            "postcode": data.postcode,
            "country": data.country,
            "company_name": data.companyName or None,
            "access_instructions": data.accessInstructions or None,
            "special_instructions": data.specialInstructions or None,
            "notes": data.notes or None,
        }

    def create_customer(self, data: CustomerBase, user: User) -> Customer:
        fields = self._validated_fields(data, user)
        fields["customer_type"] = data.customerType or "residential"
        fields["status"] = data.status or "active"
        if not fields["country"]:
            fields["country"] = "United Kingdom"

        customer = self.repo.create_customer(self.db, user.company_id, **fields)
        logger.info(f"✅ Customer {customer.id} created for company {user.company_id}")
        return customer

    def update_customer(self, customer_id: int, data: CustomerBase, user: User) -> Customer:
        customer = self.get_customer(customer_id, user)
        fields = self._validated_fields(data, user, exclude_id=customer.id)
        if data.customerType:
            fields["customer_type"] = data.customerType
        if data.status:
            fields["status"] = data.status
        return self.repo.update_customer(self.db, customer, **fields)

    def update_status(self, customer_id: int, status: str, user: User) -> Customer:
        if status not in CUSTOMER_STATUSES:
            raise HTTPException(status_code=400, detail="Invalid customer status")
        customer = self.get_customer(customer_id, user)
        return self.repo.update_customer(self.db, customer, status=status)

    def deactivate_customer(self, customer_id: int, user: User) -> dict:
        """Customers are never hard-deleted; jobs and invoices keep their history"""
        customer = self.get_customer(customer_id, user)
        self.repo.update_customer(self.db, customer, status="inactive")
        logger.info(f"🗑️ Customer {customer.id} deactivated by user {user.id}")
        return {"success": True, "message": "Customer deactivated"}
