"""Company service - Profile, notification preferences and plan summary"""

import logging
from typing import Any

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import Company, User
from ...shared.validators import is_reserved_email, reserved_email_message
from .notifications import normalize_notification_settings
from .repository import CompanyRepository
from .schemas import CompanyProfileUpdate

logger = logging.getLogger(__name__)


class CompanyService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = CompanyRepository()

    def get_company(self, user: User) -> Company:
        company = self.repo.get_company(self.db, user.company_id)
        if not company:
            raise HTTPException(status_code=404, detail="Company not found")
        return company

    def update_profile(self, data: CompanyProfileUpdate, user: User) -> Company:
        if not data.name or not data.name.strip() or not data.email:
            raise HTTPException(status_code=400, detail="Name and email are required")

        company = self.get_company(user)

        if data.numberOfEmployees is not None:
            if data.numberOfEmployees < 1:
                raise HTTPException(status_code=400, detail="Number of employees must be at least 1")
            if company.max_employees is not None and data.numberOfEmployees > company.max_employees:
                raise HTTPException(
                    status_code=400,
                    detail=f"Number of employees cannot exceed admin limit of {company.max_employees}.",
                )

        if is_reserved_email(data.email):
            raise HTTPException(status_code=400, detail=reserved_email_message("Company email"))

        if self.repo.email_taken(self.db, data.email, company.id):
            raise HTTPException(status_code=409, detail="A company with this email already exists")

        updated = self.repo.update_company(
            self.db,
            company,
            name=data.name.strip(),
            email=data.email,
            phone=data.phone or None,
            address=data.address or None,
            city=data.city or None,
            postcode=data.postcode or None,
            country=data.country or "UK",
            website=data.website or None,
            business_type=data.businessType or None,
            tax_id=data.taxId or None,
            number_of_employees=data.numberOfEmployees or 1,
        )
        logger.info(f"🏢 Company {company.id} profile updated by user {user.id}")
        return updated

    def get_notification_settings(self, user: User) -> dict[str, bool]:
        return normalize_notification_settings(self.get_company(user).notification_settings)

    def update_notification_settings(self, payload: Any, user: User) -> dict[str, bool]:
        company = self.get_company(user)
        settings = normalize_notification_settings(payload)
        self.repo.update_company(self.db, company, notification_settings=settings)
        return settings
