"""Company router - profile, notification settings and subscription summary"""

import logging

from fastapi import APIRouter, Body, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import Company, User
from .schemas import CompanyProfileResponse, CompanyProfileUpdate, SubscriptionResponse
from .service import CompanyService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/company", tags=["Company"])


def get_company_service(db: Session = Depends(get_db)) -> CompanyService:
    return CompanyService(db)


def to_profile_response(company: Company) -> CompanyProfileResponse:
    return CompanyProfileResponse(
        id=company.id,
        name=company.name,
        email=company.email,
        phone=company.phone,
        address=company.address,
        city=company.city,
        postcode=company.postcode,
        country=company.country,
        website=company.website,
        businessType=company.business_type,
        taxId=company.tax_id,
        numberOfEmployees=company.number_of_employees,
        maxEmployees=company.max_employees,
        subscriptionPlan=company.subscription_plan,
        subscriptionStatus=company.subscription_status,
        trialEndsAt=company.trial_ends_at,
        createdAt=company.created_at,
        updatedAt=company.updated_at,
    )


@router.get("/profile", response_model=CompanyProfileResponse)
async def get_profile(
    current_user: User = Depends(get_current_user),
    service: CompanyService = Depends(get_company_service),
):
    return to_profile_response(service.get_company(current_user))


@router.put("/profile", response_model=CompanyProfileResponse)
async def update_profile(
    data: CompanyProfileUpdate,
    current_user: User = Depends(get_current_user),
    service: CompanyService = Depends(get_company_service),
):
    return to_profile_response(service.update_profile(data, current_user))


@router.get("/notifications")
async def get_notifications(
    current_user: User = Depends(get_current_user),
    service: CompanyService = Depends(get_company_service),
):
    return {"settings": service.get_notification_settings(current_user)}


@router.put("/notifications")
async def update_notifications(
    payload: dict = Body(...),
    current_user: User = Depends(get_current_user),
    service: CompanyService = Depends(get_company_service),
):
    """Accepts ``{"settings": {...}}`` or the settings object itself"""
    settings = service.update_notification_settings(payload, current_user)
    return {"success": True, "settings": settings}


@router.get("/subscription", response_model=SubscriptionResponse)
async def get_subscription(
    current_user: User = Depends(get_current_user),
    service: CompanyService = Depends(get_company_service),
):
    company = service.get_company(current_user)
    return SubscriptionResponse(
        subscriptionPlan=company.subscription_plan,
        subscriptionStatus=company.subscription_status,
        trialEndsAt=company.trial_ends_at,
    )
