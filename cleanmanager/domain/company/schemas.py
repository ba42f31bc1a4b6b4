"""Company domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from ...shared.validators import validate_email, validate_uk_phone


class CompanyProfileUpdate(BaseModel):
    """Schema for updating the company profile"""

    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    postcode: Optional[str] = None
    country: Optional[str] = None
    website: Optional[str] = None
    businessType: Optional[str] = None
    taxId: Optional[str] = None
    numberOfEmployees: Optional[int] = None

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        return validate_email(v) if v else v

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v):
        return validate_uk_phone(v) if v else v


class CompanyProfileResponse(BaseModel):
    id: int
    name: str
    email: str
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    postcode: Optional[str] = None
    country: Optional[str] = None
    website: Optional[str] = None
    businessType: Optional[str] = None
    taxId: Optional[str] = None
    numberOfEmployees: Optional[int] = None
    maxEmployees: Optional[int] = None
    subscriptionPlan: Optional[str] = None
    subscriptionStatus: Optional[str] = None
    trialEndsAt: Optional[datetime] = None
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None


class SubscriptionResponse(BaseModel):
    subscriptionPlan: Optional[str] = None
    subscriptionStatus: Optional[str] = None
    trialEndsAt: Optional[datetime] = None
