"""Billing schemas"""

from typing import Optional

from pydantic import BaseModel


class CheckoutRequest(BaseModel):
    planKey: Optional[str] = None


class BillingUrlResponse(BaseModel):
    url: str
