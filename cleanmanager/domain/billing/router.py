"""Billing router - subscription checkout and the processor's customer portal"""

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ... import config
from ...auth import get_current_user
from ...database import get_db
from ...models import User
from .dodo_service import (
    BillingNotConfiguredError,
    BillingProviderError,
    DodoPaymentsService,
    get_dodo_service,
)
from .schemas import BillingUrlResponse, CheckoutRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/billing", tags=["Billing"])

PLAN_KEYS = ("starter", "professional", "enterprise")


def plan_product_ids() -> dict[str, str]:
    return {
        "starter": config.DODO_STARTER_PRODUCT_ID,
        "professional": config.DODO_PROFESSIONAL_PRODUCT_ID,
        "enterprise": config.DODO_ENTERPRISE_PRODUCT_ID,
    }


@router.post("/checkout", response_model=BillingUrlResponse)
async def create_checkout(
    body: CheckoutRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    dodo: DodoPaymentsService = Depends(get_dodo_service),
):
    """Start a subscription checkout for one of the plans"""
    if body.planKey not in PLAN_KEYS:
        raise HTTPException(status_code=400, detail="Invalid plan")
    product_id = plan_product_ids().get(body.planKey)
    if not product_id:
        raise HTTPException(status_code=400, detail="Plan is not available")
    if not dodo.is_available():
        raise HTTPException(status_code=503, detail="Billing is not configured")

    company = current_user.company
    try:
        if not company.processor_customer_id:
            company.processor_customer_id = await dodo.create_customer(company.email, company.name)
            db.commit()
            logger.info(f"💳 Created processor customer for company {company.id}")

        url = await dodo.create_checkout_session(
            product_id=product_id,
            customer_id=company.processor_customer_id,
            return_url=f"{config.FRONTEND_URL}/settings/billing?checkout=success",
            metadata={
                "companyId": str(company.id),
                "userId": str(current_user.id),
                "planKey": body.planKey,
            },
        )
    except BillingNotConfiguredError as e:
        raise HTTPException(status_code=503, detail="Billing is not configured") from e
    except BillingProviderError as e:
        raise HTTPException(status_code=500, detail="Failed to create checkout session") from e

    logger.info(f"Checkout session created for company {company.id} plan={body.planKey}")
    return BillingUrlResponse(url=url)


@router.post("/portal", response_model=BillingUrlResponse)
async def create_billing_portal(
    current_user: User = Depends(get_current_user),
    dodo: DodoPaymentsService = Depends(get_dodo_service),
):
    company = current_user.company
    if not company or not company.processor_customer_id:
        raise HTTPException(status_code=404, detail="No subscription found")
    if not dodo.is_available():
        raise HTTPException(status_code=503, detail="Billing is not configured")

    try:
        url = await dodo.create_portal_session(company.processor_customer_id)
    except BillingNotConfiguredError as e:
        raise HTTPException(status_code=503, detail="Billing is not configured") from e
    except BillingProviderError as e:
        raise HTTPException(status_code=500, detail="Failed to create billing portal session") from e
    return BillingUrlResponse(url=url)
