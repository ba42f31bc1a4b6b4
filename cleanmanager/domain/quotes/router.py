"""Quote router - company quote management plus the public accept/reject links"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Body, Depends, Header, Query
from sqlalchemy.orm import Session

from ... import email_service
from ...auth import get_current_user
from ...database import get_db
from ...models import Company, Quote, User
from ...rate_limiter import rate_limiter_for
from ...shared.validators import normalize_datetime
from ..company.notifications import is_notification_enabled
from ..jobs.schemas import to_job_response
from .schemas import (
    ConvertQuoteRequest,
    DuplicateQuoteRequest,
    QuoteCreate,
    QuoteDecision,
    QuoteListResponse,
    QuoteResponse,
    QuoteUpdate,
    to_quote_response,
)
from .service import QuoteService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/quotes", tags=["Quotes"])

public_rate_limit = rate_limiter_for("api")


def get_quote_service(db: Session = Depends(get_db)) -> QuoteService:
    return QuoteService(db)


async def notify_company_of_decision(
    db: Session, quote: Quote, accepted: bool, reason: Optional[str] = None
) -> bool:
    company = db.get(Company, quote.company_id)
    if not company or not company.email or not is_notification_enabled(company, "quoteUpdates"):
        return False
    customer_name = quote.customer.name if quote.customer else "Customer"
    return await email_service.send_best_effort(
        email_service.send_quote_response_notification(
            company.email, company.name, quote.quote_number, customer_name or "Customer", accepted, reason
        ),
        f"quote decision notification for {quote.quote_number}",
    )


@router.get("", response_model=QuoteListResponse)
async def get_quotes(
    status: Optional[str] = Query(None),
    customerId: Optional[int] = Query(None),
    search: Optional[str] = Query(None),
    startDate: Optional[datetime] = Query(None),
    endDate: Optional[datetime] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    current_user: User = Depends(get_current_user),
    service: QuoteService = Depends(get_quote_service),
):
    quotes, summary, pagination = service.list_quotes(
        current_user,
        page=page,
        limit=limit,
        status=status,
        customer_id=customerId,
        search=search,
        start_date=normalize_datetime(startDate),
        end_date=normalize_datetime(endDate),
    )
    now = datetime.utcnow()
    return {
        "quotes": [to_quote_response(q, now) for q in quotes],
        "summary": summary,
        "pagination": pagination,
    }


@router.post("", response_model=QuoteResponse, status_code=201)
async def create_quote(
    data: QuoteCreate,
    current_user: User = Depends(get_current_user),
    service: QuoteService = Depends(get_quote_service),
):
    return to_quote_response(service.create_quote(data, current_user))


@router.get("/{quote_id}", response_model=QuoteResponse)
async def get_quote(
    quote_id: int,
    current_user: User = Depends(get_current_user),
    service: QuoteService = Depends(get_quote_service),
):
    return to_quote_response(service.get_quote(quote_id, current_user))


@router.patch("/{quote_id}", response_model=QuoteResponse)
async def update_quote(
    quote_id: int,
    data: QuoteUpdate,
    current_user: User = Depends(get_current_user),
    service: QuoteService = Depends(get_quote_service),
):
    return to_quote_response(service.update_quote(quote_id, data, current_user))


@router.delete("/{quote_id}")
async def delete_quote(
    quote_id: int,
    current_user: User = Depends(get_current_user),
    service: QuoteService = Depends(get_quote_service),
):
    return service.delete_quote(quote_id, current_user)


@router.post("/{quote_id}/duplicate", response_model=QuoteResponse, status_code=201)
async def duplicate_quote(
    quote_id: int,
    data: Optional[DuplicateQuoteRequest] = Body(None),
    current_user: User = Depends(get_current_user),
    service: QuoteService = Depends(get_quote_service),
):
    return to_quote_response(service.duplicate_quote(quote_id, data or DuplicateQuoteRequest(), current_user))


@router.post("/{quote_id}/send")
async def send_quote(
    quote_id: int,
    current_user: User = Depends(get_current_user),
    service: QuoteService = Depends(get_quote_service),
):
    """Email the quote to its customer with a tokenised accept/reject link"""
    quote = service.mark_sent(quote_id, current_user)
    company_name = current_user.company.name if current_user.company else "Your Service Provider"
    email_sent = await email_service.send_best_effort(
        email_service.send_quote_email(quote.customer.email, quote.customer.name, company_name, quote),
        f"quote email for {quote.quote_number}",
    )
    return {
        "success": True,
        "message": "Quote sent successfully" if email_sent else "Quote marked as sent but the email could not be delivered",
        "emailSent": email_sent,
        "quote": to_quote_response(quote),
    }


@router.post("/{quote_id}/accept", dependencies=[Depends(public_rate_limit)])
async def accept_quote(
    quote_id: int,
    data: Optional[QuoteDecision] = Body(None),
    x_quote_token: Optional[str] = Header(None),
    service: QuoteService = Depends(get_quote_service),
):
    """Public: the customer accepts a quote using the token from their email"""
    token = (data.token if data else None) or x_quote_token
    quote = service.accept_quote(quote_id, token)
    await notify_company_of_decision(service.db, quote, accepted=True)
    return {"success": True, "message": "Quote accepted successfully", "quote": to_quote_response(quote)}


@router.post("/{quote_id}/reject", dependencies=[Depends(public_rate_limit)])
async def reject_quote(
    quote_id: int,
    data: Optional[QuoteDecision] = Body(None),
    x_quote_token: Optional[str] = Header(None),
    service: QuoteService = Depends(get_quote_service),
):
    """Public: the customer declines a quote, optionally with a reason"""
    token = (data.token if data else None) or x_quote_token
    reason = data.reason if data else None
    quote = service.reject_quote(quote_id, token, reason)
    await notify_company_of_decision(service.db, quote, accepted=False, reason=reason)
    return {"success": True, "message": "Quote rejected", "quote": to_quote_response(quote)}


@router.post("/{quote_id}/convert", status_code=201)
async def convert_quote(
    quote_id: int,
    data: Optional[ConvertQuoteRequest] = Body(None),
    current_user: User = Depends(get_current_user),
    service: QuoteService = Depends(get_quote_service),
):
    job = service.convert_to_job(quote_id, data or ConvertQuoteRequest(), current_user)
    return {
        "success": True,
        "message": "Quote converted to job successfully",
        "job": to_job_response(job),
        "quoteId": quote_id,
    }
