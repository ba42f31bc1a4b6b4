"""Quote service - pricing, sending, customer decisions and conversion to jobs"""

import logging
import math
from datetime import datetime, timedelta
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import Customer, Employee, Job, Quote, User
from ...security_utils import constant_time_compare, generate_secure_token
from ...shared.totals import calculate_totals, line_amount, round_money
from ...shared.validators import normalize_datetime
from ..event_log.repository import EventLogRepository
from .repository import QuoteRepository
from .schemas import ConvertQuoteRequest, DuplicateQuoteRequest, QuoteCreate, QuoteItemInput, QuoteUpdate

logger = logging.getLogger(__name__)

QUOTE_STATUSES = {"draft", "sent", "pending", "accepted", "rejected", "converted"}
STATUS_TIMESTAMPS = {"sent": "sent_at", "accepted": "accepted_at", "rejected": "rejected_at"}


def _item_rows(items: list[QuoteItemInput]) -> list[dict]:
    rows = []
    for item in items:
        if not item.title or not item.title.strip():
            raise HTTPException(status_code=400, detail="Each item needs a title")
        amount = item.amount if item.amount is not None else line_amount(item.quantity, item.unitPrice)
        rows.append(
            {
                "title": item.title.strip(),
                "description": item.description,
                "quantity": item.quantity,
                "unit_price": round_money(item.unitPrice),
                "amount": round_money(amount),
            }
        )
    return rows


def summarize_quotes(quotes: list[Quote]) -> dict:
    def value(statuses):
        return round_money(sum(q.total or 0 for q in quotes if q.status in statuses))

    return {
        "total": len(quotes),
        "draft": sum(1 for q in quotes if q.status == "draft"),
        "sent": sum(1 for q in quotes if q.status == "sent"),
        "accepted": sum(1 for q in quotes if q.status == "accepted"),
        "rejected": sum(1 for q in quotes if q.status == "rejected"),
        "converted": sum(1 for q in quotes if q.status == "converted"),
        "totalValue": round_money(sum(q.total or 0 for q in quotes)),
        "acceptedValue": value({"accepted", "converted"}),
        "pendingValue": value({"sent", "pending"}),
    }


class QuoteService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = QuoteRepository()

    def list_quotes(
        self,
        user: User,
        page: int = 1,
        limit: int = 50,
        **filters,
    ) -> tuple[list[Quote], dict, dict]:
        """Filtered quotes for one page, plus summary and pagination over the whole filtered set"""
        quotes = self.repo.get_quotes(self.db, user.company_id, **filters)
        offset = (page - 1) * limit
        pagination = {
            "page": page,
            "limit": limit,
            "total": len(quotes),
            "totalPages": math.ceil(len(quotes) / limit),
        }
        return quotes[offset : offset + limit], summarize_quotes(quotes), pagination

    def get_quote(self, quote_id: int, user: User) -> Quote:
        quote = self.repo.get_quote_by_id(self.db, quote_id, user.company_id)
        if not quote:
            raise HTTPException(status_code=404, detail="Quote not found")
        return quote

    def _require_customer(self, customer_id: int, company_id: int) -> Customer:
        customer = (
            self.db.query(Customer)
            .filter(Customer.id == customer_id, Customer.company_id == company_id)
            .first()
        )
        if not customer:
            raise HTTPException(status_code=404, detail="Customer not found")
        return customer

    def _apply_totals(self, quote: Quote, rows: list[dict]) -> None:
        totals = calculate_totals(rows, quote.tax_rate, quote.discount_amount)
        quote.subtotal = totals["subtotal"]
        quote.tax_amount = totals["tax_amount"]
        quote.total = totals["total"]

    def create_quote(self, data: QuoteCreate, user: User) -> Quote:
        if not data.customerId or not data.title or not data.title.strip():
            raise HTTPException(status_code=400, detail="Customer and title are required")
        self._require_customer(data.customerId, user.company_id)
        rows = _item_rows(data.items)

        quote = Quote(
            company_id=user.company_id,
            customer_id=data.customerId,
            quote_number=self.repo.next_quote_number(self.db, user.company_id, datetime.utcnow().year),
            title=data.title.strip(),
            description=data.description,
            status="draft",
            tax_rate=data.taxRate,
            discount_amount=round_money(data.discountAmount),
            currency=data.currency or "GBP",
            valid_until=normalize_datetime(data.validUntil),
            notes=data.notes,
            terms=data.terms,
        )
        self._apply_totals(quote, rows)
        self.db.add(quote)
        self.db.flush()
        self.repo.replace_items(self.db, quote, rows)
        self.db.commit()
        logger.info(f"📝 Quote {quote.quote_number} created for company {user.company_id}")
        return self.get_quote(quote.id, user)

    def duplicate_quote(self, quote_id: int, data: DuplicateQuoteRequest, user: User) -> Quote:
        """Copy a quote and its items into a new draft with the next quote number"""
        source = self.get_quote(quote_id, user)
        customer_id = source.customer_id
        if data.customerId:
            customer_id = self._require_customer(data.customerId, user.company_id).id

        title = (data.title or "").strip() or f"{source.title or source.quote_number} (Copy)"
        quote = Quote(
            company_id=user.company_id,
            customer_id=customer_id,
            quote_number=self.repo.next_quote_number(self.db, user.company_id, datetime.utcnow().year),
            title=title,
            description=source.description,
            status="draft",
            subtotal=source.subtotal,
            tax_rate=source.tax_rate,
            tax_amount=source.tax_amount,
            discount_amount=source.discount_amount,
            total=source.total,
            currency=source.currency,
            valid_until=normalize_datetime(data.validUntil),
            notes=source.notes,
            terms=source.terms,
        )
        self.db.add(quote)
        self.db.flush()
        rows = [
            {
                "title": item.title,
                "description": item.description,
                "quantity": item.quantity,
                "unit_price": item.unit_price,
                "amount": item.amount,
            }
            for item in sorted(source.items, key=lambda item: item.sort_order or 0)
        ]
        self.repo.replace_items(self.db, quote, rows)
        self.db.commit()
        logger.info(f"📝 Quote {source.quote_number} duplicated as {quote.quote_number}")
        return self.get_quote(quote.id, user)

    def update_quote(self, quote_id: int, data: QuoteUpdate, user: User) -> Quote:
        quote = self.get_quote(quote_id, user)

        if data.customerId is not None and data.customerId != quote.customer_id:
            self._require_customer(data.customerId, user.company_id)
            quote.customer_id = data.customerId
        if data.title is not None:
            if not data.title.strip():
                raise HTTPException(status_code=400, detail="Title cannot be empty")
            quote.title = data.title.strip()
        for field, column in (
            ("description", "description"),
            ("currency", "currency"),
            ("notes", "notes"),
            ("terms", "terms"),
            ("taxRate", "tax_rate"),
        ):
            value = getattr(data, field)
            if value is not None:
                setattr(quote, column, value)
        if data.discountAmount is not None:
            quote.discount_amount = round_money(data.discountAmount)
        if data.validUntil is not None:
            quote.valid_until = normalize_datetime(data.validUntil)

        if data.status is not None and data.status != quote.status:
            if data.status not in QUOTE_STATUSES:
                raise HTTPException(status_code=400, detail="Invalid quote status")
            quote.status = data.status
            stamp = STATUS_TIMESTAMPS.get(data.status)
            if stamp:
                setattr(quote, stamp, datetime.utcnow())

        if data.items is not None:
            rows = _item_rows(data.items)
            self.repo.replace_items(self.db, quote, rows)
        else:
            rows = [{"amount": item.amount or 0} for item in quote.items]
        self._apply_totals(quote, rows)

        self.db.commit()
        return self.get_quote(quote.id, user)

    def delete_quote(self, quote_id: int, user: User) -> dict:
        quote = self.get_quote(quote_id, user)
        self.repo.delete_quote(self.db, quote)
        logger.info(f"🗑️ Quote {quote_id} deleted by user {user.id}")
        return {"success": True, "message": "Quote deleted"}

    def mark_sent(self, quote_id: int, user: User) -> Quote:
        """Issue a fresh access token and mark the quote as sent"""
        quote = self.get_quote(quote_id, user)
        if not quote.customer or not quote.customer.email:
            raise HTTPException(status_code=400, detail="Customer email not found")

        quote.access_token = generate_secure_token()
        quote.status = "sent"
        quote.sent_at = datetime.utcnow()
        self.db.commit()
        return self.get_quote(quote.id, user)

    def _authorize_public(self, quote_id: int, token: Optional[str]) -> Quote:
        if not token:
            raise HTTPException(status_code=401, detail="Access token is required")
        quote = self.repo.get_public_quote(self.db, quote_id)
        if not quote:
            raise HTTPException(status_code=404, detail="Quote not found")
        if not quote.access_token or not constant_time_compare(quote.access_token, token):
            logger.warning(f"⚠️ Invalid access token presented for quote {quote_id}")
            raise HTTPException(status_code=403, detail="Invalid access token")
        return quote

    def accept_quote(self, quote_id: int, token: Optional[str]) -> Quote:
        quote = self._authorize_public(quote_id, token)
        if quote.valid_until and quote.valid_until < datetime.utcnow():
            raise HTTPException(status_code=400, detail="Quote has expired")
        if quote.status in ("accepted", "converted"):
            raise HTTPException(status_code=400, detail="Quote already accepted")
        if quote.status == "rejected":
            raise HTTPException(status_code=400, detail="Quote was rejected")

        quote.status = "accepted"
        quote.accepted_at = datetime.utcnow()
        self.db.commit()
        self.db.refresh(quote)
        logger.info(f"✅ Quote {quote.quote_number} accepted by customer")
        return quote

    def reject_quote(self, quote_id: int, token: Optional[str], reason: Optional[str] = None) -> Quote:
        quote = self._authorize_public(quote_id, token)
        if quote.status in ("accepted", "converted"):
            raise HTTPException(status_code=400, detail="Quote already accepted")
        if quote.status == "rejected":
            raise HTTPException(status_code=400, detail="Quote already rejected")

        quote.status = "rejected"
        quote.rejected_at = datetime.utcnow()
        if reason:
            quote.notes = f"{quote.notes or ''}\n\nRejection reason: {reason}".strip()
        self.db.commit()
        self.db.refresh(quote)
        logger.info(f"Quote {quote.quote_number} rejected by customer")
        return quote

    def convert_to_job(self, quote_id: int, data: ConvertQuoteRequest, user: User) -> Job:
        quote = self.get_quote(quote_id, user)
        if quote.status != "accepted":
            raise HTTPException(status_code=400, detail="Only accepted quotes can be converted to jobs")

        if data.assignedTo:
            employee = (
                self.db.query(Employee)
                .filter(Employee.id == data.assignedTo, Employee.company_id == user.company_id)
                .first()
            )
            if not employee:
                raise HTTPException(status_code=404, detail="Employee not found")

        items_description = "\n".join(
            f"• {item.title}{': ' + item.description if item.description else ''} "
            f"({item.quantity:g} x {item.unit_price:.2f})"
            for item in quote.items
        )
        description = f"{quote.description or ''}\n\nItems:\n{items_description}".strip()

        customer = quote.customer
        scheduled_for = normalize_datetime(data.scheduledFor)
        duration = data.durationMinutes or 60
        job = Job(
            company_id=user.company_id,
            customer_id=quote.customer_id,
            assigned_to=data.assignedTo,
            title=quote.title or f"Quote {quote.quote_number}",
            description=description,
            location=customer.address if customer else None,
            city=customer.city if customer else None,
            postcode=customer.postcode if customer else None,
            scheduled_for=scheduled_for,
            scheduled_end=scheduled_for + timedelta(minutes=duration) if scheduled_for else None,
            duration_minutes=duration,
            status="scheduled",
            priority=data.priority or "normal",
            estimated_price=quote.total,
            currency=quote.currency or "GBP",
            internal_notes=quote.notes,
        )
        self.db.add(job)
        self.db.flush()

        quote.status = "converted"
        quote.converted_job_id = job.id
        EventLogRepository.record(
            self.db,
            job.id,
            "job_created",
            f"Job created from quote {quote.quote_number}",
            actor_id=user.id,
            meta={"quoteId": quote.id},
        )
        self.db.commit()
        self.db.refresh(job)
        logger.info(f"🔁 Quote {quote.quote_number} converted to job {job.id}")
        return job
