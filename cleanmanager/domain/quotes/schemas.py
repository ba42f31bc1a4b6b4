"""Quote domain schemas"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from ...models import Quote


class QuoteItemInput(BaseModel):
    title: str
    description: Optional[str] = None
    quantity: float = 1
    unitPrice: float = 0
    amount: Optional[float] = None


class QuoteCreate(BaseModel):
    customerId: Optional[int] = None
    title: Optional[str] = None
    description: Optional[str] = None
    items: list[QuoteItemInput] = Field(default_factory=list)
    taxRate: float = 0
    discountAmount: float = 0
    currency: Optional[str] = None
    validUntil: Optional[datetime] = None
    notes: Optional[str] = None
    terms: Optional[str] = None


class QuoteUpdate(BaseModel):
    customerId: Optional[int] = None
    title: Optional[str] = None
    description: Optional[str] = None
    items: Optional[list[QuoteItemInput]] = None
    taxRate: Optional[float] = None
    discountAmount: Optional[float] = None
    currency: Optional[str] = None
    validUntil: Optional[datetime] = None
    notes: Optional[str] = None
    terms: Optional[str] = None
    status: Optional[str] = None


class QuoteDecision(BaseModel):
    """Body of the public accept/reject endpoints"""

    token: Optional[str] = None
    reason: Optional[str] = None


class ConvertQuoteRequest(BaseModel):
    scheduledFor: Optional[datetime] = None
    assignedTo: Optional[int] = None
    priority: Optional[str] = None
    durationMinutes: Optional[int] = Field(None, ge=1)


class DuplicateQuoteRequest(BaseModel):
    title: Optional[str] = None
    customerId: Optional[int] = None
    validUntil: Optional[datetime] = None


class QuoteItemResponse(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    quantity: float
    unitPrice: float
    amount: float
    sortOrder: int


class QuoteResponse(BaseModel):
    id: int
    quoteNumber: str
    customerId: Optional[int] = None
    customerName: Optional[str] = None
    customerEmail: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    status: str
    subtotal: float
    taxRate: float
    taxAmount: float
    discountAmount: float
    total: float
    currency: str
    validUntil: Optional[datetime] = None
    notes: Optional[str] = None
    terms: Optional[str] = None
    sentAt: Optional[datetime] = None
    acceptedAt: Optional[datetime] = None
    rejectedAt: Optional[datetime] = None
    convertedJobId: Optional[int] = None
    isExpired: bool = False
    daysSinceSent: Optional[int] = None
    items: list[QuoteItemResponse] = Field(default_factory=list)
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None


class QuoteSummary(BaseModel):
    total: int
    draft: int
    sent: int
    accepted: int
    rejected: int
    converted: int
    totalValue: float
    acceptedValue: float
    pendingValue: float


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    totalPages: int


class QuoteListResponse(BaseModel):
    quotes: list[QuoteResponse]
    summary: QuoteSummary
    pagination: Pagination


def to_quote_response(quote: Quote, now: Optional[datetime] = None) -> QuoteResponse:
    now = now or datetime.utcnow()
    customer = quote.customer
    return QuoteResponse(
        id=quote.id,
        quoteNumber=quote.quote_number,
        customerId=quote.customer_id,
        customerName=customer.name if customer else None,
        customerEmail=customer.email if customer else None,
        title=quote.title,
        description=quote.description,
        status=quote.status,
        subtotal=quote.subtotal or 0,
        taxRate=quote.tax_rate or 0,
        taxAmount=quote.tax_amount or 0,
        discountAmount=quote.discount_amount or 0,
        total=quote.total or 0,
        currency=quote.currency or "GBP",
        validUntil=quote.valid_until,
        notes=quote.notes,
        terms=quote.terms,
        sentAt=quote.sent_at,
        acceptedAt=quote.accepted_at,
        rejectedAt=quote.rejected_at,
        convertedJobId=quote.converted_job_id,
        isExpired=bool(quote.valid_until and quote.valid_until < now),
        daysSinceSent=(now - quote.sent_at).days if quote.sent_at else None,
        items=[
            QuoteItemResponse(
                id=item.id,
                title=item.title,
                description=item.description,
                quantity=item.quantity or 0,
                unitPrice=item.unit_price or 0,
                amount=item.amount or 0,
                sortOrder=item.sort_order or 0,
            )
            for item in quote.items
        ],
        createdAt=quote.created_at,
        updatedAt=quote.updated_at,
    )
