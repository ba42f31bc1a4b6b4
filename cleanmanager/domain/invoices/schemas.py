"""Invoice domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from ...models import Invoice


class InvoiceItemInput(BaseModel):
    title: str
    description: Optional[str] = None
    quantity: float = 1
    unitPrice: float = 0
    taxable: bool = True


class InvoiceCreate(BaseModel):
    customerId: Optional[int] = None
    jobId: Optional[int] = None
    items: list[InvoiceItemInput] = Field(default_factory=list)
    taxRate: float = 0
    discountAmount: float = 0
    currency: Optional[str] = None
    status: Optional[str] = None
    dueAt: Optional[datetime] = None
    notes: Optional[str] = None
    terms: Optional[str] = None
    footer: Optional[str] = None
    sendEmail: bool = True


class InvoiceUpdate(BaseModel):
    items: Optional[list[InvoiceItemInput]] = None
    taxRate: Optional[float] = None
    discountAmount: Optional[float] = None
    status: Optional[str] = None
    dueAt: Optional[datetime] = None
    notes: Optional[str] = None
    terms: Optional[str] = None
    footer: Optional[str] = None


class GenerateInvoiceRequest(BaseModel):
    taxRate: float = 0
    discountAmount: float = 0
    dueInDays: int = Field(30, ge=0, le=365)
    notes: Optional[str] = None
    terms: Optional[str] = None
    footer: Optional[str] = None


class PaymentCreate(BaseModel):
    amount: float
    method: Optional[str] = None
    reference: Optional[str] = None
    paidAt: Optional[datetime] = None


class InvoiceItemResponse(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    quantity: float
    unitPrice: float
    amount: float
    taxable: bool
    sortOrder: int


class PaymentResponse(BaseModel):
    id: int
    amount: float
    method: Optional[str] = None
    reference: Optional[str] = None
    paidAt: Optional[datetime] = None


class InvoiceResponse(BaseModel):
    id: int
    invoiceNumber: str
    customerId: Optional[int] = None
    customerName: Optional[str] = None
    customerEmail: Optional[str] = None
    jobId: Optional[int] = None
    status: str
    subtotal: float
    taxRate: float
    taxAmount: float
    discountAmount: float
    total: float
    amountPaid: float
    amountDue: float
    currency: str
    issuedAt: Optional[datetime] = None
    dueAt: Optional[datetime] = None
    paidAt: Optional[datetime] = None
    notes: Optional[str] = None
    terms: Optional[str] = None
    footer: Optional[str] = None
    items: list[InvoiceItemResponse] = Field(default_factory=list)
    payments: list[PaymentResponse] = Field(default_factory=list)
    createdAt: Optional[datetime] = None


def to_invoice_response(invoice: Invoice, include_lines: bool = True) -> InvoiceResponse:
    customer = invoice.customer
    items = []
    payments = []
    if include_lines:
        items = [
            InvoiceItemResponse(
                id=item.id,
                title=item.title,
                description=item.description,
                quantity=item.quantity or 0,
                unitPrice=item.unit_price or 0,
                amount=item.amount or 0,
                taxable=bool(item.taxable),
                sortOrder=item.sort_order or 0,
            )
            for item in invoice.items
        ]
        payments = [
            PaymentResponse(
                id=p.id, amount=p.amount, method=p.method, reference=p.reference, paidAt=p.paid_at
            )
            for p in invoice.payments
        ]

    return InvoiceResponse(
        id=invoice.id,
        invoiceNumber=invoice.invoice_number,
        customerId=invoice.customer_id,
        customerName=customer.name if customer else None,
        customerEmail=customer.email if customer else None,
        jobId=invoice.job_id,
        status=invoice.status,
        subtotal=invoice.subtotal or 0,
        taxRate=invoice.tax_rate or 0,
        taxAmount=invoice.tax_amount or 0,
        discountAmount=invoice.discount_amount or 0,
        total=invoice.total or 0,
        amountPaid=invoice.amount_paid or 0,
        amountDue=invoice.amount_due or 0,
        currency=invoice.currency or "GBP",
        issuedAt=invoice.issued_at,
        dueAt=invoice.due_at,
        paidAt=invoice.paid_at,
        notes=invoice.notes,
        terms=invoice.terms,
        footer=invoice.footer,
        items=items,
        payments=payments,
        createdAt=invoice.created_at,
    )
