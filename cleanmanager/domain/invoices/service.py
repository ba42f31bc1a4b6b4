"""Invoice service - numbering, totals, balances and payments"""

import logging
from datetime import datetime, timedelta
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import Customer, Invoice, Job, User
from ...shared.totals import calculate_totals, line_amount, round_money
from ...shared.validators import normalize_datetime, start_of_today
from .repository import InvoiceRepository
from .schemas import GenerateInvoiceRequest, InvoiceCreate, InvoiceItemInput, InvoiceUpdate, PaymentCreate

logger = logging.getLogger(__name__)

INVOICE_STATUSES = {"draft", "sent", "paid", "overdue", "cancelled"}


def build_invoice_number(sequence: int, customer_name: str, issued_at: datetime) -> str:
    return f"INV-{sequence:04d} - {customer_name} - {issued_at.strftime('%d-%m-%Y')}"


def _item_rows(items: list[InvoiceItemInput]) -> list[dict]:
    rows = []
    for item in items:
        if not item.title or not item.title.strip():
            raise HTTPException(status_code=400, detail="Each item needs a title")
        if item.quantity < 0 or item.unitPrice < 0:
            raise HTTPException(status_code=400, detail="Item quantity and price cannot be negative")
        rows.append(
            {
                "title": item.title.strip(),
                "description": item.description,
                "quantity": item.quantity,
                "unit_price": round_money(item.unitPrice),
                "amount": line_amount(item.quantity, item.unitPrice),
                "taxable": item.taxable,
            }
        )
    return rows


class InvoiceService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = InvoiceRepository()

    def get_invoices(
        self,
        user: User,
        customer_id: Optional[int] = None,
        job_id: Optional[int] = None,
        status: Optional[str] = None,
        search: Optional[str] = None,
        from_date: Optional[datetime] = None,
        to_date: Optional[datetime] = None,
        limit: Optional[int] = None,
    ) -> list[Invoice]:
        statuses = [s.strip() for s in status.split(",") if s.strip()] if status else None
        return self.repo.get_invoices(
            self.db,
            user.company_id,
            customer_id=customer_id,
            job_id=job_id,
            statuses=statuses,
            search=search,
            from_date=normalize_datetime(from_date),
            to_date=normalize_datetime(to_date),
            limit=limit,
        )

    def get_invoice(self, invoice_id: int, user: User) -> Invoice:
        invoice = self.repo.get_invoice_by_id(self.db, invoice_id, user.company_id)
        if not invoice:
            raise HTTPException(status_code=404, detail="Invoice not found")
        return invoice

    def _get_customer(self, customer_id: Optional[int], company_id: int) -> Customer:
        if not customer_id:
            raise HTTPException(status_code=400, detail="Customer is required")
        customer = (
            self.db.query(Customer)
            .filter(Customer.id == customer_id, Customer.company_id == company_id)
            .first()
        )
        if not customer:
            raise HTTPException(status_code=404, detail="Customer not found")
        return customer

    @staticmethod
    def apply_balance(invoice: Invoice, settle_status: bool = True) -> None:
        """Recompute amount_paid/amount_due from payments and settle the status

        With ``settle_status`` False the status is left as set by the caller.
        """
        paid = round_money(sum(p.amount or 0 for p in invoice.payments))
        invoice.amount_paid = paid
        invoice.amount_due = round_money(max((invoice.total or 0) - paid, 0))

        if not settle_status:
            if invoice.status == "paid":
                invoice.paid_at = invoice.paid_at or datetime.utcnow()
            else:
                invoice.paid_at = None
            return

        if (invoice.total or 0) > 0 and invoice.amount_due <= 0:
            invoice.status = "paid"
            invoice.paid_at = invoice.paid_at or datetime.utcnow()
        elif invoice.status == "paid":
            invoice.status = "sent"
            invoice.paid_at = None

    def create_invoice(self, data: InvoiceCreate, user: User) -> Invoice:
        customer = self._get_customer(data.customerId, user.company_id)

        if data.jobId:
            job = self.db.query(Job).filter(Job.id == data.jobId, Job.company_id == user.company_id).first()
            if not job:
                raise HTTPException(status_code=404, detail="Job not found")

        due_at = normalize_datetime(data.dueAt)
        if due_at and due_at < start_of_today():
            raise HTTPException(status_code=400, detail="Due date cannot be in the past")

        status = data.status or "draft"
        if status not in INVOICE_STATUSES:
            raise HTTPException(status_code=400, detail="Invalid invoice status")

        rows = _item_rows(data.items)
        totals = calculate_totals(rows, data.taxRate, data.discountAmount)
        issued_at = datetime.utcnow()

        invoice = Invoice(
            company_id=user.company_id,
            customer_id=customer.id,
            job_id=data.jobId,
            invoice_number=build_invoice_number(
                self.repo.next_sequence(self.db, user.company_id), customer.name, issued_at
            ),
            status=status,
            subtotal=totals["subtotal"],
            tax_rate=data.taxRate,
            tax_amount=totals["tax_amount"],
            discount_amount=round_money(data.discountAmount),
            total=totals["total"],
            amount_paid=0,
            amount_due=totals["total"],
            currency=data.currency or "GBP",
            issued_at=issued_at,
            due_at=due_at,
            notes=data.notes,
            terms=data.terms,
            footer=data.footer,
        )
        self.db.add(invoice)
        self.db.flush()
        self.repo.replace_items(self.db, invoice, rows)
        self.db.commit()
        self.db.refresh(invoice)
        logger.info(f"🧾 Invoice {invoice.invoice_number} created for company {user.company_id}")
        return invoice

    def update_invoice(self, invoice_id: int, data: InvoiceUpdate, user: User) -> Invoice:
        invoice = self.get_invoice(invoice_id, user)

        if data.status is not None:
            if data.status not in INVOICE_STATUSES:
                raise HTTPException(status_code=400, detail="Invalid invoice status")
            invoice.status = data.status
        if data.dueAt is not None:
            invoice.due_at = normalize_datetime(data.dueAt)
        for field, column in (("notes", "notes"), ("terms", "terms"), ("footer", "footer")):
            value = getattr(data, field)
            if value is not None:
                setattr(invoice, column, value)
        if data.taxRate is not None:
            invoice.tax_rate = data.taxRate
        if data.discountAmount is not None:
            invoice.discount_amount = round_money(data.discountAmount)

        if data.items is not None:
            rows = _item_rows(data.items)
            self.repo.replace_items(self.db, invoice, rows)
        else:
            rows = [
                {"amount": item.amount or 0, "taxable": item.taxable is not False}
                for item in invoice.items
            ]

        totals = calculate_totals(rows, invoice.tax_rate, invoice.discount_amount)
        invoice.subtotal = totals["subtotal"]
        invoice.tax_amount = totals["tax_amount"]
        invoice.total = totals["total"]
        self.apply_balance(invoice, settle_status=data.status is None)

        self.db.commit()
        self.db.refresh(invoice)
        return invoice

    def delete_invoice(self, invoice_id: int, user: User) -> dict:
        invoice = self.get_invoice(invoice_id, user)
        self.repo.delete_invoice(self.db, invoice)
        logger.info(f"🗑️ Invoice {invoice_id} deleted by user {user.id}")
        return {"success": True, "message": "Invoice deleted"}

    def prepare_reminder(self, invoice_id: int, user: User) -> tuple[Invoice, int]:
        """Check an invoice can be chased; returns (invoice, whole days past due)"""
        invoice = self.get_invoice(invoice_id, user)
        if invoice.status == "paid":
            raise HTTPException(status_code=400, detail="Invoice is already paid")
        if invoice.status == "cancelled":
            raise HTTPException(status_code=400, detail="Cannot send a reminder for a cancelled invoice")
        if not invoice.customer or not invoice.customer.email:
            raise HTTPException(status_code=400, detail="Customer email not found")

        days_overdue = 0
        if invoice.due_at:
            days_overdue = max(0, (datetime.utcnow() - normalize_datetime(invoice.due_at)).days)
        return invoice, days_overdue

    def record_payment(self, invoice_id: int, data: PaymentCreate, user: User) -> Invoice:
        invoice = self.get_invoice(invoice_id, user)
        if data.amount is None or data.amount <= 0:
            raise HTTPException(status_code=400, detail="Payment amount must be greater than zero")
        if invoice.status == "cancelled":
            raise HTTPException(status_code=400, detail="Cannot record a payment on a cancelled invoice")

        self.repo.add_payment(
            self.db,
            invoice,
            amount=round_money(data.amount),
            method=data.method,
            reference=data.reference,
            paid_at=normalize_datetime(data.paidAt) or datetime.utcnow(),
        )
        self.apply_balance(invoice)
        self.db.commit()
        self.db.refresh(invoice)
        logger.info(f"💷 Payment of {data.amount:.2f} recorded on invoice {invoice.id}")
        return invoice

    def generate_from_job(self, job: Job, user: User, data: Optional[GenerateInvoiceRequest] = None) -> Invoice:
        """One invoice per job, priced from the job's actual or estimated price"""
        data = data or GenerateInvoiceRequest()
        if not job.customer_id:
            raise HTTPException(status_code=400, detail="Job must have a customer")
        if self.repo.get_invoice_for_job(self.db, job.id, user.company_id):
            raise HTTPException(status_code=400, detail="Invoice already exists for this job")

        customer = self._get_customer(job.customer_id, user.company_id)
        price = round_money(job.actual_price or job.estimated_price or 0)
        rows = [
            {
                "title": job.title or "Cleaning Service",
                "description": job.description or "",
                "quantity": 1,
                "unit_price": price,
                "amount": price,
                "taxable": True,
            }
        ]
        totals = calculate_totals(rows, data.taxRate, data.discountAmount)
        issued_at = datetime.utcnow()

        invoice = Invoice(
            company_id=user.company_id,
            customer_id=customer.id,
            job_id=job.id,
            invoice_number=build_invoice_number(
                self.repo.next_sequence(self.db, user.company_id), customer.name, issued_at
            ),
            status="draft",
            subtotal=totals["subtotal"],
            tax_rate=data.taxRate,
            tax_amount=totals["tax_amount"],
            discount_amount=round_money(data.discountAmount),
            total=totals["total"],
            amount_paid=0,
            amount_due=totals["total"],
            currency=job.currency or "GBP",
            issued_at=issued_at,
            due_at=issued_at + timedelta(days=data.dueInDays),
            notes=data.notes or f"Invoice for {job.title}",
            terms=data.terms or f"Payment is due within {data.dueInDays} days of the invoice date.",
            footer=data.footer or "Thank you for your business!",
        )
        self.db.add(invoice)
        self.db.flush()
        self.repo.replace_items(self.db, invoice, rows)
        self.db.commit()
        self.db.refresh(invoice)
        logger.info(f"🧾 Invoice {invoice.invoice_number} generated from job {job.id}")
        return invoice
