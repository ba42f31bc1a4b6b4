"""Invoice repository - Database operations for invoices, items and payments"""

import re
from datetime import datetime
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session, selectinload

from ...models import Customer, Invoice, InvoiceItem, Payment

INVOICE_SEQUENCE = re.compile(r"^INV-(\d+)")


class InvoiceRepository:
    @staticmethod
    def get_invoices(
        db: Session,
        company_id: int,
        customer_id: Optional[int] = None,
        job_id: Optional[int] = None,
        statuses: Optional[list[str]] = None,
        search: Optional[str] = None,
        from_date: Optional[datetime] = None,
        to_date: Optional[datetime] = None,
        limit: Optional[int] = None,
    ) -> list[Invoice]:
        query = (
            db.query(Invoice)
            .options(selectinload(Invoice.customer))
            .filter(Invoice.company_id == company_id)
        )
        if customer_id:
            query = query.filter(Invoice.customer_id == customer_id)
        if job_id:
            query = query.filter(Invoice.job_id == job_id)
        if statuses:
            query = query.filter(Invoice.status.in_(statuses))
        if search:
            pattern = f"%{search}%"
            query = query.outerjoin(Customer, Invoice.customer_id == Customer.id).filter(
                or_(
                    Invoice.invoice_number.ilike(pattern),
                    Customer.first_name.ilike(pattern),
                    Customer.last_name.ilike(pattern),
                    Customer.email.ilike(pattern),
                )
            )
        if from_date:
            query = query.filter(Invoice.issued_at >= from_date)
        if to_date:
            query = query.filter(Invoice.issued_at <= to_date)

        query = query.order_by(Invoice.issued_at.desc(), Invoice.id.desc())
        if limit:
            query = query.limit(limit)
        return query.all()

    @staticmethod
    def get_invoice_by_id(db: Session, invoice_id: int, company_id: int) -> Optional[Invoice]:
        return (
            db.query(Invoice)
            .options(selectinload(Invoice.items), selectinload(Invoice.payments))
            .filter(Invoice.id == invoice_id, Invoice.company_id == company_id)
            .first()
        )

    @staticmethod
    def get_invoice_for_job(db: Session, job_id: int, company_id: int) -> Optional[Invoice]:
        return (
            db.query(Invoice)
            .filter(Invoice.job_id == job_id, Invoice.company_id == company_id)
            .first()
        )

    @staticmethod
    def next_sequence(db: Session, company_id: int) -> int:
        """Sequence number following the company's most recent invoice"""
        last = (
            db.query(Invoice.invoice_number)
            .filter(Invoice.company_id == company_id)
            .order_by(Invoice.id.desc())
            .first()
        )
        if not last:
            return 1
        match = INVOICE_SEQUENCE.match(last[0] or "")
        if match:
            return int(match.group(1)) + 1
        return db.query(Invoice).filter(Invoice.company_id == company_id).count() + 1

    @staticmethod
    def replace_items(db: Session, invoice: Invoice, items: list[dict]) -> None:
        invoice.items.clear()
        db.flush()
        for index, item in enumerate(items):
            invoice.items.append(
                InvoiceItem(
                    title=item["title"],
                    description=item.get("description"),
                    quantity=item["quantity"],
                    unit_price=item["unit_price"],
                    amount=item["amount"],
                    taxable=item.get("taxable", True),
                    sort_order=index,
                )
            )

    @staticmethod
    def add_payment(db: Session, invoice: Invoice, **payment_data) -> Payment:
        payment = Payment(company_id=invoice.company_id, invoice_id=invoice.id, **payment_data)
        invoice.payments.append(payment)
        return payment

    @staticmethod
    def delete_invoice(db: Session, invoice: Invoice) -> None:
        db.delete(invoice)
        db.commit()
