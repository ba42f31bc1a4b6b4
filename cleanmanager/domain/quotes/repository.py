"""Quote repository - Database operations for quotes and their items"""

from datetime import datetime
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session, selectinload

from ...models import Customer, Quote, QuoteItem


class QuoteRepository:
    @staticmethod
    def get_quotes(
        db: Session,
        company_id: int,
        status: Optional[str] = None,
        customer_id: Optional[int] = None,
        search: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> list[Quote]:
        query = (
            db.query(Quote)
            .options(selectinload(Quote.customer), selectinload(Quote.items))
            .filter(Quote.company_id == company_id)
        )

        if status and status != "all":
            if status == "pending":
                query = query.filter(Quote.status.in_(("sent", "pending")))
            else:
                query = query.filter(Quote.status == status)
        if customer_id:
            query = query.filter(Quote.customer_id == customer_id)
        if search:
            pattern = f"%{search}%"
            query = query.outerjoin(Customer, Quote.customer_id == Customer.id).filter(
                or_(
                    Quote.quote_number.ilike(pattern),
                    Quote.title.ilike(pattern),
                    Customer.first_name.ilike(pattern),
                    Customer.last_name.ilike(pattern),
                    Customer.email.ilike(pattern),
                )
            )
        if start_date:
            query = query.filter(Quote.created_at >= start_date)
        if end_date:
            query = query.filter(Quote.created_at <= end_date)

        return query.order_by(Quote.created_at.desc(), Quote.id.desc()).all()

    @staticmethod
    def get_quote_by_id(db: Session, quote_id: int, company_id: int) -> Optional[Quote]:
        return (
            db.query(Quote)
            .options(selectinload(Quote.items), selectinload(Quote.customer))
            .filter(Quote.id == quote_id, Quote.company_id == company_id)
            .first()
        )

    @staticmethod
    def get_public_quote(db: Session, quote_id: int) -> Optional[Quote]:
        """Unscoped lookup for token-authenticated customer actions"""
        return db.query(Quote).filter(Quote.id == quote_id).first()

    @staticmethod
    def next_quote_number(db: Session, company_id: int, year: int) -> str:
        sequence = db.query(Quote).filter(Quote.company_id == company_id).count() + 1
        while True:
            number = f"Q-{year}-{sequence:04d}"
            taken = (
                db.query(Quote.id)
                .filter(Quote.company_id == company_id, Quote.quote_number == number)
                .first()
            )
            if not taken:
                return number
            sequence += 1

    @staticmethod
    def replace_items(db: Session, quote: Quote, items: list[dict]) -> None:
        quote.items.clear()
        db.flush()
        for index, item in enumerate(items):
            quote.items.append(
                QuoteItem(
                    title=item["title"],
                    description=item.get("description"),
                    quantity=item["quantity"],
                    unit_price=item["unit_price"],
                    amount=item["amount"],
                    sort_order=index,
                )
            )

    @staticmethod
    def delete_quote(db: Session, quote: Quote) -> None:
        db.delete(quote)
        db.commit()
