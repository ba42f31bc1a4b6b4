"""Customer repository - Database operations for customers"""

from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from ...models import Customer


class CustomerRepository:
    """Repository for customer database operations, always scoped to one company"""

    @staticmethod
    def get_customers(
        db: Session,
        company_id: int,
        search: Optional[str] = None,
        customer_type: Optional[str] = None,
        status: Optional[str] = None,
    ) -> list[Customer]:
        query = db.query(Customer).filter(Customer.company_id == company_id)

        if search:
            pattern = f"%{search}%"
            query = query.filter(
                or_(
                    Customer.first_name.ilike(pattern),
                    Customer.last_name.ilike(pattern),
                    Customer.email.ilike(pattern),
                    Customer.phone.ilike(pattern),
                )
            )
        if customer_type:
            query = query.filter(Customer.customer_type == customer_type)
        if status:
            query = query.filter(Customer.status == status)

        return query.order_by(Customer.created_at.desc(), Customer.id.desc()).all()

    @staticmethod
    def get_customer_by_id(db: Session, customer_id: int, company_id: int) -> Optional[Customer]:
        return (
            db.query(Customer)
            .filter(Customer.id == customer_id, Customer.company_id == company_id)
            .first()
        )

    @staticmethod
    def find_duplicate(
        db: Session,
        company_id: int,
        email: Optional[str] = None,
        phone: Optional[str] = None,
        exclude_id: Optional[int] = None,
    ) -> Optional[Customer]:
        """Another customer of the company with the same email or phone"""
        query = db.query(Customer).filter(Customer.company_id == company_id)
        if email:
            query = query.filter(Customer.email == email)
        elif phone:
            query = query.filter(Customer.phone == phone)
        else:
            return None
        if exclude_id is not None:
            query = query.filter(Customer.id != exclude_id)
        return query.first()

    @staticmethod
    def create_customer(db: Session, company_id: int, **customer_data) -> Customer:
        customer = Customer(company_id=company_id, **customer_data)
        db.add(customer)
        db.commit()
        db.refresh(customer)
        return customer

    @staticmethod
    def update_customer(db: Session, customer: Customer, **updates) -> Customer:
        for key, value in updates.items():
            if hasattr(customer, key):
                setattr(customer, key, value)
        db.commit()
        db.refresh(customer)
        return customer
