"""Company repository - Database operations for the tenant record"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import Company


class CompanyRepository:
    @staticmethod
    def get_company(db: Session, company_id: int) -> Optional[Company]:
        return db.query(Company).filter(Company.id == company_id).first()

    @staticmethod
    def email_taken(db: Session, email: str, exclude_company_id: int) -> bool:
        return (
            db.query(Company.id)
            .filter(Company.email == email, Company.id != exclude_company_id)
            .first()
            is not None
        )

    @staticmethod
    def update_company(db: Session, company: Company, **updates) -> Company:
        for key, value in updates.items():
            setattr(company, key, value)
        db.commit()
        db.refresh(company)
        return company
