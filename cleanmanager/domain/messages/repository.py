"""Message repository"""

from typing import Optional

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session, joinedload

from ...models import Employee, Job, Message, User


class MessageRepository:
    @staticmethod
    def get_messages(
        db: Session,
        user: User,
        box: Optional[str] = None,
        is_read: Optional[bool] = None,
        job_id: Optional[int] = None,
    ) -> list[Message]:
        query = (
            db.query(Message)
            .options(joinedload(Message.sender), joinedload(Message.job))
            .filter(Message.company_id == user.company_id)
        )
        if box == "inbox":
            query = query.filter(
                or_(
                    and_(Message.recipient_type == "user", Message.recipient_id == user.id),
                    Message.recipient_type == "company",
                )
            )
        elif box == "sent":
            query = query.filter(Message.sender_id == user.id)

        if is_read is True:
            query = query.filter(Message.read_at.isnot(None))
        elif is_read is False:
            query = query.filter(Message.read_at.is_(None))
        if job_id:
            query = query.filter(Message.job_id == job_id)
        return query.order_by(Message.created_at.desc(), Message.id.desc()).all()

    @staticmethod
    def get_message_by_id(db: Session, message_id: int, company_id: int) -> Optional[Message]:
        return (
            db.query(Message)
            .options(joinedload(Message.sender), joinedload(Message.job))
            .filter(Message.id == message_id, Message.company_id == company_id)
            .first()
        )

    @staticmethod
    def get_active_employees(db: Session, company_id: int) -> list[Employee]:
        return (
            db.query(Employee)
            .filter(Employee.company_id == company_id, Employee.status == "active")
            .all()
        )

    @staticmethod
    def get_employees_by_ids(db: Session, company_id: int, ids: list[int]) -> list[Employee]:
        return (
            db.query(Employee)
            .filter(Employee.company_id == company_id, Employee.id.in_(ids))
            .all()
        )

    @staticmethod
    def get_company_user(db: Session, user_id: int, company_id: int) -> Optional[User]:
        return db.query(User).filter(User.id == user_id, User.company_id == company_id).first()

    @staticmethod
    def job_in_company(db: Session, job_id: int, company_id: int) -> bool:
        return db.query(Job.id).filter(Job.id == job_id, Job.company_id == company_id).first() is not None
