"""Message service - internal staff messaging and email broadcasts"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import Message, User
from .repository import MessageRepository
from .schemas import MessageCreate, MessageUpdate

logger = logging.getLogger(__name__)


class MessageService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = MessageRepository()

    def get_messages(
        self, user: User, box: Optional[str] = None, is_read: Optional[bool] = None, job_id: Optional[int] = None
    ) -> list[Message]:
        return self.repo.get_messages(self.db, user, box, is_read, job_id)

    def _find(self, message_id: int, user: User) -> Message:
        message = self.repo.get_message_by_id(self.db, message_id, user.company_id)
        if not message:
            raise HTTPException(status_code=404, detail="Message not found")
        return message

    def get_message(self, message_id: int, user: User) -> Message:
        """Fetch a message, marking it read when the caller is its recipient"""
        message = self._find(message_id, user)
        if (
            message.read_at is None
            and message.recipient_type == "user"
            and message.recipient_id == user.id
        ):
            message.read_at = datetime.utcnow()
            self.db.commit()
        return message

    def resolve_recipients(self, data: MessageCreate, user: User) -> tuple[str, list[tuple[str, str]]]:
        """Normalize the recipient type and collect (email, name) pairs of staff to email"""
        recipient_type = data.recipientType if data.recipientType in ("all", "employee") else "user"

        if recipient_type == "all":
            employees = self.repo.get_active_employees(self.db, user.company_id)
        elif recipient_type == "employee":
            ids = data.recipientIds or ([data.recipientId] if data.recipientId else [])
            if not ids:
                raise HTTPException(status_code=400, detail="Recipient is required")
            employees = self.repo.get_employees_by_ids(self.db, user.company_id, ids)
            if len(employees) != len(set(ids)):
                raise HTTPException(status_code=404, detail="Recipient not found")
        else:
            employees = []
            if data.recipientId:
                recipient = self.repo.get_company_user(self.db, data.recipientId, user.company_id)
                if not recipient:
                    raise HTTPException(status_code=404, detail="Recipient not found")
                return recipient_type, [(recipient.email, f"{recipient.first_name} {recipient.last_name}")]
            return recipient_type, []

        return recipient_type, [
            (e.email, f"{e.first_name} {e.last_name}") for e in employees if e.email
        ]

    def create_message(self, data: MessageCreate, user: User) -> tuple[Message, list[tuple[str, str]]]:
        if not data.body or not data.body.strip():
            raise HTTPException(status_code=400, detail="Message body is required")
        if data.jobId and not self.repo.job_in_company(self.db, data.jobId, user.company_id):
            raise HTTPException(status_code=404, detail="Job not found")

        recipient_type, recipients = self.resolve_recipients(data, user)
        if data.messageType == "email" and not recipients:
            raise HTTPException(status_code=400, detail="No staff email addresses found")

        single_recipient = data.recipientId
        if len(data.recipientIds) == 1:
            single_recipient = data.recipientIds[0]
        elif len(data.recipientIds) > 1:
            single_recipient = None
        now = datetime.utcnow()
        message = Message(
            company_id=user.company_id,
            sender_id=user.id,
            sender_type="user",
            recipient_id=single_recipient if recipient_type != "all" else None,
            recipient_type=recipient_type,
            subject=data.subject,
            body=data.body,
            message_type=data.messageType,
            status="sent",
            job_id=data.jobId,
            sent_at=now,
            created_at=now,
        )
        self.db.add(message)
        self.db.commit()
        logger.info(f"✉️ Message {message.id} sent to {recipient_type} by user {user.id}")
        return self._find(message.id, user), recipients

    def update_message(self, message_id: int, data: MessageUpdate, user: User) -> Message:
        message = self._find(message_id, user)
        if data.markAsRead is True:
            message.read_at = message.read_at or datetime.utcnow()
        elif data.markAsRead is False:
            message.read_at = None
        if data.status is not None:
            message.status = data.status
        self.db.commit()
        return self._find(message.id, user)

    def delete_message(self, message_id: int, user: User) -> dict:
        message = self._find(message_id, user)
        self.db.delete(message)
        self.db.commit()
        return {"success": True}
