"""Message domain schemas"""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field

from ...models import Message


class MessageCreate(BaseModel):
    subject: Optional[str] = None
    body: Optional[str] = None
    recipientId: Optional[int] = None
    recipientIds: list[int] = Field(default_factory=list)
    recipientType: Optional[str] = None
    messageType: Literal["internal", "email"] = "internal"
    jobId: Optional[int] = None


class MessageUpdate(BaseModel):
    markAsRead: Optional[bool] = None
    status: Optional[str] = None


class MessageResponse(BaseModel):
    id: int
    senderId: Optional[int] = None
    senderType: Optional[str] = None
    senderName: Optional[str] = None
    recipientId: Optional[int] = None
    recipientType: Optional[str] = None
    subject: Optional[str] = None
    body: str
    messageType: Optional[str] = None
    status: Optional[str] = None
    jobId: Optional[int] = None
    jobTitle: Optional[str] = None
    isRead: bool = False
    readAt: Optional[datetime] = None
    sentAt: Optional[datetime] = None
    createdAt: Optional[datetime] = None


def to_message_response(message: Message) -> MessageResponse:
    sender = message.sender
    return MessageResponse(
        id=message.id,
        senderId=message.sender_id,
        senderType=message.sender_type,
        senderName=f"{sender.first_name} {sender.last_name}" if sender else None,
        recipientId=message.recipient_id,
        recipientType=message.recipient_type,
        subject=message.subject,
        body=message.body,
        messageType=message.message_type,
        status=message.status,
        jobId=message.job_id,
        jobTitle=message.job.title if message.job else None,
        isRead=message.read_at is not None,
        readAt=message.read_at,
        sentAt=message.sent_at,
        createdAt=message.created_at,
    )
