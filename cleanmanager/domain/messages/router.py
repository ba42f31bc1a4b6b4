"""Message router"""

import logging
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ... import email_service
from ...auth import get_current_user
from ...database import get_db
from ...models import User
from .schemas import MessageCreate, MessageResponse, MessageUpdate, to_message_response
from .service import MessageService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/messages", tags=["Messages"])


def get_message_service(db: Session = Depends(get_db)) -> MessageService:
    return MessageService(db)


@router.get("", response_model=list[MessageResponse])
async def get_messages(
    type: Optional[Literal["inbox", "sent", "all"]] = Query(None),
    isRead: Optional[bool] = Query(None),
    jobId: Optional[int] = Query(None),
    current_user: User = Depends(get_current_user),
    service: MessageService = Depends(get_message_service),
):
    return [to_message_response(m) for m in service.get_messages(current_user, type, isRead, jobId)]


@router.post("", status_code=201)
async def create_message(
    data: MessageCreate,
    current_user: User = Depends(get_current_user),
    service: MessageService = Depends(get_message_service),
):
    message, recipients = service.create_message(data, current_user)

    emails_sent = 0
    if data.messageType == "email":
        subject = data.subject or "New message from your company"
        sender_name = f"{current_user.first_name} {current_user.last_name}"
        if current_user.company:
            sender_name = f"{sender_name} ({current_user.company.name})"
        for address, name in recipients:
            delivered = await email_service.send_best_effort(
                email_service.send_staff_message_email(address, name, sender_name, subject, data.body),
                f"staff message {message.id} to {address}",
            )
            emails_sent += int(delivered)

    response = to_message_response(message).model_dump()
    response["emailsSent"] = emails_sent
    return response


@router.get("/{message_id}", response_model=MessageResponse)
async def get_message(
    message_id: int,
    current_user: User = Depends(get_current_user),
    service: MessageService = Depends(get_message_service),
):
    return to_message_response(service.get_message(message_id, current_user))


@router.patch("/{message_id}", response_model=MessageResponse)
async def update_message(
    message_id: int,
    data: MessageUpdate,
    current_user: User = Depends(get_current_user),
    service: MessageService = Depends(get_message_service),
):
    return to_message_response(service.update_message(message_id, data, current_user))


@router.delete("/{message_id}")
async def delete_message(
    message_id: int,
    current_user: User = Depends(get_current_user),
    service: MessageService = Depends(get_message_service),
):
    return service.delete_message(message_id, current_user)
