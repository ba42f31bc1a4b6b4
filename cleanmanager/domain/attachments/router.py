"""Attachment router - multipart uploads and downloads"""

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session

from ... import config
from ...auth import get_current_user
from ...database import get_db
from ...models import User
from .schemas import AttachmentResponse, to_attachment_response
from .service import AttachmentService

router = APIRouter(prefix="/attachments", tags=["Attachments"])


def get_attachment_service(db: Session = Depends(get_db)) -> AttachmentService:
    return AttachmentService(db)


@router.get("", response_model=list[AttachmentResponse])
async def get_attachments(
    jobId: Optional[int] = Query(None),
    customerId: Optional[int] = Query(None),
    employeeId: Optional[int] = Query(None),
    invoiceId: Optional[int] = Query(None),
    category: Optional[str] = Query(None),
    fileType: Optional[str] = Query(None),
    current_user: User = Depends(get_current_user),
    service: AttachmentService = Depends(get_attachment_service),
):
    attachments = service.get_attachments(
        current_user,
        job_id=jobId,
        customer_id=customerId,
        employee_id=employeeId,
        invoice_id=invoiceId,
        category=category,
        file_type=fileType,
    )
    return [to_attachment_response(a) for a in attachments]


@router.post("", response_model=AttachmentResponse, status_code=201)
async def upload_attachment(
    file: UploadFile = File(...),
    category: Optional[str] = Form(None),
    jobId: Optional[int] = Form(None),
    customerId: Optional[int] = Form(None),
    employeeId: Optional[int] = Form(None),
    invoiceId: Optional[int] = Form(None),
    current_user: User = Depends(get_current_user),
    service: AttachmentService = Depends(get_attachment_service),
):
    contents = await file.read(config.MAX_UPLOAD_BYTES + 1)
    attachment = service.create_attachment(
        current_user,
        file.filename,
        file.content_type,
        contents,
        category=category,
        job_id=jobId,
        customer_id=customerId,
        employee_id=employeeId,
        invoice_id=invoiceId,
    )
    return to_attachment_response(attachment)


@router.get("/{attachment_id}", response_model=AttachmentResponse)
async def get_attachment(
    attachment_id: int,
    current_user: User = Depends(get_current_user),
    service: AttachmentService = Depends(get_attachment_service),
):
    return to_attachment_response(service.get_attachment(attachment_id, current_user))


@router.get("/{attachment_id}/download")
async def download_attachment(
    attachment_id: int,
    current_user: User = Depends(get_current_user),
    service: AttachmentService = Depends(get_attachment_service),
):
    attachment = service.get_attachment(attachment_id, current_user)
    return FileResponse(
        service.file_path(attachment),
        media_type=attachment.mime_type or "application/octet-stream",
        filename=attachment.file_name,
    )


@router.delete("/{attachment_id}")
async def delete_attachment(
    attachment_id: int,
    current_user: User = Depends(get_current_user),
    service: AttachmentService = Depends(get_attachment_service),
):
    return service.delete_attachment(attachment_id, current_user)
