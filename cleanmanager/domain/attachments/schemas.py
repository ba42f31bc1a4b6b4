"""Attachment schemas"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from ...models import Attachment


class AttachmentResponse(BaseModel):
    id: int
    fileName: str
    fileType: Optional[str] = None
    mimeType: Optional[str] = None
    fileSize: Optional[int] = None
    category: Optional[str] = None
    jobId: Optional[int] = None
    customerId: Optional[int] = None
    employeeId: Optional[int] = None
    invoiceId: Optional[int] = None
    uploadedBy: Optional[int] = None
    createdAt: Optional[datetime] = None


def to_attachment_response(attachment: Attachment) -> AttachmentResponse:
    return AttachmentResponse(
        id=attachment.id,
        fileName=attachment.file_name,
        fileType=attachment.file_type,
        mimeType=attachment.mime_type,
        fileSize=attachment.file_size,
        category=attachment.category,
        jobId=attachment.job_id,
        customerId=attachment.customer_id,
        employeeId=attachment.employee_id,
        invoiceId=attachment.invoice_id,
        uploadedBy=attachment.uploaded_by,
        createdAt=attachment.created_at,
    )
