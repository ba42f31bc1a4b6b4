"""
Attachment service - files stored on local disk under UPLOAD_DIR

Files live at ``UPLOAD_DIR/<company_id>/<uuid>.<ext>``; the database row keeps
the relative storage path, never a client supplied name.
"""

import logging
import os
import uuid
from datetime import datetime
from pathlib import Path
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ... import config
from ...models import Attachment, Customer, Employee, Invoice, Job, User

logger = logging.getLogger(__name__)

DANGEROUS_FILENAME_CHARS = ["..", "/", "\\", "<", ">", ":", '"', "|", "?", "*"]
DOCUMENT_TYPES = {
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/vnd.ms-excel",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "text/plain",
    "text/csv",
}


def classify_file_type(mime_type: Optional[str]) -> str:
    if mime_type and mime_type.startswith("image/"):
        return "image"
    if mime_type in DOCUMENT_TYPES:
        return "document"
    return "other"


def validate_filename(filename: Optional[str]) -> str:
    if not filename:
        raise HTTPException(status_code=400, detail="File name is required")
    if any(ord(char) < 32 or ord(char) == 127 for char in filename):
        logger.warning(f"❌ Control character detected in filename: {filename!r}")
        raise HTTPException(status_code=400, detail="Invalid filename - contains control characters")
    for char in DANGEROUS_FILENAME_CHARS:
        if char in filename:
            logger.warning(f"❌ Dangerous character '{char}' detected in filename: '{filename}'")
            raise HTTPException(
                status_code=400, detail=f"Invalid filename - contains dangerous character '{char}'"
            )
    if len(filename) > 255:
        raise HTTPException(status_code=400, detail="Filename too long - maximum 255 characters")
    return filename


def storage_root() -> Path:
    return Path(config.UPLOAD_DIR)


class AttachmentService:
    def __init__(self, db: Session):
        self.db = db

    def get_attachments(self, user: User, **filters) -> list[Attachment]:
        query = self.db.query(Attachment).filter(Attachment.company_id == user.company_id)
        columns = {
            "job_id": Attachment.job_id,
            "customer_id": Attachment.customer_id,
            "employee_id": Attachment.employee_id,
            "invoice_id": Attachment.invoice_id,
            "category": Attachment.category,
            "file_type": Attachment.file_type,
        }
        for name, value in filters.items():
            if value is not None:
                query = query.filter(columns[name] == value)
        return query.order_by(Attachment.created_at.desc(), Attachment.id.desc()).all()

    def get_attachment(self, attachment_id: int, user: User) -> Attachment:
        attachment = (
            self.db.query(Attachment)
            .filter(Attachment.id == attachment_id, Attachment.company_id == user.company_id)
            .first()
        )
        if not attachment:
            raise HTTPException(status_code=404, detail="Attachment not found")
        return attachment

    def _check_links(self, user: User, links: dict[str, Optional[int]]) -> None:
        models = {
            "job_id": (Job, "Job"),
            "customer_id": (Customer, "Customer"),
            "employee_id": (Employee, "Employee"),
            "invoice_id": (Invoice, "Invoice"),
        }
        for field, value in links.items():
            if value is None:
                continue
            model, label = models[field]
            found = (
                self.db.query(model.id)
                .filter(model.id == value, model.company_id == user.company_id)
                .first()
            )
            if not found:
                raise HTTPException(status_code=404, detail=f"{label} not found")

    def create_attachment(
        self,
        user: User,
        filename: Optional[str],
        mime_type: Optional[str],
        contents: bytes,
        category: Optional[str] = None,
        **links: Optional[int],
    ) -> Attachment:
        name = validate_filename(filename)
        if not contents:
            raise HTTPException(status_code=400, detail="File is empty")
        if len(contents) > config.MAX_UPLOAD_BYTES:
            limit_mb = config.MAX_UPLOAD_BYTES / (1024 * 1024)
            raise HTTPException(
                status_code=400,
                detail=f"File size exceeds {limit_mb:g}MB limit.",
            )
        self._check_links(user, links)

        ext = Path(name).suffix.lower()
        relative_path = f"{user.company_id}/{uuid.uuid4().hex}{ext}"
        target = storage_root() / relative_path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(contents)

        attachment = Attachment(
            company_id=user.company_id,
            file_name=name,
            file_type=classify_file_type(mime_type),
            mime_type=mime_type,
            file_size=len(contents),
            storage_path=relative_path,
            category=category,
            uploaded_by=user.id,
            created_at=datetime.utcnow(),
            **links,
        )
        self.db.add(attachment)
        self.db.commit()
        self.db.refresh(attachment)
        logger.info(f"📎 Stored attachment {attachment.id} ({len(contents)} bytes) for company {user.company_id}")
        return attachment

    def file_path(self, attachment: Attachment) -> Path:
        path = storage_root() / attachment.storage_path
        if not path.is_file():
            raise HTTPException(status_code=404, detail="File not found")
        return path

    def delete_attachment(self, attachment_id: int, user: User) -> dict:
        attachment = self.get_attachment(attachment_id, user)
        path = storage_root() / attachment.storage_path

        self.db.delete(attachment)
        self.db.commit()

        try:
            os.remove(path)
        except OSError as e:
            logger.warning(f"⚠️ Could not remove attachment file {path}: {e}")

        return {"success": True, "message": "Attachment deleted"}
