"""Feedback service - customer ratings collected through the emailed feedback link"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session, joinedload

from ...models import Company, Job
from ..event_log.repository import EventLogRepository
from .schemas import FeedbackSubmission

logger = logging.getLogger(__name__)


class FeedbackService:
    def __init__(self, db: Session):
        self.db = db
        self.events = EventLogRepository()

    def get_job_by_token(self, token: str) -> Job:
        job = None
        if token:
            job = (
                self.db.query(Job)
                .options(joinedload(Job.customer), joinedload(Job.assignee))
                .filter(Job.feedback_token == token)
                .first()
            )
        if not job:
            raise HTTPException(status_code=404, detail="Invalid or expired feedback link")
        return job

    def get_feedback_form(self, token: str) -> dict:
        job = self.get_job_by_token(token)
        if job.feedback_submitted_at:
            return {
                "alreadySubmitted": True,
                "message": "Thank you! You've already submitted feedback for this job.",
            }

        company = self.db.get(Company, job.company_id)
        staff_name: Optional[str] = None
        if job.assignee:
            staff_name = f"{job.assignee.first_name} {job.assignee.last_name}"
        return {
            "alreadySubmitted": False,
            "jobId": job.id,
            "jobTitle": job.title,
            "completedAt": job.completed_at,
            "customerName": job.customer.name if job.customer else None,
            "staffName": staff_name,
            "companyName": company.name if company else None,
        }

    def submit_feedback(self, token: str, data: FeedbackSubmission) -> Job:
        job = self.get_job_by_token(token)
        if data.rating is None or not 1 <= data.rating <= 5:
            raise HTTPException(status_code=400, detail="Rating must be between 1 and 5")
        if job.feedback_submitted_at:
            raise HTTPException(status_code=400, detail="Feedback has already been submitted for this job")

        job.quality_rating = data.rating
        job.feedback_submitted_at = datetime.utcnow()
        job.customer_feedback = (data.feedback or "").strip() or None
        self.events.record(
            self.db,
            job.id,
            "feedback_received",
            f"Customer rated the job {data.rating}/5",
            meta={"rating": data.rating},
        )
        self.db.commit()
        logger.info(f"⭐ Feedback received for job {job.id}")
        return job
