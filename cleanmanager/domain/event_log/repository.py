"""Event log repository - job activity records"""

from datetime import datetime
from typing import Any, Optional

from sqlalchemy.orm import Session

from ...models import Job, JobEvent


class EventLogRepository:
    @staticmethod
    def record(
        db: Session,
        job_id: int,
        event_type: str,
        message: Optional[str] = None,
        actor_id: Optional[int] = None,
        meta: Optional[dict[str, Any]] = None,
    ) -> JobEvent:
        """Add an event to the session; the caller commits"""
        event = JobEvent(
            job_id=job_id,
            type=event_type,
            message=message,
            actor_id=actor_id,
            meta=meta,
            created_at=datetime.utcnow(),
        )
        db.add(event)
        return event

    @staticmethod
    def get_events(
        db: Session,
        company_id: int,
        job_id: Optional[int] = None,
        event_type: Optional[str] = None,
        actor_id: Optional[int] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        limit: int = 100,
    ) -> list[JobEvent]:
        query = db.query(JobEvent).join(Job, JobEvent.job_id == Job.id).filter(Job.company_id == company_id)
        if job_id:
            query = query.filter(JobEvent.job_id == job_id)
        if event_type:
            query = query.filter(JobEvent.type == event_type)
        if actor_id:
            query = query.filter(JobEvent.actor_id == actor_id)
        if start_date:
            query = query.filter(JobEvent.created_at >= start_date)
        if end_date:
            query = query.filter(JobEvent.created_at <= end_date)
        return query.order_by(JobEvent.created_at.desc(), JobEvent.id.desc()).limit(limit).all()

    @staticmethod
    def get_job_timeline(db: Session, job_id: int) -> list[JobEvent]:
        return (
            db.query(JobEvent)
            .filter(JobEvent.job_id == job_id)
            .order_by(JobEvent.created_at.asc(), JobEvent.id.asc())
            .all()
        )
