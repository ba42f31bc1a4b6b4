"""Event log router - audit trail of job activity"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import Job, User
from ...shared.validators import normalize_datetime
from .repository import EventLogRepository
from .schemas import JobEventCreate, JobEventResponse, to_event_response

router = APIRouter(prefix="/event-log", tags=["Event Log"])


@router.get("", response_model=list[JobEventResponse])
async def get_events(
    jobId: Optional[int] = Query(None),
    eventType: Optional[str] = Query(None),
    actorId: Optional[int] = Query(None),
    startDate: Optional[datetime] = Query(None),
    endDate: Optional[datetime] = Query(None),
    limit: int = Query(100, ge=1, le=500),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    events = EventLogRepository.get_events(
        db,
        current_user.company_id,
        job_id=jobId,
        event_type=eventType,
        actor_id=actorId,
        start_date=normalize_datetime(startDate),
        end_date=normalize_datetime(endDate),
        limit=limit,
    )
    return [to_event_response(e) for e in events]


@router.post("", response_model=JobEventResponse, status_code=201)
async def create_event(
    data: JobEventCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if not data.jobId or not data.type:
        raise HTTPException(status_code=400, detail="jobId and type are required")

    job = db.query(Job).filter(Job.id == data.jobId, Job.company_id == current_user.company_id).first()
    if not job:
        raise HTTPException(status_code=404, detail="Job not found")

    event = EventLogRepository.record(
        db, job.id, data.type, message=data.message, actor_id=current_user.id, meta=data.meta
    )
    db.commit()
    db.refresh(event)
    return to_event_response(event)
