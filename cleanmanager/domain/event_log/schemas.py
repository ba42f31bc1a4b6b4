"""Event log schemas"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel


class JobEventCreate(BaseModel):
    jobId: Optional[int] = None
    type: Optional[str] = None
    message: Optional[str] = None
    meta: Optional[dict[str, Any]] = None


class JobEventResponse(BaseModel):
    id: int
    jobId: int
    type: str
    actorId: Optional[int] = None
    message: Optional[str] = None
    meta: Optional[dict[str, Any]] = None
    createdAt: Optional[datetime] = None


def to_event_response(event) -> JobEventResponse:
    return JobEventResponse(
        id=event.id,
        jobId=event.job_id,
        type=event.type,
        actorId=event.actor_id,
        message=event.message,
        meta=event.meta,
        createdAt=event.created_at,
    )
