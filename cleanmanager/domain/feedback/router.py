"""Feedback router - public endpoints behind the customer's feedback link"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...database import get_db
from ...rate_limiter import rate_limiter_for
from .schemas import FeedbackSubmission
from .service import FeedbackService

router = APIRouter(prefix="/public/feedback", tags=["Feedback"])

public_rate_limit = rate_limiter_for("api")


def get_feedback_service(db: Session = Depends(get_db)) -> FeedbackService:
    return FeedbackService(db)


@router.get("/{token}", dependencies=[Depends(public_rate_limit)])
async def get_feedback_form(token: str, service: FeedbackService = Depends(get_feedback_service)):
    return service.get_feedback_form(token)


@router.post("/{token}", dependencies=[Depends(public_rate_limit)])
async def submit_feedback(
    token: str,
    data: FeedbackSubmission,
    service: FeedbackService = Depends(get_feedback_service),
):
    service.submit_feedback(token, data)
    return {"success": True, "message": "Thank you for your feedback!"}
