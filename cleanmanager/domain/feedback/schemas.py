"""Feedback schemas"""

from typing import Optional

from pydantic import BaseModel


class FeedbackSubmission(BaseModel):
    rating: Optional[int] = None
    feedback: Optional[str] = None
