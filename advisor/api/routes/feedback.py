"""Like/dislike feedback on dashboard items."""
from typing import Any, Literal

from fastapi import APIRouter, Body, Depends, status
from pydantic import ConfigDict, Field, ValidationError, field_validator

from advisor.api.deps import api_error, get_current_user
from advisor.core.error_codes import ErrorCode
from advisor.core.logging import get_logger
from advisor.db.repo.feedback_repo import FeedbackRepo
from advisor.schemas import CamelModel

logger = get_logger(__name__)

router = APIRouter()

feedback_repo = FeedbackRepo()


class FeedbackRequest(CamelModel):
    model_config = ConfigDict(strict=True)

    section: Literal["news", "prices", "insight", "meme"]
    item_id: str = Field(..., min_length=1, max_length=500)
    vote: int

    @field_validator("vote", mode="before")
    @classmethod
    def _vote_is_plus_or_minus_one(cls, value):
        # true == 1 in Python; only the integers 1 and -1 are votes
        if isinstance(value, bool) or value not in (1, -1):
            raise ValueError("vote must be 1 or -1")
        return value


class FeedbackRecord(CamelModel):
    id: str
    user_id: str
    section: str
    item_id: str
    vote: int
    created_at: str
    updated_at: str


@router.post("")
async def submit_feedback(body: Any = Body(None), user: dict = Depends(get_current_user)):
    """Store a vote for the authenticated user (kept for future model training)."""
    try:
        request = FeedbackRequest.model_validate(body if isinstance(body, dict) else {})
    except ValidationError:
        raise api_error(status.HTTP_400_BAD_REQUEST, ErrorCode.VALIDATION_ERROR, "Invalid feedback payload")

    record = feedback_repo.create_feedback(
        user_id=user["user_id"],
        section=request.section,
        item_id=request.item_id,
        vote=request.vote,
    )
    logger.info("Feedback stored: %s %+d", request.section, request.vote, extra={"user_id": user["user_id"]})
    return {"ok": True, "feedback": FeedbackRecord(**record).to_wire()}
