"""Onboarding: first-run preference capture."""
from typing import Any, List

from fastapi import APIRouter, Body, Depends, status
from pydantic import ConfigDict, ValidationError

from advisor.api.deps import api_error, get_current_user
from advisor.core.error_codes import ErrorCode
from advisor.core.logging import get_logger
from advisor.db.repo.users_repo import UsersRepo
from advisor.schemas import CamelModel, PublicUser, UserPreferences

logger = get_logger(__name__)

router = APIRouter()

users_repo = UsersRepo()

INVALID_PAYLOAD_MESSAGE = (
    "Invalid payload. Expecting { cryptoAssets: string[], investorType: string, contentTypes: string[] }"
)


class OnboardingRequest(CamelModel):
    model_config = ConfigDict(strict=True)

    crypto_assets: List[str]
    investor_type: str
    content_types: List[str]


@router.put("/{user_id}")
async def complete_onboarding(
    user_id: str,
    body: Any = Body(None),
    user: dict = Depends(get_current_user),
):
    """Store onboarding answers. A user may only update their own record."""
    if user["user_id"] != user_id:
        raise api_error(status.HTTP_403_FORBIDDEN, ErrorCode.FORBIDDEN, "You are not allowed to update this user")

    try:
        answers = OnboardingRequest.model_validate(body if isinstance(body, dict) else {})
    except ValidationError:
        raise api_error(status.HTTP_400_BAD_REQUEST, ErrorCode.VALIDATION_ERROR, INVALID_PAYLOAD_MESSAGE)

    preferences = UserPreferences(
        crypto_assets=answers.crypto_assets,
        investor_type=answers.investor_type,
        content_types=answers.content_types,
    )
    row = users_repo.update_preferences(user_id, preferences)
    if not row:
        raise api_error(status.HTTP_404_NOT_FOUND, ErrorCode.NOT_FOUND, "User not found")

    logger.info("Onboarding completed", extra={"user_id": user_id})
    return {"ok": True, "user": PublicUser.from_row(row).to_wire()}
