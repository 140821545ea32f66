"""Current-user profile and preferences."""
from typing import Any, List, Optional

from fastapi import APIRouter, Body, Depends, status
from pydantic import ValidationError

from advisor.api.deps import api_error, get_current_user
from advisor.core.error_codes import ErrorCode
from advisor.core.logging import get_logger
from advisor.db.repo.users_repo import UsersRepo
from advisor.schemas import CamelModel, PublicUser, UserPreferences

logger = get_logger(__name__)

router = APIRouter()

users_repo = UsersRepo()


class PreferencesUpdate(CamelModel):
    """Lenient update: anything omitted becomes empty."""
    crypto_assets: Optional[List[str]] = None
    investor_type: Optional[str] = None
    content_types: Optional[List[str]] = None

    def to_preferences(self) -> UserPreferences:
        return UserPreferences(
            crypto_assets=self.crypto_assets or [],
            investor_type=self.investor_type or "",
            content_types=self.content_types or [],
        )


@router.get("/me")
async def get_me(user: dict = Depends(get_current_user)):
    """Profile of the authenticated user (never includes the password hash)."""
    row = users_repo.get_user(user["user_id"])
    if not row:
        raise api_error(status.HTTP_404_NOT_FOUND, ErrorCode.NOT_FOUND, "User not found")
    return {"ok": True, "user": PublicUser.from_row(row).to_wire()}


@router.post("/preferences")
async def save_preferences(body: Any = Body(None), user: dict = Depends(get_current_user)):
    """Replace the authenticated user's preferences."""
    try:
        update = PreferencesUpdate.model_validate(body or {})
    except ValidationError:
        raise api_error(status.HTTP_400_BAD_REQUEST, ErrorCode.VALIDATION_ERROR, "Invalid preferences payload")

    row = users_repo.update_preferences(user["user_id"], update.to_preferences())
    if not row:
        raise api_error(status.HTTP_404_NOT_FOUND, ErrorCode.NOT_FOUND, "User not found")

    logger.info("Preferences saved", extra={"user_id": user["user_id"]})
    return {"ok": True, "user": PublicUser.from_row(row).to_wire()}
