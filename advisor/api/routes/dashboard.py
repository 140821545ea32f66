"""Per-user dashboard."""
from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse

from advisor.api.deps import api_error, get_current_user, get_dashboard_assembler
from advisor.core.error_codes import ErrorCode
from advisor.core.logging import get_logger
from advisor.db.repo.users_repo import UsersRepo
from advisor.services.dashboard import DashboardAssembler

logger = get_logger(__name__)

router = APIRouter()

users_repo = UsersRepo()


@router.get("")
async def get_dashboard(
    request: Request,
    user: dict = Depends(get_current_user),
    assembler: DashboardAssembler = Depends(get_dashboard_assembler),
):
    """
    Prices, news, AI insight and meme for the caller.

    Upstream failures degrade silently to fallbacks. Only a broken adapter
    contract yields a 500, and even then the body carries a complete
    fallback bundle.
    """
    record = users_repo.get_user_record(user["user_id"])
    if not record:
        raise api_error(status.HTTP_404_NOT_FOUND, ErrorCode.NOT_FOUND, "User not found")

    outcome = await assembler.build(record)
    if outcome.ok:
        return outcome.payload.to_wire()

    request_id = getattr(request.state, "request_id", "")
    return JSONResponse(
        status_code=500,
        content={
            "ok": False,
            "status": "ERROR",
            "error": {
                "code": ErrorCode.DASHBOARD_BUILD_FAILED.value,
                "message": outcome.error,
                "request_id": request_id,
            },
            "request_id": request_id,
            "fallback": outcome.payload.to_wire(),
        },
        headers={"X-Request-ID": request_id} if request_id else None,
    )
