"""FastAPI dependencies."""
from typing import Optional
from fastapi import Depends, HTTPException, status, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from advisor.core.config import DashboardConfig, get_settings
from advisor.core.error_codes import ErrorCode, get_error_message
from advisor.core.security import decode_access_token, user_id_from_claims
from advisor.services.dashboard import DashboardAssembler

security = HTTPBearer(auto_error=False)


def api_error(status_code: int, code: ErrorCode, message: Optional[str] = None) -> HTTPException:
    """HTTPException whose detail is rendered into the error envelope by main.py."""
    return HTTPException(
        status_code=status_code,
        detail={"code": code.value, "message": message or get_error_message(code)},
    )


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    request: Request = None
) -> dict:
    """
    Resolve the caller from `Authorization: Bearer <jwt>`.

    Tokens carry the user id as `sub` (and `id` for older clients).
    """
    if not credentials or not credentials.credentials:
        raise api_error(status.HTTP_401_UNAUTHORIZED, ErrorCode.AUTH_REQUIRED)

    payload = decode_access_token(credentials.credentials)
    if not payload:
        raise api_error(status.HTTP_401_UNAUTHORIZED, ErrorCode.AUTH_INVALID)

    user_id = user_id_from_claims(payload)
    if not user_id:
        raise api_error(status.HTTP_401_UNAUTHORIZED, ErrorCode.AUTH_INVALID, "Token is missing user id")

    if request:
        request.state.user_id = user_id

    return {"user_id": user_id, "email": payload.get("email")}


def get_dashboard_assembler() -> DashboardAssembler:
    """Assembler built from settings; overridden in tests."""
    return DashboardAssembler(DashboardConfig.from_settings(get_settings()))
