"""Authentication endpoints."""
from fastapi import APIRouter, status
from pydantic import BaseModel, Field
from advisor.api.deps import api_error
from advisor.core.error_codes import AdvisorError, ErrorCode
from advisor.core.logging import get_logger
from advisor.core.security import hash_password, verify_password, create_user_token
from advisor.db.repo.users_repo import UsersRepo
from advisor.schemas import PublicUser

logger = get_logger(__name__)

router = APIRouter()

users_repo = UsersRepo()


class SignupRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., min_length=1, max_length=72)  # bcrypt limit


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=1, max_length=255)


def _auth_response(user: dict) -> dict:
    return {
        "ok": True,
        "token": create_user_token(user["user_id"], user["email"]),
        "user": PublicUser.from_row(user).to_wire(),
    }


@router.post("/signup")
async def signup(body: SignupRequest):
    """Create a user with empty preferences and return a token."""
    email = body.email.strip().lower()
    if users_repo.get_user_by_email(email):
        raise api_error(status.HTTP_400_BAD_REQUEST, ErrorCode.CONFLICT, "User already exists")

    try:
        password_hash = hash_password(body.password)
    except ValueError:
        raise api_error(status.HTTP_400_BAD_REQUEST, ErrorCode.VALIDATION_ERROR, "Password is too long")

    try:
        user = users_repo.create_user(body.name.strip(), email, password_hash)
    except AdvisorError as e:
        # lost a race with a concurrent signup for the same email
        raise api_error(status.HTTP_400_BAD_REQUEST, e.error_code, e.message)

    logger.info("User signed up", extra={"user_id": user["user_id"]})
    return _auth_response(user)


@router.post("/login")
async def login(body: LoginRequest):
    """Verify credentials and return a token."""
    user = users_repo.get_user_by_email(body.email.strip().lower(), include_password=True)
    if not user or not verify_password(body.password, user["password_hash"]):
        logger.info("Login failed")
        raise api_error(status.HTTP_400_BAD_REQUEST, ErrorCode.AUTH_INVALID, "Invalid email or password")

    user.pop("password_hash", None)
    logger.info("User logged in", extra={"user_id": user["user_id"]})
    return _auth_response(user)
