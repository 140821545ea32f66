"""Password hashing and user session tokens.

Tokens are HS256 JWTs carrying the user id twice (`sub`, plus `id` for
clients that read the original claim name) and the email.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional
from jose import JWTError, jwt
from passlib.context import CryptContext
from advisor.core.config import get_settings

JWT_ALGORITHM = "HS256"

# bcrypt only looks at the first 72 bytes; signup rejects longer passwords
BCRYPT_MAX_BYTES = 72

# Claim names that may carry the user id, in lookup order
USER_ID_CLAIMS = ("sub", "id", "user_id")

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    if len(password.encode("utf-8")) > BCRYPT_MAX_BYTES:
        raise ValueError(f"password longer than {BCRYPT_MAX_BYTES} bytes")
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Constant-time check; malformed hashes count as a mismatch."""
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        return False


def create_access_token(claims: dict, secret: str = None, exp_minutes: int = None) -> str:
    """Sign `claims` with expiry, issued-at, issuer and audience added."""
    settings = get_settings()
    now = datetime.now(timezone.utc)
    token_claims = {
        **claims,
        "exp": now + timedelta(minutes=exp_minutes or settings.jwt_exp_minutes),
        "iat": now,
        "iss": settings.jwt_issuer,
        "aud": settings.jwt_audience,
    }
    return jwt.encode(token_claims, secret or settings.jwt_secret, algorithm=JWT_ALGORITHM)


def create_user_token(user_id: str, email: str = None) -> str:
    claims = {"sub": user_id, "id": user_id}
    if email:
        claims["email"] = email
    return create_access_token(claims)


def decode_access_token(token: str) -> Optional[dict]:
    """Verified claims, or None for a bad signature, expiry, issuer or audience."""
    settings = get_settings()
    try:
        return jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[JWT_ALGORITHM],
            audience=settings.jwt_audience,
            issuer=settings.jwt_issuer
        )
    except JWTError:
        return None


def user_id_from_claims(claims: dict) -> Optional[str]:
    for name in USER_ID_CLAIMS:
        value = claims.get(name)
        if isinstance(value, str) and value:
            return value
    return None
