"""Admin bearer tokens (JWT). Tokens are minted by the admin login service; this side only verifies."""

from datetime import datetime, timedelta, timezone
from typing import Any

from jose import jwt

from stravasync.config import settings

ADMIN_ROLE = "admin"


def create_admin_token(subject: str = "admin", expires_minutes: int = 60) -> str:
    expire = datetime.now(timezone.utc) + timedelta(minutes=expires_minutes)
    payload = {"sub": subject, "role": ADMIN_ROLE, "exp": expire}
    result = jwt.encode(payload, settings.secret_key, algorithm=settings.jwt_algorithm)
    return result if isinstance(result, str) else result.decode("utf-8")


def decode_token(token: str) -> dict[str, Any]:
    """Raises jose.JWTError on bad signature or expiry."""
    return jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
