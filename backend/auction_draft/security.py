import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from jose import JWTError, jwt

from .config import get_settings
from .enums import TokenRole

settings = get_settings()
ALGORITHM = "HS256"


def _matches(candidate: str | None, expected: str | None) -> bool:
    if not expected or not candidate:
        return False
    return secrets.compare_digest(candidate.encode("utf-8"), expected.encode("utf-8"))


def verify_admin_code(code: str | None) -> bool:
    return _matches(code, settings.admin_code)


def verify_cron_secret(secret: str | None) -> bool:
    return _matches(secret, settings.cron_secret)


def create_access_token(
    subject: Any,
    role: TokenRole,
    *,
    draft_id: str | None = None,
    expires_delta: Optional[timedelta] = None,
) -> tuple[str, datetime]:
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )
    to_encode = {"sub": str(subject), "role": role.value, "exp": expire}
    if draft_id:
        to_encode["draft_id"] = draft_id
    return jwt.encode(to_encode, settings.secret_key, algorithm=ALGORITHM), expire


def decode_token(token: str) -> dict[str, Any]:
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[ALGORITHM])
        return payload
    except JWTError as exc:
        raise ValueError("Token verification failed.") from exc
