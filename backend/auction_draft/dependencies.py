from fastapi import Depends, Header, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from .database import get_session
from .enums import TokenRole
from .models import Team
from .security import decode_token, verify_admin_code

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/admin", auto_error=False)


def _decode_or_401(token: str) -> dict:
    try:
        return decode_token(token)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token.") from None


async def get_current_team(
    token: str | None = Depends(oauth2_scheme),
    session: AsyncSession = Depends(get_session),
) -> Team:
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Team token required.")

    payload = _decode_or_401(token)
    if payload.get("role") != TokenRole.TEAM.value or not payload.get("sub"):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Team token required.")

    team = await session.get(Team, payload["sub"])
    if not team:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Team not found.")
    return team


def require_admin(
    token: str | None = Depends(oauth2_scheme),
    x_admin_code: str | None = Header(default=None),
) -> None:
    # Scripts and cron jobs may send the raw admin code instead of a token.
    if verify_admin_code(x_admin_code):
        return
    if token:
        payload = _decode_or_401(token)
        if payload.get("role") == TokenRole.ADMIN.value:
            return
    raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized.")
