from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ..config import get_settings
from ..database import get_session
from ..enums import TokenRole
from ..models import Team
from ..schemas.auth import AdminLoginRequest, JoinTeamRequest, TeamToken, Token
from ..schemas.draft import TeamPublic
from ..security import create_access_token, verify_admin_code

router = APIRouter(prefix="/auth", tags=["auth"])
settings = get_settings()


@router.post("/admin", response_model=Token)
async def admin_login(payload: AdminLoginRequest):
    if not settings.admin_code:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="ADMIN_CODE not set on server.")
    if not verify_admin_code(payload.code.strip()):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid admin code.")

    token_value, expires_at = create_access_token("admin", TokenRole.ADMIN)
    return Token(access_token=token_value, role=TokenRole.ADMIN, expires_at=expires_at)


@router.post("/join-team", response_model=TeamToken)
async def join_team(payload: JoinTeamRequest, session: AsyncSession = Depends(get_session)):
    statement = select(Team).where(
        Team.draft_id == payload.draft_id.strip(),
        Team.join_code == payload.code.strip(),
    )
    team = (await session.execute(statement)).scalar_one_or_none()
    if not team:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid team code.")

    token_value, expires_at = create_access_token(team.id, TokenRole.TEAM, draft_id=team.draft_id)
    return TeamToken(
        access_token=token_value,
        role=TokenRole.TEAM,
        expires_at=expires_at,
        team=TeamPublic.model_validate(team),
    )
