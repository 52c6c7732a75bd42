from datetime import datetime

from pydantic import BaseModel, Field

from ..enums import TokenRole
from .draft import TeamPublic


class AdminLoginRequest(BaseModel):
    code: str = Field(min_length=1)


class JoinTeamRequest(BaseModel):
    draft_id: str = Field(min_length=1)
    code: str = Field(min_length=1)


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    role: TokenRole
    expires_at: datetime


class TeamToken(Token):
    team: TeamPublic

