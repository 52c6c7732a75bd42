from .auth import AdminLoginRequest, JoinTeamRequest, Token, TeamToken
from .admin import CsvImportRequest, ImportResponse, RemovedResponse, ResetSummary, DraftEventPublic
from .draft import (
    TeamPublic,
    PlayerPublic,
    AuctionPublic,
    NominationRequest,
    BidRequest,
    BidResponse,
    FinalizeRequest,
    FinalizeResponse,
    SweepResponse,
    QuietHoursResponse,
    BudgetResponse,
    DraftStateResponse,
)
from .settings import DraftSettingsUpdate, DraftSettingsPublic

__all__ = [
    "AdminLoginRequest",
    "JoinTeamRequest",
    "Token",
    "TeamToken",
    "CsvImportRequest",
    "ImportResponse",
    "RemovedResponse",
    "ResetSummary",
    "DraftEventPublic",
    "TeamPublic",
    "PlayerPublic",
    "AuctionPublic",
    "NominationRequest",
    "BidRequest",
    "BidResponse",
    "FinalizeRequest",
    "FinalizeResponse",
    "SweepResponse",
    "QuietHoursResponse",
    "BudgetResponse",
    "DraftStateResponse",
    "DraftSettingsUpdate",
    "DraftSettingsPublic",
]
