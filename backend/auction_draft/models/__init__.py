from .team import Team
from .player import Player
from .auction import Auction
from .settings import DraftSettings
from .event import DraftEvent

__all__ = [
    "Team",
    "Player",
    "Auction",
    "DraftSettings",
    "DraftEvent",
]
