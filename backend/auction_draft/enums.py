from enum import Enum


class FinalizeStatus(str, Enum):
    AWARDED = "AWARDED"
    NO_BIDS = "NO_BIDS"
    ALREADY_CLOSED = "ALREADY_CLOSED"


class AuctionState(str, Enum):
    OPEN = "open"
    PAUSED = "paused"
    EXPIRED = "expired"
    CLOSED = "closed"


class EventType(str, Enum):
    NOMINATE = "NOMINATE"
    BID = "BID"
    FINALIZE = "FINALIZE"
    QUIET_PAUSE = "QUIET_PAUSE"
    QUIET_RESUME = "QUIET_RESUME"
    SETTINGS = "SETTINGS"
    IMPORT_TEAMS = "IMPORT_TEAMS"
    REPLACE_TEAMS = "REPLACE_TEAMS"
    IMPORT_PLAYERS = "IMPORT_PLAYERS"
    CLEAR_UNDRAFTED_PLAYERS = "CLEAR_UNDRAFTED_PLAYERS"
    RESET = "RESET"


class PrimaryPosition(str, Enum):
    CATCHER = "C"
    FIRST_BASE = "1B"
    SECOND_BASE = "2B"
    SHORTSTOP = "SS"
    THIRD_BASE = "3B"
    RIGHT_FIELD = "RF"
    CENTER_FIELD = "CF"
    LEFT_FIELD = "LF"
    STARTING_PITCHER = "SP"
    SWING_PITCHER = "SP/RP"
    RELIEF_PITCHER = "RP"
    CLOSER = "CP"


class SecondaryPosition(str, Enum):
    CATCHER = "C"
    FIRST_BASE = "1B"
    SECOND_BASE = "2B"
    SHORTSTOP = "SS"
    THIRD_BASE = "3B"
    RIGHT_FIELD = "RF"
    CENTER_FIELD = "CF"
    LEFT_FIELD = "LF"
    INFIELD = "IF"
    OUTFIELD = "OF"
    UTILITY = "IF/OF"
    FIRST_BASE_OUTFIELD = "1B/OF"


class TokenRole(str, Enum):
    ADMIN = "admin"
    TEAM = "team"
