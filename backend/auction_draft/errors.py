"""Draft error taxonomy.

Services raise these and the API layer maps them onto HTTP responses. State
conflicts are expected whenever several callers touch the same auction; they
are ordinary control flow for the caller, who re-fetches and may retry the
user action. Invariant violations mean a race slipped past a guard: the
surrounding transaction is rolled back and the failure is logged for review.
"""

from fastapi import status


class DraftError(ValueError):
    code = "draft_error"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.code)

    @property
    def message(self) -> str:
        return str(self)


class InvalidInput(DraftError):
    code = "invalid_input"


class NotFound(DraftError):
    code = "not_found"
    status_code = status.HTTP_404_NOT_FOUND


class BidRejected(DraftError):
    code = "bid_rejected"


class NoRosterSpace(BidRejected):
    code = "no_roster_space"


class BidTooLow(BidRejected):
    code = "bid_too_low"


class InsufficientBudget(BidRejected):
    code = "insufficient_budget"


class StateConflict(DraftError):
    code = "state_conflict"
    status_code = status.HTTP_409_CONFLICT


class AuctionEnded(StateConflict):
    code = "auction_ended"


class AuctionClosed(StateConflict):
    code = "auction_closed"


class AlreadyDrafted(StateConflict):
    code = "already_drafted"


class DuplicateAuction(StateConflict):
    code = "duplicate_auction"


class NotExpiredYet(StateConflict):
    code = "not_expired_yet"


class BidConflict(StateConflict):
    code = "bid_conflict"


class DraftHasData(StateConflict):
    code = "draft_has_data"


class InvariantViolation(DraftError):
    code = "invariant_violation"
    status_code = status.HTTP_409_CONFLICT


class RosterOverflow(InvariantViolation):
    code = "roster_overflow"


class BudgetOverdraw(InvariantViolation):
    code = "budget_overdraw"
