from ..services.finalization_service import FinalizeOutcome
from ..services.quiet_hours_service import QuietHoursResult


def auction_closed_payload(outcome: FinalizeOutcome) -> dict:
    return {
        "type": "auction_closed",
        "auction_id": outcome.auction_id,
        "status": outcome.status.value,
        "player_id": outcome.player_id,
        "team_id": outcome.team_id,
        "amount": outcome.amount,
    }


def quiet_hours_payload(result: QuietHoursResult) -> dict:
    return {
        "type": "quiet_hours",
        "in_quiet_window": result.in_quiet_window,
        "paused": result.paused,
        "resumed": result.resumed,
    }
