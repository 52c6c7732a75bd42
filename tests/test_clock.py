from datetime import datetime, timedelta

import pytest

from auction_draft.engine.clock import AuctionClock
from auction_draft.engine.policy import TimerPolicy

T0 = datetime(2026, 3, 2, 12, 0, 0)


def at(seconds: float) -> datetime:
    return T0 + timedelta(seconds=seconds)


@pytest.fixture
def policy() -> TimerPolicy:
    return TimerPolicy(nomination_seconds=600, bid_seconds=120)


class TestDeadline:
    """Nomination and bid deadlines."""

    def test_nomination_sets_deadline(self, policy):
        clock = AuctionClock.on_nominate(at(0), policy)
        assert clock.ends_at == at(600)
        assert clock.paused is False

    def test_bid_sequence_extends_deadline(self, policy):
        """Bids at 550 and 660 push the deadline to 670 and then 780."""
        clock = AuctionClock.on_nominate(at(0), policy)

        assert clock.accepts_bid(at(550))
        clock = clock.on_bid(at(550), policy)
        assert clock.ends_at == at(670)

        assert clock.accepts_bid(at(660))
        clock = clock.on_bid(at(660), policy)
        assert clock.ends_at == at(780)

    def test_early_bid_keeps_later_deadline(self, policy):
        clock = AuctionClock.on_nominate(at(0), policy).on_bid(at(10), policy)
        assert clock.ends_at == at(600)

    def test_deadline_is_monotonic(self, policy):
        clock = AuctionClock.on_nominate(at(0), policy)
        previous = clock.ends_at
        for second in (5, 300, 480, 590, 599, 650, 700):
            clock = clock.on_bid(at(second), policy)
            assert clock.ends_at >= previous
            assert clock.ends_at >= at(second + policy.bid_seconds)
            previous = clock.ends_at

    def test_bid_at_deadline_is_accepted(self, policy):
        clock = AuctionClock.on_nominate(at(0), policy)
        assert clock.accepts_bid(at(600))
        assert not clock.accepts_bid(at(600.5))

    def test_expiry(self, policy):
        clock = AuctionClock.on_nominate(at(0), policy)
        assert not clock.is_expired(at(599))
        assert clock.is_expired(at(600))
        assert not clock.is_expired(at(700), closed_at=at(650))

    def test_remaining_seconds_never_negative(self, policy):
        clock = AuctionClock.on_nominate(at(0), policy)
        assert clock.remaining_seconds(at(100)) == 500
        assert clock.remaining_seconds(at(900)) == 0


class TestPause:
    """Freezing and restoring the countdown."""

    def test_pause_freezes_remaining_time(self, policy):
        clock = AuctionClock.on_nominate(at(0), policy).pause(at(200))
        assert clock.paused
        assert clock.paused_at == at(200)
        assert clock.paused_remaining_seconds == 400
        assert clock.remaining_seconds(at(5000)) == 400
        assert not clock.is_expired(at(5000))

    def test_pause_is_idempotent(self, policy):
        clock = AuctionClock.on_nominate(at(0), policy).pause(at(200))
        assert clock.pause(at(300)) == clock

    def test_resume_restores_remaining_time(self, policy):
        clock = AuctionClock.on_nominate(at(0), policy).pause(at(200))
        resumed = clock.resume(at(10_000))
        assert not resumed.paused
        assert resumed.paused_at is None
        assert resumed.paused_remaining_seconds is None
        assert resumed.ends_at == at(10_400)

    def test_resume_without_pause_is_noop(self, policy):
        clock = AuctionClock.on_nominate(at(0), policy)
        assert clock.resume(at(50)) == clock

    def test_repeated_cycles_preserve_duration(self, policy):
        clock = AuctionClock.on_nominate(at(0), policy)
        clock = clock.pause(at(100)).resume(at(1_000))
        clock = clock.pause(at(1_200)).resume(at(5_000))
        # 100s elapsed before the first pause and 200s before the second.
        assert clock.ends_at == at(5_300)

    def test_overnight_pause_keeps_five_minutes(self):
        """Ten minutes left at 22:55, paused at 23:00, resumed at 08:00."""
        evening = datetime(2026, 3, 2, 22, 55)
        clock = AuctionClock(ends_at=evening + timedelta(minutes=10))

        paused = clock.pause(datetime(2026, 3, 2, 23, 0))
        morning = datetime(2026, 3, 3, 8, 0)
        resumed = paused.resume(morning)

        assert resumed.remaining_seconds(morning) >= 300
        assert not resumed.is_expired(morning)

    def test_bid_while_paused_tops_up_frozen_time(self, policy):
        clock = AuctionClock.on_nominate(at(0), policy).pause(at(550))
        assert clock.paused_remaining_seconds == 50
        assert clock.accepts_bid(at(9_000))

        bid = clock.on_bid(at(9_000), policy)
        assert bid.paused
        assert bid.paused_remaining_seconds == 120
        assert bid.resume(at(20_000)).ends_at == at(20_120)

    def test_paused_clock_with_no_time_left_rejects_bids(self, policy):
        clock = AuctionClock.on_nominate(at(0), policy).pause(at(700))
        assert clock.paused_remaining_seconds == 0
        assert not clock.accepts_bid(at(701))


def test_as_values_round_trips_into_columns(policy):
    clock = AuctionClock.on_nominate(at(0), policy).pause(at(60))
    assert clock.as_values() == {
        "ends_at": at(600),
        "paused": True,
        "paused_at": at(60),
        "paused_remaining_seconds": 540,
    }
