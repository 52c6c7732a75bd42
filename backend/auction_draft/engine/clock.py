from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone

from .policy import TimerPolicy


def utcnow() -> datetime:
    """Naive UTC wall clock; every stored timestamp uses this representation."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


@dataclass(frozen=True)
class AuctionClock:
    """Deadline state of a single auction.

    The clock never reads the wall clock itself: every transition takes the
    caller's ``now`` so a whole operation is evaluated against one instant.
    While paused the remaining duration is stored rather than derived, which
    keeps it intact across any number of pause/resume cycles.
    """

    ends_at: datetime
    paused: bool = False
    paused_at: datetime | None = None
    paused_remaining_seconds: float | None = None

    @classmethod
    def on_nominate(cls, now: datetime, policy: TimerPolicy) -> AuctionClock:
        return cls(ends_at=now + timedelta(seconds=policy.nomination_seconds))

    @classmethod
    def from_auction(cls, auction) -> AuctionClock:
        return cls(
            ends_at=auction.ends_at,
            paused=auction.paused,
            paused_at=auction.paused_at,
            paused_remaining_seconds=auction.paused_remaining_seconds,
        )

    def on_bid(self, now: datetime, policy: TimerPolicy) -> AuctionClock:
        # The deadline only ever moves forward.
        floor = now + timedelta(seconds=policy.bid_seconds)
        ends_at = max(self.ends_at, floor)
        if not self.paused:
            return replace(self, ends_at=ends_at)
        remaining = max(self.paused_remaining_seconds or 0.0, float(policy.bid_seconds))
        return replace(self, ends_at=ends_at, paused_remaining_seconds=remaining)

    def accepts_bid(self, now: datetime) -> bool:
        if self.paused:
            return (self.paused_remaining_seconds or 0.0) > 0
        return now <= self.ends_at

    def is_expired(self, now: datetime, closed_at: datetime | None = None) -> bool:
        return not self.paused and closed_at is None and now >= self.ends_at

    def remaining_seconds(self, now: datetime) -> float:
        if self.paused:
            return max(0.0, self.paused_remaining_seconds or 0.0)
        return max(0.0, (self.ends_at - now).total_seconds())

    def pause(self, now: datetime) -> AuctionClock:
        if self.paused:
            return self
        return replace(
            self,
            paused=True,
            paused_at=now,
            paused_remaining_seconds=self.remaining_seconds(now),
        )

    def resume(self, now: datetime) -> AuctionClock:
        if not self.paused:
            return self
        remaining = max(0.0, self.paused_remaining_seconds or 0.0)
        return AuctionClock(ends_at=now + timedelta(seconds=remaining))

    def as_values(self) -> dict:
        return {
            "ends_at": self.ends_at,
            "paused": self.paused,
            "paused_at": self.paused_at,
            "paused_remaining_seconds": self.paused_remaining_seconds,
        }
