from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .policy import TimerPolicy

MINUTES_PER_DAY = 24 * 60


def resolve_timezone(name: str) -> ZoneInfo:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError(f"Unknown timezone: {name}") from exc


def minute_of_day(now: datetime, tz: ZoneInfo) -> int:
    """Minute of day of a naive-UTC instant, seen from ``tz``."""
    local = now.replace(tzinfo=timezone.utc).astimezone(tz)
    return local.hour * 60 + local.minute


@dataclass(frozen=True)
class QuietWindow:
    """Recurring daily window ``[start, end)`` in minutes, possibly wrapping midnight.

    ``start == end`` is an empty window.
    """

    start_minute: int
    end_minute: int
    tz: ZoneInfo

    def __post_init__(self) -> None:
        for value in (self.start_minute, self.end_minute):
            if not 0 <= value < MINUTES_PER_DAY:
                raise ValueError(f"Minute of day out of range: {value}")

    @classmethod
    def from_policy(cls, policy: TimerPolicy) -> QuietWindow:
        return cls(
            start_minute=policy.quiet_start_minute,
            end_minute=policy.quiet_end_minute,
            tz=resolve_timezone(policy.quiet_timezone),
        )

    def contains_minute(self, minute: int) -> bool:
        if self.start_minute == self.end_minute:
            return False
        if self.start_minute < self.end_minute:
            return self.start_minute <= minute < self.end_minute
        return minute >= self.start_minute or minute < self.end_minute

    def contains(self, now: datetime) -> bool:
        return self.contains_minute(minute_of_day(now, self.tz))


def in_quiet_window(policy: TimerPolicy, now: datetime) -> bool:
    if not policy.quiet_hours_enabled:
        return False
    return QuietWindow.from_policy(policy).contains(now)
