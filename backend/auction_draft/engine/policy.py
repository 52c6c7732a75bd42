from __future__ import annotations

from dataclasses import dataclass

DEFAULT_QUIET_START_MINUTE = 23 * 60
DEFAULT_QUIET_END_MINUTE = 8 * 60


@dataclass(frozen=True)
class TimerPolicy:
    """Draft-wide timer settings, loaded once at the start of an operation."""

    nomination_seconds: int
    bid_seconds: int
    quiet_hours_enabled: bool = False
    quiet_start_minute: int = DEFAULT_QUIET_START_MINUTE
    quiet_end_minute: int = DEFAULT_QUIET_END_MINUTE
    quiet_timezone: str = "America/New_York"

    @classmethod
    def from_settings_row(cls, row) -> TimerPolicy:
        return cls(
            nomination_seconds=row.nomination_seconds,
            bid_seconds=row.bid_seconds,
            quiet_hours_enabled=row.quiet_hours_enabled,
            quiet_start_minute=row.quiet_start_minute,
            quiet_end_minute=row.quiet_end_minute,
            quiet_timezone=row.quiet_timezone,
        )
