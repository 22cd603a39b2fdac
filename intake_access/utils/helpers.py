"""General utility helper functions."""

from __future__ import annotations

from datetime import UTC, datetime

__all__ = ["format_duration", "seconds_until"]


def format_duration(total_seconds: int | float | None) -> str:
    """Return a human-friendly Hh Mm Ss string for a duration in seconds.

    Examples:
      65 -> "1m 5s"
      3605 -> "1h 0m 5s" (hours, minutes, seconds)
      59 -> "59s"
    """
    if total_seconds is None:
        return "unknown"
    seconds = int(total_seconds)
    if seconds < 60:
        return f"{seconds}s"
    minutes, sec = divmod(seconds, 60)
    if minutes < 60:
        return f"{minutes}m {sec}s"
    hours, minutes = divmod(minutes, 60)
    if hours < 24:
        return f"{hours}h {minutes}m {sec}s"
    days, hours = divmod(hours, 24)
    return f"{days}d {hours}h {minutes}m {sec}s"


def seconds_until(moment: datetime | None, now: datetime | None = None) -> float | None:
    """Seconds remaining until ``moment`` (negative once passed); None if unknown."""
    if moment is None:
        return None
    current = now or datetime.now(UTC)
    return (moment - current).total_seconds()
