"""Text projections of stop results for the display."""

from __future__ import annotations

from datetime import datetime, tzinfo

NOT_AVAILABLE = "N/A"


def format_clock(instant: datetime | None, zone: tzinfo) -> str:
    """12-hour wall clock in ``zone``, e.g. ``3:45 PM``."""
    if instant is None:
        return NOT_AVAILABLE
    local = instant.astimezone(zone)
    hour = local.hour % 12 or 12
    suffix = "AM" if local.hour < 12 else "PM"
    return f"{hour}:{local.minute:02d} {suffix}"


def format_duration(minutes: int | None) -> str:
    if minutes is None:
        return NOT_AVAILABLE
    return f"{minutes} min"


__all__ = ["NOT_AVAILABLE", "format_clock", "format_duration"]
