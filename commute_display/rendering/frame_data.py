"""Data structures for rendering frames."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime, tzinfo

from commute_display.models import POINT_TO_POINT_KINDS, StopResult
from commute_display.rendering.formatting import NOT_AVAILABLE, format_clock, format_duration

LIVE = "LIVE"
SCHEDULED = "SCHEDULED"
LAST_CALL = "LAST_CALL"
DURATION = "DURATION"
UNKNOWN = "UNKNOWN"


@dataclass(frozen=True)
class StopRow:
    """Single stop line for display."""

    label: str
    primary_text: str
    secondary_text: str
    status: str


@dataclass(frozen=True)
class FrameData:
    """Frame data for the renderer."""

    rows: list[StopRow]
    clock_text: str


def build_row(result: StopResult, zone: tzinfo) -> StopRow:
    if result.kind in POINT_TO_POINT_KINDS:
        minutes = result.estimated_duration_minutes
        return StopRow(
            label=result.stop.name,
            primary_text=format_duration(minutes),
            secondary_text="",
            status=UNKNOWN if minutes is None else DURATION,
        )

    if result.next_arrival_instant is None:
        return StopRow(result.stop.name, NOT_AVAILABLE, "", UNKNOWN)

    primary = format_clock(result.next_arrival_instant, zone)
    if result.is_next_near_last and result.last_stop_instant is not None:
        secondary = f"Last {format_clock(result.last_stop_instant, zone)}"
        return StopRow(result.stop.name, primary, secondary, LAST_CALL)

    status = LIVE if result.next_is_live else SCHEDULED
    return StopRow(result.stop.name, primary, "", status)


def build_frame_data(results: Sequence[StopResult], now: datetime, zone: tzinfo) -> FrameData:
    """Project the latest results into display rows, in configured stop order."""
    return FrameData(
        rows=[build_row(result, zone) for result in results],
        clock_text=format_clock(now, zone),
    )


__all__ = [
    "LIVE",
    "SCHEDULED",
    "LAST_CALL",
    "DURATION",
    "UNKNOWN",
    "StopRow",
    "FrameData",
    "build_row",
    "build_frame_data",
]
