"""Static Anacortes <-> Orcas Island ferry timetable."""

from __future__ import annotations

from datetime import datetime, timedelta, tzinfo

from commute_display.logic.time_normalizer import at_minutes, minutes_of_day
from commute_display.models import FERRY_ANACORTES, FERRY_ORCAS, ArrivalCandidate

# Departure times in the timetable's native zone (Pacific), as (hour, minute).
ANACORTES_DEPARTURES = (
    (5, 30),
    (7, 30),
    (10, 5),
    (11, 55),
    (15, 20),
    (20, 40),
)
ORCAS_DEPARTURES = (
    (6, 15),
    (8, 15),
    (10, 50),
    (12, 40),
    (16, 5),
    (21, 25),
)

# Fixed Pacific -> Central shift. Not DST-aware: both zones shift together.
SOURCE_OFFSET_HOURS = 2

DIRECTIONS = {
    FERRY_ANACORTES: {
        "times": ANACORTES_DEPARTURES,
        "name": "Anacortes To Orcas Island",
        "location": "Anacortes, WA",
        "headsign": "Orcas Island",
        "line_name": "Anacortes-Orcas",
    },
    FERRY_ORCAS: {
        "times": ORCAS_DEPARTURES,
        "name": "Orcas Island To Anacortes",
        "location": "Orcas Island, WA",
        "headsign": "Anacortes",
        "line_name": "Orcas-Anacortes",
    },
}


def _direction(direction: str) -> dict:
    try:
        return DIRECTIONS[direction]
    except KeyError as exc:
        raise ValueError(f"Unknown ferry direction: {direction}") from exc


def shifted_minutes(hour: int, minute: int) -> int:
    """Timetable wall-clock time shifted into the canonical zone, in minutes of day."""
    return ((hour + SOURCE_OFFSET_HOURS) % 24) * 60 + minute


def generate_schedule(direction: str, now: datetime, zone: tzinfo) -> list[datetime]:
    """Return the next occurrence of every departure for ``direction``, sorted."""
    entries = _direction(direction)["times"]
    today = now.astimezone(zone).date()
    current_minutes = minutes_of_day(now, zone)

    departures = []
    for hour, minute in entries:
        minutes = shifted_minutes(hour, minute)
        day = today if minutes > current_minutes else today + timedelta(days=1)
        departures.append(at_minutes(day, minutes, zone))

    departures.sort()
    return departures


def schedule_candidates(
    direction: str,
    stop_name: str,
    now: datetime,
    zone: tzinfo,
) -> list[ArrivalCandidate]:
    """Timetable departures shaped like any other transit candidate."""
    info = _direction(direction)
    return [
        ArrivalCandidate(
            stop_name=stop_name,
            arrival_instant=instant,
            departure_instant=instant,
            headsign=info["headsign"],
            line_name=info["line_name"],
            is_live=False,
        )
        for instant in generate_schedule(direction, now, zone)
    ]


def default_name(direction: str) -> str:
    return _direction(direction)["name"]


def default_location(direction: str) -> str:
    return _direction(direction)["location"]


__all__ = [
    "ANACORTES_DEPARTURES",
    "ORCAS_DEPARTURES",
    "SOURCE_OFFSET_HOURS",
    "generate_schedule",
    "schedule_candidates",
    "shifted_minutes",
    "default_name",
    "default_location",
]
