"""Next-arrival selection and last-stop proximity for daily schedules."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timedelta, tzinfo
from typing import Sequence

from commute_display.logic.time_normalizer import at_minutes, minutes_of_day, next_occurrence
from commute_display.models import ArrivalCandidate

NEAR_LAST_MAX_SLOTS = 2


@dataclass(frozen=True)
class LastStop:
    """Latest scheduled departure and whether the next one is within reach of it."""

    instant: datetime | None
    is_near: bool


NO_LAST_STOP = LastStop(instant=None, is_near=False)


def _by_time_of_day(candidates: Sequence[ArrivalCandidate], zone: tzinfo) -> list[tuple[int, ArrivalCandidate]]:
    keyed = [(minutes_of_day(c.arrival_instant, zone), c) for c in candidates]
    keyed.sort(key=lambda pair: pair[0])
    return keyed


def select_next(
    candidates: Sequence[ArrivalCandidate],
    now: datetime,
    zone: tzinfo,
) -> ArrivalCandidate | None:
    """Pick the next relevant departure.

    Live candidates still ahead of ``now`` win on absolute time. Otherwise the
    list is treated as a daily schedule: the earliest time of day after now's,
    dated today, or the first time of day wrapped to tomorrow.
    """
    if not candidates:
        return None

    live = [c for c in candidates if c.is_live and c.arrival_instant > now]
    if live:
        return min(live, key=lambda c: c.arrival_instant)

    current = minutes_of_day(now, zone)
    keyed = _by_time_of_day(candidates, zone)
    for minutes, candidate in keyed:
        if minutes > current:
            return replace(candidate, arrival_instant=next_occurrence(minutes, now, zone))

    minutes, candidate = keyed[0]
    tomorrow = now.astimezone(zone).date() + timedelta(days=1)
    return replace(candidate, arrival_instant=at_minutes(tomorrow, minutes, zone))


def compute_last_stop(
    candidates: Sequence[ArrivalCandidate],
    next_arrival: ArrivalCandidate | None,
    now: datetime,
    zone: tzinfo,
) -> LastStop:
    """Latest time of day in the list, dated in the same rollover frame as ``next_arrival``."""
    if not candidates or next_arrival is None:
        return NO_LAST_STOP

    keyed = _by_time_of_day(candidates, zone)
    last_minutes = keyed[-1][0]
    next_minutes = minutes_of_day(next_arrival.arrival_instant, zone)

    if last_minutes > next_minutes:
        instant = next_occurrence(last_minutes, now, zone)
    else:
        tomorrow = now.astimezone(zone).date() + timedelta(days=1)
        instant = at_minutes(tomorrow, last_minutes, zone)

    slots = [minutes for minutes, _ in keyed]
    return LastStop(instant=instant, is_near=is_near_last(slots, next_minutes, last_minutes))


def is_near_last(slots: Sequence[int], next_minutes: int, last_minutes: int) -> bool:
    """Index distance between the next and last slot is at most two.

    ``slots`` must be sorted. Duplicate times resolve to their first position.
    """
    try:
        next_index = slots.index(next_minutes)
        last_index = slots.index(last_minutes)
    except ValueError:
        return False
    return abs(last_index - next_index) <= NEAR_LAST_MAX_SLOTS


__all__ = [
    "NEAR_LAST_MAX_SLOTS",
    "LastStop",
    "NO_LAST_STOP",
    "select_next",
    "compute_last_stop",
    "is_near_last",
]
