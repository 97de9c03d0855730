"""Extract the line-matching transit legs from a directions response."""

from __future__ import annotations

from datetime import datetime, tzinfo
import logging
from typing import Any

from commute_display.logic.time_normalizer import has_timestamp, is_live_timestamp, normalize_timestamp
from commute_display.models import BUS, TRAIN, ArrivalCandidate, BusStop, TrainStop

logger = logging.getLogger(__name__)

STATUS_OK = "OK"
TRAVEL_MODE_TRANSIT = "TRANSIT"


def response_ok(response: Any) -> bool:
    """True when the provider reported success and returned at least one route."""
    if not isinstance(response, dict):
        return False
    if response.get("status") != STATUS_OK:
        return False
    return bool(response.get("routes"))


def line_name(transit_details: dict) -> str:
    line = transit_details.get("line") or {}
    return line.get("short_name") or line.get("name") or ""


def _agency_names(transit_details: dict) -> list[str]:
    line = transit_details.get("line") or {}
    agencies = line.get("agencies") or transit_details.get("agencies") or []
    return [a.get("name") or "" for a in agencies if isinstance(a, dict)]


def matches_line(transit_details: dict, kind: str, route_filter: str) -> bool:
    """Bus: exact route number. Train: case-insensitive substring of line or agency."""
    name = line_name(transit_details)
    if kind == BUS:
        return name == route_filter
    if kind == TRAIN:
        needle = route_filter.lower()
        if needle in name.lower():
            return True
        line = transit_details.get("line") or {}
        if needle in (line.get("name") or "").lower():
            return True
        return any(needle in agency.lower() for agency in _agency_names(transit_details))
    return False


def iter_transit_steps(response: dict):
    """Yield every transit step's details across all routes, legs and steps."""
    for route in response.get("routes") or []:
        for leg in route.get("legs") or []:
            for step in leg.get("steps") or []:
                if not isinstance(step, dict):
                    continue
                if str(step.get("travel_mode", "")).upper() != TRAVEL_MODE_TRANSIT:
                    continue
                details = step.get("transit_details")
                if isinstance(details, dict):
                    yield details


def filter_matching_legs(response: Any, kind: str, route_filter: str) -> list[dict]:
    """Return the transit details of every step on the configured line.

    Steps whose departure carries neither a live value nor display text are dropped.
    """
    if not response_ok(response):
        return []

    legs = []
    for details in iter_transit_steps(response):
        if not matches_line(details, kind, route_filter):
            continue
        if not has_timestamp(details.get("departure_time")):
            logger.debug("Dropping %s step on %s with no departure time", kind, line_name(details))
            continue
        legs.append(details)
    return legs


def has_matching_route(response: Any, kind: str, route_filter: str) -> bool:
    if not response_ok(response):
        return False
    return any(matches_line(d, kind, route_filter) for d in iter_transit_steps(response))


def build_candidates(
    legs: list[dict],
    default_stop_name: str,
    zone: tzinfo,
    now: datetime,
) -> list[ArrivalCandidate]:
    """Normalize filtered legs into candidates keyed on the rider's departure time."""
    candidates = []
    for details in legs:
        departure = details.get("departure_time")
        instant = normalize_timestamp(departure, zone, reference=now)
        if instant is None:
            logger.debug("Dropping leg with unusable departure time %r", departure)
            continue
        departure_stop = details.get("departure_stop") or {}
        candidates.append(
            ArrivalCandidate(
                stop_name=departure_stop.get("name") or default_stop_name,
                arrival_instant=instant,
                departure_instant=instant,
                headsign=details.get("headsign") or "Unknown",
                line_name=line_name(details),
                is_live=is_live_timestamp(departure),
            )
        )
    return candidates


def extract_candidates(
    response: Any,
    stop: BusStop | TrainStop,
    zone: tzinfo,
    now: datetime,
) -> list[ArrivalCandidate]:
    """Filter and normalize a response for ``stop``; live candidates first, then by time."""
    legs = filter_matching_legs(response, stop.kind, stop.route_filter)
    candidates = build_candidates(legs, stop.name, zone, now)
    candidates.sort(key=lambda c: (not c.is_live, c.arrival_instant))
    return candidates


__all__ = [
    "STATUS_OK",
    "response_ok",
    "line_name",
    "matches_line",
    "iter_transit_steps",
    "filter_matching_legs",
    "has_matching_route",
    "build_candidates",
    "extract_candidates",
]
