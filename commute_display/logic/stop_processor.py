"""Per-stop pipeline: fetch, filter, normalize, select and emit a StopResult."""

from __future__ import annotations

import asyncio
from datetime import datetime, tzinfo
import logging
import math
from typing import Any

from commute_display.data.cached_responses import CacheMissError, load_cached_response
from commute_display.data.directions_client import DirectionsClient, DirectionsClientError
from commute_display.logic.arrivals import compute_last_stop, select_next
from commute_display.logic.ferry_schedule import schedule_candidates
from commute_display.logic.route_filter import extract_candidates, has_matching_route, response_ok
from commute_display.models import (
    ArrivalCandidate,
    BusStop,
    FerryStop,
    PointToPointStop,
    StopConfig,
    StopResult,
    TrainStop,
)

logger = logging.getLogger(__name__)

SOURCE_LIVE = "live"
SOURCE_CACHE = "cache"
SOURCE_SCHEDULE = "schedule"


class InvalidScheduleError(Exception):
    """Raised when the static timetable yields no departures."""


def _status_error(response: Any) -> str:
    status = response.get("status") if isinstance(response, dict) else None
    return f"Provider status {status or 'missing'}"


def resolve_times(
    stop: StopConfig,
    candidates: list[ArrivalCandidate],
    now: datetime,
    zone: tzinfo,
    source: str | None,
) -> StopResult:
    """Run selection and last-stop proximity over a prepared candidate list."""
    next_arrival = select_next(candidates, now, zone)
    last_stop = compute_last_stop(candidates, next_arrival, now, zone)
    return StopResult(
        stop=stop,
        candidates=tuple(candidates),
        next_arrival_instant=next_arrival.arrival_instant if next_arrival else None,
        last_stop_instant=last_stop.instant,
        is_next_near_last=last_stop.is_near,
        source=source,
    )


def process_transit_response(
    stop: BusStop | TrainStop,
    response: Any,
    now: datetime,
    zone: tzinfo,
    source: str | None = SOURCE_LIVE,
) -> StopResult:
    """Turn a bus or train directions response into a StopResult."""
    if not response_ok(response):
        logger.info("No stop times found for %s (%s) - %s", stop.name, stop.kind, _status_error(response))
        return StopResult.empty(stop, error=_status_error(response), source=source)

    candidates = extract_candidates(response, stop, zone, now)
    if candidates:
        logger.info("Stop times found for %s (%s): %d times", stop.name, stop.kind, len(candidates))
    else:
        logger.info("No stop times found for %s (%s) - no matching routes", stop.name, stop.kind)
    return resolve_times(stop, candidates, now, zone, source)


def process_ferry_stop(stop: FerryStop, now: datetime, zone: tzinfo) -> StopResult:
    """Build a StopResult from the static timetable for the stop's direction."""
    candidates = schedule_candidates(stop.direction, stop.name, now, zone)
    if not candidates:
        raise InvalidScheduleError(f"Ferry timetable for {stop.direction} produced no departures")
    return resolve_times(stop, candidates, now, zone, SOURCE_SCHEDULE)


def route_duration_minutes(response: Any) -> int | None:
    """Total duration of the first route, in whole minutes."""
    if not response_ok(response):
        return None
    legs = response["routes"][0].get("legs") or []
    seconds = 0
    for leg in legs:
        duration = (leg.get("duration") or {}).get("value")
        if duration is None:
            return None
        seconds += duration
    if not legs:
        return None
    return math.floor(seconds / 60 + 0.5)


def process_point_to_point_response(
    stop: PointToPointStop,
    response: Any,
    source: str | None = SOURCE_LIVE,
) -> StopResult:
    """Bike, walk and drive stops only report a travel duration."""
    minutes = route_duration_minutes(response)
    if minutes is None:
        error = _status_error(response) if not response_ok(response) else "Route has no duration"
        logger.info("Request unsuccessful for %s (%s) - %s", stop.name, stop.kind, error)
        return StopResult.empty(stop, error=error, source=source)

    logger.info("Travel time found for %s (%s): %d min", stop.name, stop.kind, minutes)
    return StopResult(stop=stop, estimated_duration_minutes=minutes, source=source)


def _usable(stop: StopConfig, response: Any) -> bool:
    if isinstance(stop, (BusStop, TrainStop)):
        return has_matching_route(response, stop.kind, stop.route_filter)
    return response_ok(response)


def _load_cache(stop: BusStop | TrainStop | PointToPointStop, cache_dir: str) -> dict[str, Any]:
    if not stop.cache_file:
        raise CacheMissError(f"No cache configured for {stop.name}")
    response = load_cached_response(cache_dir, stop.cache_file)
    if not _usable(stop, response):
        raise CacheMissError(f"Cached response for {stop.name} has no matching route")
    return response


async def fetch_response(
    stop: BusStop | TrainStop | PointToPointStop,
    client: DirectionsClient,
    cache_dir: str,
) -> tuple[Any, str]:
    """Fetch live data for ``stop``, falling back to the cache when the provider fails.

    Returns ``(response, source)``. A non-OK live response without a usable cache is
    returned as-is so the status reaches the result.
    """
    if isinstance(stop, PointToPointStop):
        call = client.get_travel_route
    else:
        call = client.get_transit_routes

    try:
        response = await asyncio.to_thread(call, stop.origin, stop.destination, stop.kind)
    except DirectionsClientError as exc:
        logger.warning("Request failed for %s (%s): %s", stop.name, stop.kind, exc)
        if not stop.cache_file:
            raise
        try:
            cached = _load_cache(stop, cache_dir)
        except CacheMissError as miss:
            logger.warning("Cache fallback unavailable for %s: %s", stop.name, miss)
            raise exc from miss
        logger.info("Using cached response for %s (%s)", stop.name, stop.kind)
        return cached, SOURCE_CACHE

    if response_ok(response) or not stop.cache_file:
        return response, SOURCE_LIVE

    logger.warning("Request unsuccessful for %s (%s): %s", stop.name, stop.kind, _status_error(response))
    try:
        cached = _load_cache(stop, cache_dir)
    except CacheMissError as miss:
        logger.warning("Cache fallback unavailable for %s: %s", stop.name, miss)
        return response, SOURCE_LIVE
    logger.info("Using cached response for %s (%s)", stop.name, stop.kind)
    return cached, SOURCE_CACHE


async def process_stop(
    stop: StopConfig,
    client: DirectionsClient,
    now: datetime,
    zone: tzinfo,
    cache_dir: str,
) -> StopResult:
    """Run one stop's pipeline. Failures become a null-filled result, never an exception."""
    try:
        if isinstance(stop, FerryStop):
            return process_ferry_stop(stop, now, zone)

        response, source = await fetch_response(stop, client, cache_dir)
        if isinstance(stop, PointToPointStop):
            return process_point_to_point_response(stop, response, source)
        return process_transit_response(stop, response, now, zone, source)
    except DirectionsClientError as exc:
        return StopResult.empty(stop, error=str(exc))
    except InvalidScheduleError as exc:
        logger.error("%s", exc)
        return StopResult.empty(stop, error=str(exc))
    except Exception as exc:
        logger.exception("Error processing %s (%s)", stop.name, stop.kind)
        return StopResult.empty(stop, error=f"Processing failed: {exc}")


__all__ = [
    "SOURCE_LIVE",
    "SOURCE_CACHE",
    "SOURCE_SCHEDULE",
    "InvalidScheduleError",
    "resolve_times",
    "process_transit_response",
    "process_ferry_stop",
    "route_duration_minutes",
    "process_point_to_point_response",
    "fetch_response",
    "process_stop",
]
