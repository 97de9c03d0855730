"""Configuration loader for the commute display app."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, replace
import os
from typing import Any

from dotenv import load_dotenv
import yaml

from commute_display.data.directions_client import DIRECTIONS_API_URL
from commute_display.logic.ferry_schedule import default_location, default_name
from commute_display.logic.time_normalizer import DEFAULT_TIME_ZONE, get_zone
from commute_display.models import (
    BUS,
    FERRY,
    FERRY_ANACORTES,
    FERRY_DIRECTIONS,
    POINT_TO_POINT_KINDS,
    TRAIN,
    BusStop,
    FerryStop,
    PointToPointStop,
    StopConfig,
    TrainStop,
)


@dataclass(frozen=True)
class DirectionsConfig:
    """Directions provider configuration."""

    api_key: str
    base_url: str
    timeout_seconds: int
    poll_interval_seconds: int
    cache_dir: str


@dataclass(frozen=True)
class ScheduleConfig:
    """Time zone every displayed and compared time is normalized into."""

    time_zone: str


@dataclass(frozen=True)
class DisplayConfig:
    """Frame output configuration."""

    width: int
    height: int
    output_path: str


@dataclass(frozen=True)
class LoggingConfig:
    """Logging configuration."""

    level: str
    log_dir: str


@dataclass(frozen=True)
class AppConfig:
    """Top-level application configuration."""

    directions: DirectionsConfig
    schedule: ScheduleConfig
    display: DisplayConfig
    log: LoggingConfig
    home_address: str
    stops: tuple[StopConfig, ...]


def _require_key(mapping: dict[str, Any], key: str, context: str) -> Any:
    if key not in mapping:
        raise ValueError(f"Missing required key '{key}' in {context} config")
    return mapping[key]


def _require_mapping(data: dict[str, Any], key: str) -> dict[str, Any]:
    section = _require_key(data, key, key)
    if not isinstance(section, dict):
        raise ValueError(f"'{key}' config must be a mapping")
    return section


def parse_stop(entry: Any, home_address: str) -> StopConfig:
    """Parse one ``stops`` entry into its mode-specific config."""
    if not isinstance(entry, dict):
        raise ValueError("Each stop config must be a mapping")
    kind = _require_key(entry, "type", "stop")
    context = f"stop '{entry.get('name', kind)}'"

    if kind == BUS:
        return BusStop(
            name=_require_key(entry, "name", context),
            origin=_require_key(entry, "origin", context),
            destination=_require_key(entry, "destination", context),
            route_filter=str(entry.get("route_filter", "801")),
            cache_file=entry.get("cache_file"),
        )

    if kind == TRAIN:
        return TrainStop(
            name=_require_key(entry, "name", context),
            origin=_require_key(entry, "origin", context),
            destination=_require_key(entry, "destination", context),
            route_filter=str(entry.get("route_filter", "Caltrain")),
            cache_file=entry.get("cache_file"),
        )

    if kind == FERRY:
        direction = entry.get("direction", FERRY_ANACORTES)
        if direction not in FERRY_DIRECTIONS:
            raise ValueError(f"Unknown ferry direction '{direction}' in {context} config")
        return FerryStop(
            name=entry.get("name") or default_name(direction),
            direction=direction,
            location=entry.get("location") or default_location(direction),
        )

    if kind in POINT_TO_POINT_KINDS:
        origin = entry.get("origin")
        return PointToPointStop(
            name=_require_key(entry, "name", context),
            mode=kind,
            origin=origin or home_address,
            destination=_require_key(entry, "destination", context),
            cache_file=entry.get("cache_file"),
            origin_is_home=not origin,
        )

    raise ValueError(f"Unknown stop type '{kind}' in {context} config")


def with_home_address(stops: Sequence[StopConfig], home_address: str) -> tuple[StopConfig, ...]:
    """Re-point every home-bound origin at a new address."""
    return tuple(
        replace(stop, origin=home_address)
        if isinstance(stop, PointToPointStop) and stop.origin_is_home
        else stop
        for stop in stops
    )


def with_ferry_direction(stops: Sequence[StopConfig], direction: str) -> tuple[StopConfig, ...]:
    """Switch every ferry stop to ``direction``, re-deriving its name and location."""
    if direction not in FERRY_DIRECTIONS:
        raise ValueError(f"Unknown ferry direction: {direction}")
    return tuple(
        FerryStop(name=default_name(direction), direction=direction, location=default_location(direction))
        if isinstance(stop, FerryStop)
        else stop
        for stop in stops
    )


def load_config(path: str = "config/config.yaml") -> AppConfig:
    """Load application configuration from a YAML file."""
    load_dotenv()
    api_key = os.environ.get("GOOGLE_MAPS_API_KEY", "")
    try:
        with open(path, "r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle)
    except FileNotFoundError as exc:
        raise ValueError(f"Config file not found: {path}") from exc

    if not isinstance(data, dict):
        raise ValueError("Config file must contain a mapping at the top level")

    directions_section = _require_mapping(data, "directions")
    display_section = _require_mapping(data, "display")
    logging_section = _require_mapping(data, "logging")
    schedule_section = data.get("schedule") or {}
    if not isinstance(schedule_section, dict):
        raise ValueError("'schedule' config must be a mapping")

    directions = DirectionsConfig(
        api_key=api_key,
        base_url=directions_section.get("base_url", DIRECTIONS_API_URL),
        timeout_seconds=directions_section.get("timeout_seconds", 10),
        poll_interval_seconds=_require_key(directions_section, "poll_interval_seconds", "directions"),
        cache_dir=directions_section.get("cache_dir", "data/cache"),
    )

    time_zone = schedule_section.get("time_zone", DEFAULT_TIME_ZONE)
    get_zone(time_zone)
    schedule = ScheduleConfig(time_zone=time_zone)

    display = DisplayConfig(
        width=_require_key(display_section, "width", "display"),
        height=_require_key(display_section, "height", "display"),
        output_path=display_section.get("output_path", "emulator_output/frame.png"),
    )

    logging = LoggingConfig(
        level=_require_key(logging_section, "level", "logging"),
        log_dir=_require_key(logging_section, "log_dir", "logging"),
    )

    home_address = _require_key(data, "home_address", "top-level")
    stop_entries = _require_key(data, "stops", "top-level")
    if not isinstance(stop_entries, list):
        raise ValueError("'stops' config must be a list")
    stops = tuple(parse_stop(entry, home_address) for entry in stop_entries)

    return AppConfig(
        directions=directions,
        schedule=schedule,
        display=display,
        log=logging,
        home_address=home_address,
        stops=stops,
    )


__all__ = [
    "AppConfig",
    "DirectionsConfig",
    "DisplayConfig",
    "LoggingConfig",
    "ScheduleConfig",
    "load_config",
    "parse_stop",
    "with_home_address",
    "with_ferry_direction",
]
