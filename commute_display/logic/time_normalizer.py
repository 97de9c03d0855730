"""Normalize provider timestamps into the canonical time zone."""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone, tzinfo
import logging
import re
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

logger = logging.getLogger(__name__)

DEFAULT_TIME_ZONE = "America/Chicago"

# Display text as returned by the directions provider, e.g. "8:15am" or "8:15 PM".
_DISPLAY_TIME_RE = re.compile(r"^\s*(\d{1,2}):(\d{2})\s*([AaPp])\.?\s*[Mm]\.?\s*$")


def get_zone(name: str) -> ZoneInfo:
    """Resolve an IANA zone name, raising ValueError for unknown names."""
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError(f"Unknown time zone: {name}") from exc


def normalize_timestamp(
    value: Any,
    zone: tzinfo,
    reference: datetime | None = None,
) -> datetime | None:
    """Return ``value`` as an aware datetime in ``zone``, or None when unknown.

    Accepted shapes:
      * a provider time object ``{"value": <epoch seconds>, "text": ..., "time_zone": ...}``
      * an ISO-8601 string or an existing datetime
      * None

    A provider object with only a display ``text`` is resolved against
    ``reference`` (its calendar date) in the object's own ``time_zone``;
    without a reference the text cannot be anchored and None is returned.
    Naive datetimes and ISO strings without an offset are taken to be UTC.
    """
    if value is None:
        return None

    if isinstance(value, datetime):
        return _to_zone(value, zone)

    if isinstance(value, str):
        return _parse_iso(value, zone)

    if isinstance(value, dict):
        epoch = value.get("value")
        if epoch is not None:
            try:
                return datetime.fromtimestamp(float(epoch), tz=zone)
            except (TypeError, ValueError, OverflowError, OSError):
                logger.debug("Dropping unusable epoch value %r", epoch)
                return None
        text = value.get("text")
        if text:
            return _parse_display_text(str(text), value.get("time_zone"), zone, reference)
        return None

    return None


def is_live_timestamp(value: Any) -> bool:
    """True when a provider time object carries a real-time epoch value."""
    return isinstance(value, dict) and value.get("value") is not None


def has_timestamp(value: Any) -> bool:
    """True when a provider time object carries an epoch value or display text."""
    if not isinstance(value, dict):
        return False
    return value.get("value") is not None or bool(value.get("text"))


def minutes_of_day(instant: datetime, zone: tzinfo) -> int:
    """Hour/minute of ``instant`` in ``zone`` as minutes past midnight (0-1439)."""
    local = instant.astimezone(zone)
    return local.hour * 60 + local.minute


def at_minutes(day: date, minutes: int, zone: tzinfo) -> datetime:
    """Build the instant at ``minutes`` past midnight on ``day`` in ``zone``."""
    hours, mins = divmod(minutes, 60)
    return datetime.combine(day, time(hours, mins), tzinfo=zone)


def next_occurrence(minutes: int, now: datetime, zone: tzinfo) -> datetime:
    """Today at ``minutes`` in ``zone`` if still ahead of ``now``, else tomorrow."""
    today = now.astimezone(zone).date()
    candidate = at_minutes(today, minutes, zone)
    if candidate.timestamp() <= now.timestamp():
        candidate = at_minutes(today + timedelta(days=1), minutes, zone)
    return candidate


def _to_zone(value: datetime, zone: tzinfo) -> datetime:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(zone)


def _parse_iso(value: str, zone: tzinfo) -> datetime | None:
    text = value.strip()
    if not text:
        return None
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        logger.debug("Dropping unparseable timestamp %r", value)
        return None
    return _to_zone(parsed, zone)


def _parse_display_text(
    text: str,
    source_zone_name: Any,
    zone: tzinfo,
    reference: datetime | None,
) -> datetime | None:
    match = _DISPLAY_TIME_RE.match(text)
    if not match or reference is None:
        logger.debug("Dropping display-only timestamp %r", text)
        return None

    hour = int(match.group(1))
    minute = int(match.group(2))
    if not 1 <= hour <= 12 or minute > 59:
        logger.debug("Dropping out-of-range display time %r", text)
        return None
    hour %= 12
    if match.group(3).lower() == "p":
        hour += 12

    source_zone = zone
    if source_zone_name:
        try:
            source_zone = get_zone(str(source_zone_name))
        except ValueError:
            logger.debug("Unknown provider time zone %r, using canonical zone", source_zone_name)

    day = reference.astimezone(source_zone).date()
    local = at_minutes(day, hour * 60 + minute, source_zone)
    return local.astimezone(zone)


__all__ = [
    "DEFAULT_TIME_ZONE",
    "get_zone",
    "normalize_timestamp",
    "is_live_timestamp",
    "has_timestamp",
    "minutes_of_day",
    "at_minutes",
    "next_occurrence",
]
