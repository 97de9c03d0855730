"""Concurrent refresh of every configured stop, with request coalescing."""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Sequence
from datetime import datetime, tzinfo
import logging

from commute_display.data.directions_client import DirectionsClient
from commute_display.logic.stop_processor import process_stop
from commute_display.models import StopConfig, StopResult

logger = logging.getLogger(__name__)

StopSetKey = tuple[StopConfig, ...]


class StopRefresher:
    """Runs one refresh cycle per stop set; overlapping requests share the in-flight cycle."""

    def __init__(
        self,
        client: DirectionsClient,
        zone: tzinfo,
        cache_dir: str,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._client = client
        self._zone = zone
        self._cache_dir = cache_dir
        self._clock = clock or (lambda: datetime.now(zone))
        self._in_flight: dict[StopSetKey, asyncio.Task] = {}

    @property
    def zone(self) -> tzinfo:
        return self._zone

    def in_flight(self, stops: Sequence[StopConfig]) -> bool:
        return tuple(stops) in self._in_flight

    async def refresh(
        self,
        stops: Sequence[StopConfig],
        now: datetime | None = None,
    ) -> list[StopResult]:
        """Return fresh results for ``stops``, joining an identical cycle already running."""
        key = tuple(stops)
        task = self._in_flight.get(key)
        if task is not None:
            logger.debug("Joining in-flight refresh for %d stops", len(key))
        else:
            cycle_now = now if now is not None else self._clock()
            task = asyncio.ensure_future(self._run_cycle(key, cycle_now))
            self._in_flight[key] = task
            task.add_done_callback(lambda _done, key=key: self._in_flight.pop(key, None))
        return list(await asyncio.shield(task))

    async def _run_cycle(self, stops: StopSetKey, now: datetime) -> list[StopResult]:
        logger.debug("Refreshing %d stops at %s", len(stops), now.isoformat())
        results = await asyncio.gather(
            *(process_stop(stop, self._client, now, self._zone, self._cache_dir) for stop in stops)
        )
        resolved = sum(1 for r in results if r.next_arrival_instant or r.estimated_duration_minutes is not None)
        logger.debug("Refresh finished: %d/%d stops resolved", resolved, len(results))
        return list(results)


__all__ = ["StopRefresher"]
