"""Background poller that periodically refreshes every configured stop."""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
import concurrent.futures
from dataclasses import dataclass
import logging
import threading
import time

from commute_display.data.refresher import StopRefresher
from commute_display.models import StopConfig, StopResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PollResult:
    """Snapshot of the latest refresh cycle, replaced as a whole."""

    results: list[StopResult]
    fetched_at: float
    error: str | None


class DashboardPoller:
    """Runs an event loop on a daemon thread and refreshes stops on a schedule.

    Manual refreshes from other threads are submitted to the same loop, so a
    trigger that lands while a cycle is running joins it instead of refetching.
    """

    def __init__(
        self,
        refresher: StopRefresher,
        stops: Sequence[StopConfig],
        poll_interval_seconds: float,
    ) -> None:
        self._refresher = refresher
        self._stops = tuple(stops)
        self._poll_interval_seconds = poll_interval_seconds
        self._latest: PollResult | None = None
        self._lock = threading.Lock()
        self._stop_event = threading.Event()
        self._ready = threading.Event()
        self._thread: threading.Thread | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._wake: asyncio.Event | None = None

    @property
    def stops(self) -> tuple[StopConfig, ...]:
        with self._lock:
            return self._stops

    def get_latest(self) -> PollResult | None:
        """Return the most recent poll result, if any."""
        with self._lock:
            return self._latest

    def start(self) -> None:
        """Start the background polling thread."""
        if self._thread and self._thread.is_alive():
            return
        self._stop_event.clear()
        self._ready.clear()
        self._thread = threading.Thread(target=self._run, daemon=True)
        self._thread.start()
        self._ready.wait(timeout=5)

    def stop(self) -> None:
        """Signal the polling thread to stop."""
        self._stop_event.set()
        loop = self._loop
        if loop is not None and loop.is_running():
            loop.call_soon_threadsafe(self._wake_up)

    def request_refresh(self) -> concurrent.futures.Future | None:
        """Trigger an immediate refresh; returns a future for its PollResult."""
        loop = self._loop
        if loop is None or not loop.is_running():
            return None
        return asyncio.run_coroutine_threadsafe(self._refresh_once(), loop)

    def update_stops(self, stops: Sequence[StopConfig]) -> concurrent.futures.Future | None:
        """Replace the stop set (home address, stop or ferry direction edits) and refresh."""
        with self._lock:
            self._stops = tuple(stops)
        return self.request_refresh()

    def _wake_up(self) -> None:
        if self._wake is not None:
            self._wake.set()

    def _run(self) -> None:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        self._loop = loop
        try:
            loop.run_until_complete(self._run_loop())
            pending = asyncio.all_tasks(loop)
            for task in pending:
                task.cancel()
            if pending:
                loop.run_until_complete(asyncio.gather(*pending, return_exceptions=True))
        finally:
            self._loop = None
            loop.close()

    async def _run_loop(self) -> None:
        self._wake = asyncio.Event()
        self._ready.set()
        while not self._stop_event.is_set():
            await self._refresh_once()
            if self._stop_event.is_set():
                break
            try:
                await asyncio.wait_for(self._wake.wait(), timeout=self._poll_interval_seconds)
            except asyncio.TimeoutError:
                pass

    async def _refresh_once(self) -> PollResult:
        stops = self.stops
        try:
            results = await self._refresher.refresh(stops)
            result = PollResult(results=results, fetched_at=time.time(), error=None)
        except Exception as exc:
            logger.exception("Refresh cycle failed")
            result = PollResult(
                results=[StopResult.empty(stop, error=str(exc)) for stop in stops],
                fetched_at=time.time(),
                error=str(exc),
            )
        with self._lock:
            # A cycle for a stop set replaced mid-flight must not overwrite newer results.
            if stops == self._stops:
                self._latest = result
            else:
                logger.info("Discarding results for a superseded stop set")
        return result


__all__ = ["PollResult", "DashboardPoller"]
