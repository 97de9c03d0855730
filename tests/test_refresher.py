from __future__ import annotations

import asyncio
from datetime import datetime
import threading
import time
from unittest.mock import MagicMock
from zoneinfo import ZoneInfo

from commute_display.data.directions_client import DirectionsClientError
from commute_display.data.refresher import StopRefresher
from commute_display.models import BusStop, FerryStop, PointToPointStop

CHICAGO = ZoneInfo("America/Chicago")
NOW = datetime(2024, 6, 3, 9, 0, tzinfo=CHICAGO)

STOPS = (
    BusStop(name="Congress and Oltorf", origin="Congress and Oltorf", destination="Downtown Station"),
    PointToPointStop(name="To HEB", mode="walk", origin="home", destination="HEB"),
    FerryStop(name="Anacortes To Orcas Island", direction="anacortes", location="Anacortes, WA"),
)


def _duration_response(seconds: int) -> dict:
    return {"status": "OK", "routes": [{"legs": [{"duration": {"value": seconds}}]}]}


def _client() -> MagicMock:
    client = MagicMock()
    client.get_transit_routes.return_value = {"status": "ZERO_RESULTS", "routes": []}
    client.get_travel_route.return_value = _duration_response(540)
    return client


def test_refresh_returns_one_result_per_stop_in_order(tmp_path) -> None:
    refresher = StopRefresher(_client(), CHICAGO, str(tmp_path))

    results = asyncio.run(refresher.refresh(STOPS, NOW))

    assert [r.stop for r in results] == list(STOPS)
    assert results[1].estimated_duration_minutes == 9
    assert results[2].next_arrival_instant is not None


def test_failed_stop_does_not_affect_siblings(tmp_path) -> None:
    client = _client()
    client.get_transit_routes.side_effect = DirectionsClientError("timeout")
    refresher = StopRefresher(client, CHICAGO, str(tmp_path))

    results = asyncio.run(refresher.refresh(STOPS, NOW))

    assert results[0].error == "timeout"
    assert results[0].next_arrival_instant is None
    assert results[1].estimated_duration_minutes == 9
    assert results[2].next_arrival_instant is not None


def test_stops_are_fetched_concurrently(tmp_path) -> None:
    client = _client()
    both_started = threading.Barrier(2, timeout=2)

    def _transit(*_args):
        both_started.wait()
        return {"status": "ZERO_RESULTS", "routes": []}

    def _travel(*_args):
        both_started.wait()
        return _duration_response(540)

    client.get_transit_routes.side_effect = _transit
    client.get_travel_route.side_effect = _travel
    refresher = StopRefresher(client, CHICAGO, str(tmp_path))

    results = asyncio.run(refresher.refresh(STOPS, NOW))

    assert results[0].error == "Provider status ZERO_RESULTS"
    assert results[1].estimated_duration_minutes == 9


def test_overlapping_refreshes_share_one_fetch(tmp_path) -> None:
    client = _client()

    def _slow_travel(*_args):
        time.sleep(0.05)
        return _duration_response(540)

    client.get_travel_route.side_effect = _slow_travel
    refresher = StopRefresher(client, CHICAGO, str(tmp_path))

    async def _run():
        return await asyncio.gather(refresher.refresh(STOPS, NOW), refresher.refresh(STOPS, NOW))

    first, second = asyncio.run(_run())

    assert client.get_travel_route.call_count == 1
    assert client.get_transit_routes.call_count == 1
    assert first == second
    assert first is not second


def test_refresh_after_completion_fetches_again(tmp_path) -> None:
    client = _client()
    refresher = StopRefresher(client, CHICAGO, str(tmp_path))

    async def _run():
        await refresher.refresh(STOPS, NOW)
        await asyncio.sleep(0)
        assert not refresher.in_flight(STOPS)
        await refresher.refresh(STOPS, NOW)

    asyncio.run(_run())

    assert client.get_travel_route.call_count == 2


def test_different_stop_sets_are_not_coalesced(tmp_path) -> None:
    client = _client()
    refresher = StopRefresher(client, CHICAGO, str(tmp_path))

    async def _run():
        return await asyncio.gather(refresher.refresh(STOPS, NOW), refresher.refresh(STOPS[1:], NOW))

    full, partial = asyncio.run(_run())

    assert len(full) == 3
    assert len(partial) == 2
    assert client.get_travel_route.call_count == 2


def test_clock_supplies_cycle_time(tmp_path) -> None:
    refresher = StopRefresher(
        _client(),
        CHICAGO,
        str(tmp_path),
        clock=lambda: datetime(2024, 6, 3, 6, 0, tzinfo=CHICAGO),
    )

    results = asyncio.run(refresher.refresh(STOPS[2:]))

    assert results[0].next_arrival_instant == datetime(2024, 6, 3, 7, 30, tzinfo=CHICAGO)
