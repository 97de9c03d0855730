from __future__ import annotations

import asyncio
import json
from datetime import datetime
from typing import Any
from unittest.mock import MagicMock, patch
from zoneinfo import ZoneInfo

from commute_display.data.directions_client import DirectionsClientError
from commute_display.logic.stop_processor import (
    SOURCE_CACHE,
    SOURCE_LIVE,
    SOURCE_SCHEDULE,
    process_ferry_stop,
    process_point_to_point_response,
    process_stop,
    process_transit_response,
    route_duration_minutes,
)
from commute_display.models import BusStop, FerryStop, PointToPointStop

CHICAGO = ZoneInfo("America/Chicago")
NOW = datetime(2024, 6, 3, 9, 0, tzinfo=CHICAGO)

BUS_STOP = BusStop(
    name="Congress and Oltorf",
    origin="Congress and Oltorf, Austin, TX",
    destination="Downtown Station, Austin, TX",
    cache_file="congress-oltorf-bus.json",
)
BIKE_STOP = PointToPointStop(
    name="To Springs",
    mode="bike",
    origin="2215 post rd austin tx 78704",
    destination="barton springs pool in austin tx",
)
FERRY_STOP = FerryStop(name="Anacortes To Orcas Island", direction="anacortes", location="Anacortes, WA")


def _epoch(hour: int, minute: int) -> int:
    return int(datetime(2024, 6, 3, hour, minute, tzinfo=CHICAGO).timestamp())


def _bus_response(*departures: int, status: str = "OK") -> dict[str, Any]:
    routes = []
    for value in departures:
        step = {
            "travel_mode": "TRANSIT",
            "transit_details": {
                "line": {"short_name": "801"},
                "departure_time": {"value": value},
                "arrival_time": {"value": value + 900},
                "headsign": "Tech Ridge",
            },
        }
        routes.append({"legs": [{"steps": [step]}]})
    return {"status": status, "routes": routes}


def _duration_response(*seconds: int) -> dict[str, Any]:
    return {"status": "OK", "routes": [{"legs": [{"duration": {"value": s}} for s in seconds]}]}


def test_transit_response_resolves_next_and_last() -> None:
    response = _bus_response(_epoch(9, 10), _epoch(9, 25), _epoch(9, 40))

    result = process_transit_response(BUS_STOP, response, NOW, CHICAGO)

    assert result.kind == "bus"
    assert len(result.candidates) == 3
    assert result.next_arrival_instant == datetime(2024, 6, 3, 9, 10, tzinfo=CHICAGO)
    assert result.last_stop_instant == datetime(2024, 6, 3, 9, 40, tzinfo=CHICAGO)
    assert result.is_next_near_last is True
    assert result.next_is_live is True
    assert result.source == SOURCE_LIVE
    assert result.error is None


def test_transit_response_with_bad_status_is_null_filled() -> None:
    result = process_transit_response(BUS_STOP, _bus_response(status="ZERO_RESULTS"), NOW, CHICAGO)

    assert result.candidates == ()
    assert result.next_arrival_instant is None
    assert result.last_stop_instant is None
    assert result.is_next_near_last is False
    assert result.error == "Provider status ZERO_RESULTS"


def test_transit_response_without_matching_line() -> None:
    response = _bus_response(_epoch(9, 10))
    response["routes"][0]["legs"][0]["steps"][0]["transit_details"]["line"]["short_name"] = "20"

    result = process_transit_response(BUS_STOP, response, NOW, CHICAGO)

    assert result.candidates == ()
    assert result.next_arrival_instant is None
    assert result.error is None


def test_route_duration_rounds_to_whole_minutes() -> None:
    assert route_duration_minutes(_duration_response(905)) == 15
    assert route_duration_minutes(_duration_response(930)) == 16
    assert route_duration_minutes(_duration_response(600, 300)) == 15
    assert route_duration_minutes({"status": "NOT_FOUND"}) is None
    assert route_duration_minutes({"status": "OK", "routes": [{"legs": [{}]}]}) is None


def test_point_to_point_response() -> None:
    result = process_point_to_point_response(BIKE_STOP, _duration_response(905))

    assert result.kind == "bike"
    assert result.estimated_duration_minutes == 15
    assert result.next_arrival_instant is None
    assert result.candidates == ()


def test_point_to_point_failure() -> None:
    result = process_point_to_point_response(BIKE_STOP, {"status": "NOT_FOUND"})

    assert result.estimated_duration_minutes is None
    assert result.error == "Provider status NOT_FOUND"


def test_ferry_stop_uses_timetable() -> None:
    result = process_ferry_stop(FERRY_STOP, datetime(2024, 6, 3, 6, 0, tzinfo=CHICAGO), CHICAGO)

    assert result.source == SOURCE_SCHEDULE
    assert len(result.candidates) == 6
    assert result.next_arrival_instant == datetime(2024, 6, 3, 7, 30, tzinfo=CHICAGO)
    assert result.last_stop_instant == datetime(2024, 6, 3, 22, 40, tzinfo=CHICAGO)
    assert result.is_next_near_last is False


def test_ferry_stop_near_end_of_day() -> None:
    result = process_ferry_stop(FERRY_STOP, datetime(2024, 6, 3, 16, 0, tzinfo=CHICAGO), CHICAGO)

    assert result.next_arrival_instant == datetime(2024, 6, 3, 17, 20, tzinfo=CHICAGO)
    assert result.is_next_near_last is True


def test_process_stop_live_fetch() -> None:
    client = MagicMock()
    client.get_transit_routes.return_value = _bus_response(_epoch(9, 10))

    result = asyncio.run(process_stop(BUS_STOP, client, NOW, CHICAGO, "unused"))

    client.get_transit_routes.assert_called_once_with(BUS_STOP.origin, BUS_STOP.destination, "bus")
    assert result.source == SOURCE_LIVE
    assert result.next_arrival_instant == datetime(2024, 6, 3, 9, 10, tzinfo=CHICAGO)


def test_process_stop_point_to_point_fetch() -> None:
    client = MagicMock()
    client.get_travel_route.return_value = _duration_response(1200)

    result = asyncio.run(process_stop(BIKE_STOP, client, NOW, CHICAGO, "unused"))

    client.get_travel_route.assert_called_once_with(BIKE_STOP.origin, BIKE_STOP.destination, "bike")
    assert result.estimated_duration_minutes == 20


def test_process_stop_provider_failure_without_cache(tmp_path) -> None:
    client = MagicMock()
    client.get_transit_routes.side_effect = DirectionsClientError("timeout")

    result = asyncio.run(process_stop(BUS_STOP, client, NOW, CHICAGO, str(tmp_path)))

    assert result.candidates == ()
    assert result.next_arrival_instant is None
    assert result.error == "timeout"


def test_process_stop_falls_back_to_cache(tmp_path) -> None:
    (tmp_path / "congress-oltorf-bus.json").write_text(json.dumps(_bus_response(_epoch(9, 25))))
    client = MagicMock()
    client.get_transit_routes.side_effect = DirectionsClientError("timeout")

    result = asyncio.run(process_stop(BUS_STOP, client, NOW, CHICAGO, str(tmp_path)))

    assert result.source == SOURCE_CACHE
    assert result.next_arrival_instant == datetime(2024, 6, 3, 9, 25, tzinfo=CHICAGO)


def test_process_stop_uses_cache_after_bad_status(tmp_path) -> None:
    (tmp_path / "congress-oltorf-bus.json").write_text(json.dumps(_bus_response(_epoch(9, 25))))
    client = MagicMock()
    client.get_transit_routes.return_value = {"status": "OVER_QUERY_LIMIT", "routes": []}

    result = asyncio.run(process_stop(BUS_STOP, client, NOW, CHICAGO, str(tmp_path)))

    assert result.source == SOURCE_CACHE
    assert len(result.candidates) == 1


def test_process_stop_ignores_cache_without_matching_route(tmp_path) -> None:
    cached = _bus_response(_epoch(9, 25))
    cached["routes"][0]["legs"][0]["steps"][0]["transit_details"]["line"]["short_name"] = "7"
    (tmp_path / "congress-oltorf-bus.json").write_text(json.dumps(cached))
    client = MagicMock()
    client.get_transit_routes.side_effect = DirectionsClientError("Status 500")

    result = asyncio.run(process_stop(BUS_STOP, client, NOW, CHICAGO, str(tmp_path)))

    assert result.source is None
    assert result.error == "Status 500"


def test_process_stop_empty_timetable_yields_null_result() -> None:
    client = MagicMock()
    with patch("commute_display.logic.stop_processor.schedule_candidates", return_value=[]):
        result = asyncio.run(process_stop(FERRY_STOP, client, NOW, CHICAGO, "unused"))

    assert result.next_arrival_instant is None
    assert result.last_stop_instant is None
    assert "no departures" in result.error
    client.assert_not_called()


def test_process_stop_contains_unexpected_errors() -> None:
    client = MagicMock()
    client.get_transit_routes.side_effect = RuntimeError("boom")

    result = asyncio.run(process_stop(BUS_STOP, client, NOW, CHICAGO, "unused"))

    assert result.next_arrival_instant is None
    assert "boom" in result.error
