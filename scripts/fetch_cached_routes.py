"""Fetch every provider-backed stop once and store the responses as cache files."""

from __future__ import annotations

import argparse
import logging

from commute_display.config import load_config
from commute_display.data.cached_responses import save_cached_response
from commute_display.data.directions_client import DirectionsClient, DirectionsClientError
from commute_display.logging_setup import configure_logging
from commute_display.models import FerryStop, PointToPointStop

logger = logging.getLogger("fetch_cached_routes")


def main() -> int:
    parser = argparse.ArgumentParser()
    parser.add_argument("--config", default="config/config.yaml")
    args = parser.parse_args()

    config = load_config(args.config)
    configure_logging(config.log)
    if not config.directions.api_key:
        logger.error("GOOGLE_MAPS_API_KEY not set")
        return 1

    client = DirectionsClient(
        config.directions.api_key,
        base_url=config.directions.base_url,
        timeout_seconds=config.directions.timeout_seconds,
    )

    failures = 0
    for stop in config.stops:
        if isinstance(stop, FerryStop) or not stop.cache_file:
            continue
        try:
            if isinstance(stop, PointToPointStop):
                response = client.get_travel_route(stop.origin, stop.destination, stop.kind)
            else:
                response = client.get_transit_routes(stop.origin, stop.destination, stop.kind)
        except DirectionsClientError as exc:
            logger.error("Error fetching %s: %s", stop.name, exc)
            failures += 1
            continue

        if response.get("status") != "OK":
            logger.error("Request unsuccessful for %s: %s", stop.name, response.get("status"))
            failures += 1
            continue

        path = save_cached_response(config.directions.cache_dir, stop.cache_file, response)
        logger.info("Saved %s to %s", stop.name, path)

    return 1 if failures else 0


if __name__ == "__main__":
    raise SystemExit(main())
