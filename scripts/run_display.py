"""Run the commute display: poll every stop and keep the frame file current."""

from __future__ import annotations

import argparse
from datetime import datetime
import logging
import time

from commute_display.config import load_config, with_ferry_direction, with_home_address
from commute_display.data.directions_client import DirectionsClient
from commute_display.data.poller import DashboardPoller
from commute_display.data.refresher import StopRefresher
from commute_display.logging_setup import configure_logging
from commute_display.logic.time_normalizer import get_zone
from commute_display.rendering import build_frame_data, compose_frame, save_frame

logger = logging.getLogger("run_display")


def main() -> int:
    parser = argparse.ArgumentParser()
    parser.add_argument("--config", default="config/config.yaml")
    parser.add_argument("--home-address", help="Override the configured home address")
    parser.add_argument("--ferry-direction", choices=["anacortes", "orcas"])
    parser.add_argument("--render-interval", type=float, default=15.0)
    parser.add_argument("--once", action="store_true", help="Render a single frame and exit")
    args = parser.parse_args()

    config = load_config(args.config)
    configure_logging(config.log)
    zone = get_zone(config.schedule.time_zone)

    stops = config.stops
    if args.home_address:
        stops = with_home_address(stops, args.home_address)
    if args.ferry_direction:
        stops = with_ferry_direction(stops, args.ferry_direction)

    if not config.directions.api_key:
        logger.warning("GOOGLE_MAPS_API_KEY is not set; only cached and ferry data will resolve")

    client = DirectionsClient(
        config.directions.api_key,
        base_url=config.directions.base_url,
        timeout_seconds=config.directions.timeout_seconds,
    )
    refresher = StopRefresher(client, zone, config.directions.cache_dir)
    poller = DashboardPoller(refresher, stops, config.directions.poll_interval_seconds)
    poller.start()

    try:
        while True:
            latest = poller.get_latest()
            if latest is not None:
                frame = compose_frame(
                    build_frame_data(latest.results, datetime.now(zone), zone),
                    width=config.display.width,
                    height=config.display.height,
                )
                path = save_frame(frame, config.display.output_path)
                if args.once:
                    logger.info("Frame written to %s", path)
                    return 0
            time.sleep(args.render_interval if latest is not None else 0.5)
    except KeyboardInterrupt:
        return 0
    finally:
        poller.stop()


if __name__ == "__main__":
    raise SystemExit(main())
