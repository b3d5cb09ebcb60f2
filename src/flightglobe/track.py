"""CLI entry point for headless flight tracking.

Acts as the scheduler: polls the feed every FLIGHTGLOBE_POLL_INTERVAL_S and
moves the sun every FLIGHTGLOBE_SUN_INTERVAL_S, printing the overlay values.
    uv run flightglobe-track
"""

import logging
import sys
import time

from dotenv import load_dotenv

from flightglobe.config import ConfigError, Settings, configure_logging
from flightglobe.session import GlobeSession

logger = logging.getLogger(__name__)


def format_snapshot_line(session: GlobeSession) -> str:
    s = session.summary
    origin = s.origin_city.replace("\n", ", ")
    destination = s.destination_city.replace("\n", ", ")
    line = (
        f"{s.flight_number}  {origin} ({s.time_at_origin}) → "
        f"{destination} ({s.time_at_destination})  "
        f"{s.altitude}  {s.ground_speed}  {s.time_to_go or 'arriving'}"
    )
    message = session.snapshot().message
    if message:
        line += f"  [{message}]"
    return line


def main() -> int:
    load_dotenv()
    try:
        settings = Settings.from_env()
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2
    configure_logging(settings.log_level)

    session = GlobeSession.from_settings(settings)
    logger.info("Tracking via %d endpoint(s)", len(settings.endpoints))

    session.on_sun_tick()
    last_sun = time.monotonic()
    try:
        while True:
            if time.monotonic() - last_sun >= settings.sun_interval_s:
                session.on_sun_tick()
                last_sun = time.monotonic()
            if session.on_poll_tick() is not None:
                print(format_snapshot_line(session), flush=True)
            time.sleep(settings.poll_interval_s)
    except KeyboardInterrupt:
        return 0
    finally:
        session.close()


if __name__ == "__main__":
    sys.exit(main())
