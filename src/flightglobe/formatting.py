"""Human-facing flight metrics — formatters and the overlay summary built from them."""

import math
from dataclasses import replace
from datetime import datetime

from pytz import UnknownTimeZoneError, timezone, utc

from flightglobe.inflight import (
    AirportDataError,
    FetchFlightDataError,
    InflightServiceError,
    ServiceDown,
    WifiSsidError,
)
from flightglobe.models import Airport, FlightInfo, FlightSummary

KNOTS_TO_MPH = 1.15078
_DOMESTIC_COUNTRIES = frozenset({"US", "United States"})

_ERROR_MESSAGES: dict[type[InflightServiceError], str] = {
    ServiceDown: "Flight data service is unavailable. Retrying…",
    FetchFlightDataError: "Couldn't read flight data. Retrying…",
    AirportDataError: "Airport data failed to load. Restart the app.",
    WifiSsidError: "Connect to the in-flight Wi-Fi to see your flight.",
}


def format_time_to_go(minutes: int) -> str:
    """Format minutes as "1h 5m", "45m" or "2h". Zero gives an empty string."""
    hours, remaining = divmod(minutes, 60)
    parts = []
    if hours > 0:
        parts.append(f"{hours}h")
    if remaining > 0:
        parts.append(f"{remaining}m")
    return " ".join(parts)


def format_altitude(feet: float) -> str:
    """Thousands-grouped whole feet: 35000.7 → "35,000 ft"."""
    return f"{int(feet):,} ft"


def knots_to_mph(knots: float) -> int:
    """Convert knots to statute mph, truncating."""
    return math.floor(knots * KNOTS_TO_MPH)


def format_ground_speed(knots: float) -> str:
    return f"{knots_to_mph(knots)} mph"


def local_time_at(tz_name: str, instant: datetime) -> str:
    """Wall-clock time at an IANA timezone as "h:mm AM".

    Naive instants are taken as UTC.

    Raises:
        pytz.UnknownTimeZoneError: If tz_name is not a known zone.
    """
    if instant.tzinfo is None:
        instant = utc.localize(instant)
    local = instant.astimezone(timezone(tz_name))
    return local.strftime("%I:%M %p").lstrip("0")


def city_label(airport: Airport) -> str:
    """City alone for US airports, otherwise "city\\ncountry"."""
    if airport.country in _DOMESTIC_COUNTRIES:
        return airport.city
    return f"{airport.city}\n{airport.country}"


def _time_at(airport: Airport | None, now: datetime) -> str | None:
    if airport is None or not airport.tz:
        return None
    try:
        return local_time_at(airport.tz, now)
    except UnknownTimeZoneError:
        return None


def summarize_flight(
    flight: FlightInfo,
    now: datetime,
    previous: FlightSummary | None = None,
) -> FlightSummary:
    """Build overlay values for a freshly polled flight.

    Fields that depend on an airport the index did not know (or on an
    unknown timezone) keep their previous values.

    Args:
        flight: Normalized, enriched flight.
        now: Instant used for the local clocks at origin and destination.
        previous: Summary currently on screen. Defaults to placeholders.
    """
    summary = replace(
        previous or FlightSummary(),
        time_to_go=format_time_to_go(flight.time_to_go),
        altitude=format_altitude(flight.altitude),
        ground_speed=format_ground_speed(flight.groundspeed),
        flight_number=flight.flight_number,
    )

    origin_time = _time_at(flight.origin_airport, now)
    if origin_time is not None:
        summary = replace(summary, time_at_origin=origin_time)
    if flight.origin_airport is not None:
        summary = replace(summary, origin_city=city_label(flight.origin_airport))

    destination_time = _time_at(flight.destination_airport, now)
    if destination_time is not None:
        summary = replace(summary, time_at_destination=destination_time)
    if flight.destination_airport is not None:
        summary = replace(
            summary, destination_city=city_label(flight.destination_airport)
        )
    return summary


def describe_error(
    error: InflightServiceError | None, on_allowed_ssid: bool = True
) -> str | None:
    """User-facing message for the last poll outcome.

    Off the in-flight network the Wi-Fi message wins, since every other
    failure follows from it.
    """
    if error is None:
        return None
    if not on_allowed_ssid:
        return _ERROR_MESSAGES[WifiSsidError]
    for error_type, message in _ERROR_MESSAGES.items():
        if isinstance(error, error_type):
            return message
    return str(error)
