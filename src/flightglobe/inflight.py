"""In-flight data synchronization — endpoint discovery, schema decoding, and airport enrichment."""

import logging
import threading
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from enum import Enum

import httpx

from flightglobe.airports import AirportIndex
from flightglobe.models import FlightInfo

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_S = 30.0
NESTED_UTC_FORMAT = "%Y-%m-%dT%H:%M:%S"


class InflightServiceError(Exception):
    """Recoverable failure of a single poll."""


class ServiceDown(InflightServiceError):
    """No endpoint in the ranking answered 200 during discovery."""


class FetchFlightDataError(InflightServiceError):
    """The active endpoint failed, or its payload could not be decoded."""


class AirportDataError(InflightServiceError):
    """The airport index is empty or was never loaded."""


class WifiSsidError(InflightServiceError):
    """The device is not on an allow-listed in-flight network."""


class ResponseSchema(Enum):
    """Shape of the JSON body an endpoint returns."""

    FLAT = "flat"  # FlightInfo fields at the top level
    NESTED = "nested"  # {"Response": {"flightInfo": ..., "systemInfo": ...}}


@dataclass(frozen=True)
class Endpoint:
    url: str
    schema: ResponseSchema = ResponseSchema.FLAT


@dataclass(frozen=True)
class PollResult:
    """Outcome of one scheduled poll. Exactly one field is set."""

    flight_info: FlightInfo | None = None
    error: InflightServiceError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def is_allowed_ssid(ssid: str | None, allowed: tuple[str, ...]) -> bool:
    """Case-insensitive SSID allow-list check."""
    if not ssid:
        return False
    return ssid.strip().lower() in {a.lower() for a in allowed}


def check_wifi(on_allowed_ssid: bool) -> None:
    """Raise WifiSsidError when the network collaborator reports a foreign SSID."""
    if not on_allowed_ssid:
        raise WifiSsidError("not connected to an in-flight Wi-Fi network")


def _parse_iso8601(value: str) -> datetime:
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _parse_nested_utc(value: str) -> datetime:
    """Parse the nested feed's fixed-format UTC timestamp ("2024-06-08T17:42:05Z")."""
    value = value.removesuffix("Z")
    return datetime.strptime(value, NESTED_UTC_FORMAT).replace(tzinfo=timezone.utc)


def _json_object(value, name: str) -> dict:
    if not isinstance(value, dict):
        raise TypeError(f"{name} must be a JSON object, got {type(value).__name__}")
    return value


def _optional_float(value) -> float | None:
    return None if value is None else float(value)


def decode_flat(payload: dict) -> FlightInfo:
    """Decode a flat FlightInfo body.

    Raises:
        KeyError, TypeError, ValueError, OverflowError: On missing or malformed fields.
    """
    return FlightInfo(
        timestamp=_parse_iso8601(payload["timestamp"]),
        flight_number=str(payload["flightNumber"]),
        vehicle_id=str(payload["vehicleId"]),
        origin=str(payload["origin"]),
        destination=str(payload["destination"]),
        latitude=float(payload["latitude"]),
        longitude=float(payload["longitude"]),
        groundspeed=float(payload["groundspeed"]),
        altitude=float(payload["altitude"]),
        heading=float(payload["heading"]),
        time_to_go=int(payload["timeToGo"]),
        flight_id=str(payload.get("flightId") or ""),
        airspeed=float(payload.get("airspeed") or 0.0),
        distance_to_go=float(payload.get("distanceToGo") or 0.0),
        eta=_optional_float(payload.get("eta")),
    )


def decode_nested(payload: dict) -> FlightInfo:
    """Transform a nested ``{"Response": ...}`` body into a FlightInfo.

    The nested feed has no heading, airspeed or distance-to-go; those
    default to 0 and eta stays unset.

    Raises:
        KeyError, TypeError, ValueError, OverflowError: On missing or malformed fields.
    """
    response = _json_object(payload["Response"], "Response")
    info = _json_object(response["flightInfo"], "flightInfo")
    system = _json_object(response.get("systemInfo") or {}, "systemInfo")
    return FlightInfo(
        timestamp=_parse_nested_utc(info["utcTime"]),
        flight_number=str(info["flightNumberInfo"]),
        vehicle_id=str(info["tailNumber"]),
        origin=str(info["departureAirportCode"]),
        destination=str(info["destinationAirportCode"]),
        latitude=float(info["latitude"]),
        longitude=float(info["longitude"]),
        groundspeed=float(info["hspeed"]),
        altitude=float(info["altitude"]),
        heading=float(info.get("heading") or 0.0),
        time_to_go=int(system.get("timeToLand") or 0),
        airspeed=float(info.get("airspeed") or 0.0),
        distance_to_go=float(info.get("distanceToGo") or 0.0),
        eta=_optional_float(info.get("eta")),
        vertical_speed=_optional_float(info.get("vspeed")),
    )


_DECODERS = {
    ResponseSchema.FLAT: decode_flat,
    ResponseSchema.NESTED: decode_nested,
}


def decode_flight_info(schema: ResponseSchema, payload) -> FlightInfo:
    """Decode a JSON payload by the schema of the endpoint that returned it."""
    if not isinstance(payload, dict):
        raise TypeError(f"expected a JSON object, got {type(payload).__name__}")
    return _DECODERS[schema](payload)


class FlightSyncPipeline:
    """Polls a ranked list of endpoints and returns normalized, enriched FlightInfo.

    The first endpoint that answers 200 stays active until a poll through it
    fails; the next poll then re-runs discovery over the full ranking.

    Args:
        endpoints: Candidate endpoints in rank order.
        airports: Lookup index used for origin/destination enrichment.
        client: HTTP client. Defaults to an ``httpx.Client`` with `timeout`.
        timeout: Per-request timeout in seconds.
    """

    def __init__(
        self,
        endpoints,
        airports: AirportIndex,
        client: httpx.Client | None = None,
        timeout: float = DEFAULT_TIMEOUT_S,
    ) -> None:
        self.endpoints: tuple[Endpoint, ...] = tuple(endpoints)
        self.airports = airports
        self.timeout = timeout
        self._client = client or httpx.Client(timeout=timeout)
        self._active: Endpoint | None = None
        self._poll_lock = threading.Lock()

    @property
    def active_endpoint(self) -> Endpoint | None:
        return self._active

    @property
    def is_polling(self) -> bool:
        return self._poll_lock.locked()

    def reset(self) -> None:
        """Forget the active endpoint; the next poll re-runs discovery."""
        self._active = None

    def close(self) -> None:
        self._client.close()

    def _get(self, endpoint: Endpoint) -> httpx.Response:
        return self._client.get(endpoint.url, timeout=self.timeout)

    def discover(self) -> tuple[Endpoint, httpx.Response]:
        """Probe the ranking in order; the first 200 becomes the active endpoint.

        Returns:
            The winning endpoint and its response.

        Raises:
            ServiceDown: If no endpoint answered 200.
        """
        for endpoint in self.endpoints:
            try:
                resp = self._get(endpoint)
            except httpx.HTTPError as e:
                logger.warning("error with request to %s: %s", endpoint.url, e)
                continue
            if resp.status_code == 200:
                logger.info("valid url found: %s", endpoint.url)
                self._active = endpoint
                return endpoint, resp
            logger.warning("%s returned status %d", endpoint.url, resp.status_code)
        self._active = None
        raise ServiceDown(f"no endpoint answered 200 (tried {len(self.endpoints)})")

    def fetch_flight_info(self) -> FlightInfo:
        """Run one poll: discover if needed, fetch, decode, enrich.

        Raises:
            ServiceDown: Discovery found no working endpoint.
            AirportDataError: The airport index is empty.
            FetchFlightDataError: The active endpoint failed or sent an undecodable body.
        """
        endpoint = self._active
        resp: httpx.Response | None = None
        if endpoint is None:
            endpoint, resp = self.discover()

        if self.airports.is_empty:
            raise AirportDataError("airport index is empty")

        if resp is None:
            try:
                resp = self._get(endpoint)
            except httpx.HTTPError as e:
                self._active = None
                raise FetchFlightDataError(f"request to {endpoint.url} failed: {e}") from e
            if resp.status_code != 200:
                self._active = None
                raise FetchFlightDataError(
                    f"Failed to fetch data from {endpoint.url} (status {resp.status_code})"
                )

        try:
            flight = decode_flight_info(endpoint.schema, resp.json())
        except (KeyError, TypeError, ValueError, OverflowError) as e:
            raise FetchFlightDataError(
                f"could not decode {endpoint.schema.value} payload from {endpoint.url}: {e!r}"
            ) from e

        return replace(
            flight,
            origin_airport=self.airports.lookup(flight.origin),
            destination_airport=self.airports.lookup(flight.destination),
        )

    def on_tick(self) -> PollResult | None:
        """Scheduler entry point. At most one poll runs at a time.

        Returns:
            None if a poll is already in flight (the tick is dropped),
            otherwise the poll outcome. Pipeline errors are reported, not raised.
        """
        if not self._poll_lock.acquire(blocking=False):
            logger.debug("poll already in flight; dropping tick")
            return None
        try:
            logger.debug("Starting HTTP poll for updated flight info")
            return PollResult(flight_info=self.fetch_flight_info())
        except InflightServiceError as e:
            logger.warning("There was an error retrieving the flight info: %s", e)
            return PollResult(error=e)
        finally:
            self._poll_lock.release()
