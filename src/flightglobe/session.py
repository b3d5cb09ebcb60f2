"""Globe session — wires orientation, markers and the flight feed behind tick entry points."""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone

import httpx
import numpy as np

from flightglobe import geo
from flightglobe.airports import AirportIndex
from flightglobe.config import Settings
from flightglobe.formatting import describe_error, summarize_flight
from flightglobe.inflight import (
    FlightSyncPipeline,
    InflightServiceError,
    PollResult,
    WifiSsidError,
    check_wifi,
    is_allowed_ssid,
)
from flightglobe.markers import (
    AIRPLANE_MARKER,
    DESTINATION_MARKER,
    ORIGIN_MARKER,
    SUN_MARKER,
    MarkerRegistry,
)
from flightglobe.models import (
    Beam,
    CameraPlacement,
    Dot,
    FlightInfo,
    FlightSummary,
    Marker,
    Pulsing,
    SubsolarPoint,
)
from flightglobe.orientation import OrientationEngine

logger = logging.getLogger(__name__)

ORIGIN_COLOR = "#4dd0e1"
DESTINATION_COLOR = "#ffb74d"
AIRPLANE_COLOR = "#ffffff"
SUN_COLOR = "clear"


@dataclass(frozen=True)
class GlobeSnapshot:
    """Everything a renderer or overlay needs after a state change."""

    transform: np.ndarray  # User tilt/rotation node matrix
    globe_transform: np.ndarray  # Globe-local → world
    camera: CameraPlacement
    fov: float
    markers: tuple[Marker, ...]
    summary: FlightSummary
    flight: FlightInfo | None
    error: InflightServiceError | None
    message: str | None  # User-facing error text, None when healthy
    sun: SubsolarPoint | None


SnapshotListener = Callable[[GlobeSnapshot], None]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class GlobeSession:
    """One per host session. Owns the engine, registry and pipeline; no globals.

    The host schedules ``on_sun_tick`` (~60 s) and ``on_poll_tick`` (~10 s);
    gesture input goes through ``pan``/``pinch``/``zoom``. Subscribers get a
    GlobeSnapshot after each change.
    """

    def __init__(
        self,
        engine: OrientationEngine,
        pipeline: FlightSyncPipeline,
        markers: MarkerRegistry | None = None,
        clock: Callable[[], datetime] | None = None,
        allowed_ssids: tuple[str, ...] = (),
    ) -> None:
        self.engine = engine
        self.pipeline = pipeline
        self.markers = markers or MarkerRegistry()
        self._clock = clock or _utc_now
        self._listeners: list[SnapshotListener] = []
        self.summary = FlightSummary()
        self.flight: FlightInfo | None = None
        self.error: InflightServiceError | None = None
        self.sun: SubsolarPoint | None = None
        self.on_allowed_ssid = True
        self.allowed_ssids = allowed_ssids

    @classmethod
    def from_settings(
        cls, settings: Settings, client: httpx.Client | None = None
    ) -> "GlobeSession":
        airports = AirportIndex.from_file(settings.airports_path, settings.airport_key)
        pipeline = FlightSyncPipeline(
            settings.endpoints,
            airports,
            client=client,
            timeout=settings.request_timeout_s,
        )
        engine = OrientationEngine(alignment=settings.alignment)
        session = cls(engine, pipeline, allowed_ssids=settings.allowed_ssids)
        if settings.ssid is not None:
            session.report_ssid(settings.ssid)
        return session

    def subscribe(self, listener: SnapshotListener) -> Callable[[], None]:
        """Register a listener. Returns a callable that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def snapshot(self) -> GlobeSnapshot:
        return GlobeSnapshot(
            transform=self.engine.compose_transform(),
            globe_transform=self.engine.globe_transform(),
            camera=self.engine.camera,
            fov=self.engine.zoom,
            markers=self.markers.markers(),
            summary=self.summary,
            flight=self.flight,
            error=self.error,
            message=describe_error(self.error, self.on_allowed_ssid),
            sun=self.sun,
        )

    def _notify(self) -> None:
        if not self._listeners:
            return
        snap = self.snapshot()
        for listener in list(self._listeners):
            listener(snap)

    def on_sun_tick(self, now: datetime | None = None) -> SubsolarPoint:
        """Move the sun marker to the current subsolar point."""
        self.sun = geo.subsolar_point(now or self._clock())
        logger.debug(
            "Updating sun position: %.2f, %.2f", self.sun.latitude, self.sun.longitude
        )
        self.markers.remove_by_name(SUN_MARKER)
        self.markers.upsert(
            Marker(
                name=SUN_MARKER,
                latitude=self.sun.latitude,
                longitude=self.sun.longitude,
                altitude=0.0,
                style=Beam(SUN_COLOR),
            )
        )
        self._notify()
        return self.sun

    def on_poll_tick(self) -> PollResult | None:
        """Poll the feed once. Returns None if a poll was already in flight.

        On failure the markers and summary already on screen are left as they
        are; only the error and message change.
        """
        result = self.pipeline.on_tick()
        if result is None:
            return None
        if result.flight_info is not None:
            self._apply_flight(result.flight_info)
            self.error = None
        else:
            self.error = result.error
        self._notify()
        return result

    def _apply_flight(self, flight: FlightInfo) -> None:
        if flight.origin_airport is not None:
            self.markers.upsert(
                Marker(
                    name=ORIGIN_MARKER,
                    latitude=flight.origin_airport.latitude,
                    longitude=flight.origin_airport.longitude,
                    altitude=0.0,
                    style=Dot(ORIGIN_COLOR),
                )
            )
        if flight.destination_airport is not None:
            self.markers.upsert(
                Marker(
                    name=DESTINATION_MARKER,
                    latitude=flight.destination_airport.latitude,
                    longitude=flight.destination_airport.longitude,
                    altitude=0.0,
                    style=Dot(DESTINATION_COLOR),
                )
            )
        self.markers.upsert(
            Marker(
                name=AIRPLANE_MARKER,
                latitude=flight.latitude,
                longitude=flight.longitude,
                altitude=0.0,
                style=Pulsing(AIRPLANE_COLOR),
            )
        )
        self.engine.focus_on_lat_lon(flight.latitude, flight.longitude)
        self.summary = summarize_flight(flight, self._clock(), self.summary)
        self.flight = flight

    def set_wifi_status(self, on_allowed_ssid: bool) -> None:
        self.on_allowed_ssid = on_allowed_ssid
        self._notify()

    def report_ssid(self, ssid: str | None) -> bool:
        """Record the network the host is connected to.

        Off the allow-list the overlay shows the Wi-Fi message instead of the
        poll error. Returns whether the SSID is allowed.
        """
        try:
            check_wifi(is_allowed_ssid(ssid, self.allowed_ssids))
        except WifiSsidError as e:
            logger.warning("%s (ssid=%r)", e, ssid)
            self.set_wifi_status(False)
            return False
        self.set_wifi_status(True)
        return True

    def pan(self, dx: float, dy: float) -> None:
        self.engine.apply_pan(dx, dy)
        self._notify()

    def pinch(self, scale: float, is_gesture_start: bool = False) -> None:
        self.engine.apply_pinch(scale, is_gesture_start)
        self._notify()

    def zoom(self, fov: float) -> None:
        self.engine.set_zoom(fov)
        self._notify()

    def close(self) -> None:
        self.pipeline.close()
