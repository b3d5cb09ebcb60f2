"""Shared value types — flight feed records, markers, and orientation state."""

import math
from dataclasses import dataclass
from datetime import datetime
from enum import Enum


@dataclass(frozen=True)
class Airport:
    """A single record from the static airport dataset. Read-only for the process lifetime."""

    iata: str  # IATA code ("SFO"), may be empty
    icao: str  # ICAO code ("KSFO")
    city: str
    country: str  # "United States", "France", ... (sometimes "US")
    latitude: float  # Decimal degrees
    longitude: float  # Decimal degrees
    altitude: float  # Feet above sea level
    tz: str  # IANA/Olson timezone id ("America/Los_Angeles")

    @classmethod
    def from_json(cls, record: dict) -> "Airport":
        """Build from a dataset record using its capitalised keys."""
        return cls(
            iata=record.get("IATA") or "",
            icao=record.get("ICAO") or "",
            city=record["City"],
            country=record["Country"],
            latitude=float(record["Latitude"]),
            longitude=float(record["Longitude"]),
            altitude=float(record.get("Altitude") or 0.0),
            tz=record.get("TZ") or "",
        )


@dataclass(frozen=True)
class FlightInfo:
    """Normalized in-flight telemetry. Produced fresh on every successful poll."""

    timestamp: datetime  # UTC datetime (with tzinfo=utc)
    flight_number: str
    vehicle_id: str  # Tail number / registration
    origin: str  # Airport code as reported by the feed
    destination: str
    latitude: float
    longitude: float
    groundspeed: float  # Knots
    altitude: float  # Feet
    heading: float  # Degrees true
    time_to_go: int  # Minutes to landing
    flight_id: str = ""
    airspeed: float = 0.0  # Knots
    distance_to_go: float = 0.0  # Nautical miles
    eta: float | None = None
    vertical_speed: float | None = None  # Feet per minute, nested feed only
    origin_airport: Airport | None = None  # Set by airport enrichment
    destination_airport: Airport | None = None


@dataclass(frozen=True)
class Dot:
    """Flat glowing point."""

    color: str


@dataclass(frozen=True)
class Beam:
    """Vertical light beam rising from the surface."""

    color: str


@dataclass(frozen=True)
class Pulsing:
    """Dot with a repeating pulse animation."""

    color: str = "#ffffff"


MarkerStyle = Dot | Beam | Pulsing


@dataclass(frozen=True)
class Marker:
    """A named point on the globe surface. The name is its identity."""

    name: str
    latitude: float  # Decimal degrees
    longitude: float  # Decimal degrees
    altitude: float  # Above the surface, in globe units
    style: MarkerStyle

    def position(self, radius: float) -> tuple[float, float, float]:
        """Cartesian position for a globe of the given radius (Y up, +Z at lon 0)."""
        lat = math.radians(self.latitude)
        lon = math.radians(self.longitude)
        r = radius + self.altitude
        return (
            r * math.cos(lat) * math.sin(lon),
            r * math.sin(lat),
            r * math.cos(lat) * math.cos(lon),
        )


class AlignmentMode(Enum):
    """Which axis stays visually fixed while the globe is manipulated."""

    POLES = "poles"
    DAY_NIGHT_TERMINATOR = "terminator"


@dataclass
class OrientationState:
    """Rotational state of the globe. Owned and mutated only by OrientationEngine."""

    user_tilt: float = 0.0  # Radians about the lateral (X) axis
    user_rotation: float = 0.0  # Radians about the vertical (Y) axis
    fov: float = 40.0  # Camera field of view, degrees
    alignment: AlignmentMode = AlignmentMode.POLES


@dataclass(frozen=True)
class CameraPlacement:
    """Where the camera sits and what it looks at, in world coordinates."""

    position: tuple[float, float, float]
    look_at: tuple[float, float, float] = (0.0, 0.0, 0.0)
    up: tuple[float, float, float] = (0.0, 1.0, 0.0)


@dataclass(frozen=True)
class SubsolarPoint:
    """Where the sun is directly overhead."""

    latitude: float  # Decimal degrees
    longitude: float  # Decimal degrees, -180..180


@dataclass(frozen=True)
class FlightSummary:
    """Human-facing overlay values. Placeholders until the first successful poll."""

    time_at_origin: str = "N/A"
    origin_city: str = "Origin"
    time_at_destination: str = "N/A"
    destination_city: str = "Destination"
    time_to_go: str = "N/A"
    ground_speed: str = "N/A"
    altitude: str = "N/A"
    flight_number: str = "N/A"
