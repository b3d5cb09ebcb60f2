"""Globe geometry — lat/lon on the sphere, seasonal tilt, zoom limits, and the subsolar point."""

import math
from datetime import date, datetime, timezone

import numpy as np
from skyfield.api import load

from flightglobe.models import SubsolarPoint

GLOBE_RADIUS = 0.5
CAMERA_ALTITUDE = 2.2

DEFAULT_FOV = 40.0
MIN_FOV = 4.0
MAX_FOV = 60.0

TILT_OF_EARTHS_AXIS_DEGREES = 23.5
TILT_OF_EARTHS_AXIS_RADIANS = math.radians(TILT_OF_EARTHS_AXIS_DEGREES)
DAYS_IN_A_YEAR = 365.0
# Winter solstice falls on day ~356; day + 10 puts it at zero.
DAYS_FROM_WINTER_SOLSTICE_TO_YEAR_END = 10.0

_ts = load.timescale()


def lat_lon_to_position(
    lat: float, lon: float, radius: float = 1.0
) -> tuple[float, float, float]:
    """Convert decimal degrees to a point on a sphere.

    Y is the polar axis; latitude 0 / longitude 0 sits on +Z, facing the
    default camera.
    """
    lat_r = math.radians(lat)
    lon_r = math.radians(lon)
    return (
        radius * math.cos(lat_r) * math.sin(lon_r),
        radius * math.sin(lat_r),
        radius * math.cos(lat_r) * math.cos(lon_r),
    )


def position_to_lat_lon(x: float, y: float, z: float) -> tuple[float, float]:
    """Inverse of lat_lon_to_position. Returns (lat, lon) in degrees."""
    r = math.sqrt(x * x + y * y + z * z)
    if r == 0:
        return 0.0, 0.0
    lat = math.degrees(math.asin(max(-1.0, min(1.0, y / r))))
    lon = math.degrees(math.atan2(x, z))
    return lat, lon


def compute_seasonal_tilt(when: date) -> float:
    """Angle (radians) to tilt the globe about its lateral axis for the given day.

    Uses the Gregorian day of year and a signed floating remainder, so the
    result is continuous across the year boundary: maximal magnitude at the
    solstices, zero near the equinoxes (days ~81 and ~265).
    """
    day_of_year = float(when.timetuple().tm_yday)
    days_since_winter_solstice = math.remainder(
        day_of_year + DAYS_FROM_WINTER_SOLSTICE_TO_YEAR_END, DAYS_IN_A_YEAR
    )
    angle = days_since_winter_solstice * 2.0 * math.pi / DAYS_IN_A_YEAR
    return -math.cos(angle) * TILT_OF_EARTHS_AXIS_RADIANS


def clamp_fov(fov: float) -> float:
    return min(max(fov, MIN_FOV), MAX_FOV)


def subsolar_point(when: datetime) -> SubsolarPoint:
    """Approximate lat/lon where the sun is overhead at `when`.

    Low-precision solar coordinates (Astronomical Almanac, ~0.01° in
    declination) rotated into the Earth-fixed frame with Greenwich mean
    sidereal time. Naive datetimes are taken as UTC.
    """
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    t = _ts.from_datetime(when)
    n = t.tt - 2451545.0  # Days since J2000.0

    mean_longitude = (280.460 + 0.9856474 * n) % 360.0
    mean_anomaly = math.radians((357.528 + 0.9856003 * n) % 360.0)
    ecliptic_longitude = math.radians(
        mean_longitude
        + 1.915 * math.sin(mean_anomaly)
        + 0.020 * math.sin(2 * mean_anomaly)
    )
    obliquity = math.radians(23.439 - 0.0000004 * n)

    right_ascension = math.atan2(
        math.cos(obliquity) * math.sin(ecliptic_longitude),
        math.cos(ecliptic_longitude),
    )
    declination = math.asin(math.sin(obliquity) * math.sin(ecliptic_longitude))

    lon = math.degrees(right_ascension) - t.gmst * 15.0
    lon = (lon + 180.0) % 360.0 - 180.0
    return SubsolarPoint(latitude=math.degrees(declination), longitude=lon)


def rotation_x(angle_rad: float) -> np.ndarray:
    c = math.cos(angle_rad)
    s = math.sin(angle_rad)
    rot = np.identity(4)
    rot[1, 1] = c
    rot[1, 2] = -s
    rot[2, 1] = s
    rot[2, 2] = c
    return rot


def rotation_y(angle_rad: float) -> np.ndarray:
    c = math.cos(angle_rad)
    s = math.sin(angle_rad)
    rot = np.identity(4)
    rot[0, 0] = c
    rot[0, 2] = s
    rot[2, 0] = -s
    rot[2, 2] = c
    return rot


def transform_point(
    matrix: np.ndarray, point: tuple[float, float, float]
) -> tuple[float, float, float]:
    """Apply a 4x4 homogeneous matrix to a 3D point."""
    x, y, z, _ = matrix @ np.array([point[0], point[1], point[2], 1.0])
    return float(x), float(y), float(z)
