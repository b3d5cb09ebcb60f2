"""Shared configuration for the flight globe, read from the environment."""

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from flightglobe.airports import DEFAULT_AIRPORTS_PATH, AirportKey
from flightglobe.inflight import DEFAULT_TIMEOUT_S, Endpoint, ResponseSchema
from flightglobe.models import AlignmentMode

ENV_PREFIX = "FLIGHTGLOBE_"

# ─── Data Fetching ─────────────────────────────────
DEFAULT_ENDPOINTS = (
    "flat=https://kertob.americanplus.us/gtgn/flight2.php,"
    "nested=https://airborne.gogoinflight.com/abp/ws/absServices/statusTray"
)
POLL_INTERVAL_S = 10.0
SUN_INTERVAL_S = 60.0

# ─── Networks ──────────────────────────────────────
DEFAULT_ALLOWED_SSIDS = "gogoinflight,AA-Inflight"

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


class ConfigError(ValueError):
    """Invalid configuration value."""


def parse_endpoints(text: str) -> tuple[Endpoint, ...]:
    """Parse a comma-separated ranking of ``schema=url`` entries.

    A bare URL means the flat schema. Order is preserved.

    Raises:
        ConfigError: On an unknown schema or an empty ranking.
    """
    endpoints: list[Endpoint] = []
    for raw in text.split(","):
        entry = raw.strip()
        if not entry:
            continue
        schema_name, sep, url = entry.partition("=")
        if not sep or "://" in schema_name:
            endpoints.append(Endpoint(url=entry))
            continue
        try:
            schema = ResponseSchema(schema_name.strip().lower())
        except ValueError as e:
            raise ConfigError(f"unknown response schema {schema_name!r} in {entry!r}") from e
        endpoints.append(Endpoint(url=url.strip(), schema=schema))
    if not endpoints:
        raise ConfigError("no endpoints configured")
    return tuple(endpoints)


def _env(name: str, default: str) -> str:
    return os.environ.get(ENV_PREFIX + name, default).strip()


def _float_env(name: str, default: float) -> float:
    raw = _env(name, str(default))
    try:
        value = float(raw)
    except ValueError as e:
        raise ConfigError(f"{ENV_PREFIX}{name} must be a number, got {raw!r}") from e
    if value <= 0:
        raise ConfigError(f"{ENV_PREFIX}{name} must be positive, got {raw!r}")
    return value


def _enum_env(name: str, enum_type, default):
    raw = _env(name, default.value).lower()
    try:
        return enum_type(raw)
    except ValueError as e:
        choices = ", ".join(m.value for m in enum_type)
        raise ConfigError(f"{ENV_PREFIX}{name} must be one of {choices}, got {raw!r}") from e


@dataclass(frozen=True)
class Settings:
    """Runtime settings. Build with Settings.from_env() after load_dotenv()."""

    endpoints: tuple[Endpoint, ...]
    request_timeout_s: float = DEFAULT_TIMEOUT_S
    poll_interval_s: float = POLL_INTERVAL_S
    sun_interval_s: float = SUN_INTERVAL_S
    airports_path: Path = DEFAULT_AIRPORTS_PATH
    airport_key: AirportKey = AirportKey.ICAO
    alignment: AlignmentMode = AlignmentMode.POLES
    allowed_ssids: tuple[str, ...] = ()
    ssid: str | None = None  # Current network as reported by the host; None if unknown
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        """Read FLIGHTGLOBE_* variables.

        Raises:
            ConfigError: If any value is invalid.
        """
        log_level = _env("LOG_LEVEL", "INFO").upper()
        if not isinstance(logging.getLevelName(log_level), int):
            raise ConfigError(f"{ENV_PREFIX}LOG_LEVEL: unknown level {log_level!r}")
        ssids = _env("ALLOWED_SSIDS", DEFAULT_ALLOWED_SSIDS)
        return cls(
            endpoints=parse_endpoints(_env("ENDPOINTS", DEFAULT_ENDPOINTS)),
            request_timeout_s=_float_env("REQUEST_TIMEOUT_S", DEFAULT_TIMEOUT_S),
            poll_interval_s=_float_env("POLL_INTERVAL_S", POLL_INTERVAL_S),
            sun_interval_s=_float_env("SUN_INTERVAL_S", SUN_INTERVAL_S),
            airports_path=Path(_env("AIRPORTS_PATH", str(DEFAULT_AIRPORTS_PATH))),
            airport_key=_enum_env("AIRPORT_KEY", AirportKey, AirportKey.ICAO),
            alignment=_enum_env("ALIGNMENT", AlignmentMode, AlignmentMode.POLES),
            allowed_ssids=tuple(s.strip() for s in ssids.split(",") if s.strip()),
            ssid=_env("SSID", "") or None,
            log_level=log_level,
        )


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=level, format=LOG_FORMAT)
