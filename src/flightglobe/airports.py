"""Static airport lookup — loaded once, keyed by ICAO (or IATA) code."""

import json
import logging
from enum import Enum
from pathlib import Path

from flightglobe.models import Airport

logger = logging.getLogger(__name__)

DEFAULT_AIRPORTS_PATH = Path(__file__).parent / "data" / "airports.json"


class AirportKey(Enum):
    """Which code the feed's origin/destination fields are joined on."""

    ICAO = "icao"
    IATA = "iata"


def load_airports(path: Path) -> tuple[Airport, ...]:
    """Parse a JSON array of airport records.

    Raises:
        OSError: If the file cannot be read.
        ValueError: If the file is not a JSON array of valid records.
    """
    with path.open(encoding="utf-8") as f:
        records = json.load(f)
    if not isinstance(records, list):
        raise ValueError(f"{path}: expected a JSON array of airports")
    try:
        return tuple(Airport.from_json(r) for r in records)
    except (KeyError, TypeError, ValueError) as e:
        raise ValueError(f"{path}: invalid airport record ({e!r})") from e


class AirportIndex:
    """Code → Airport mapping. Read-only after construction.

    Blank codes are not indexed; on duplicate codes the first record wins.
    """

    def __init__(self, airports=(), key: AirportKey = AirportKey.ICAO) -> None:
        self.key = key
        self._by_code: dict[str, Airport] = {}
        for airport in airports:
            code = getattr(airport, key.value).strip().upper()
            if code and code not in self._by_code:
                self._by_code[code] = airport

    @classmethod
    def from_file(
        cls, path: Path = DEFAULT_AIRPORTS_PATH, key: AirportKey = AirportKey.ICAO
    ) -> "AirportIndex":
        """Load the dataset. A missing or corrupt file yields an empty index."""
        try:
            airports = load_airports(Path(path))
        except (OSError, ValueError) as e:
            logger.error("Failed to load airport data from %s: %s", path, e)
            return cls((), key)
        index = cls(airports, key)
        logger.info("Loaded %d airports keyed by %s", len(index), key.value)
        return index

    def lookup(self, code: str | None) -> Airport | None:
        if not code:
            return None
        return self._by_code.get(code.strip().upper())

    @property
    def is_empty(self) -> bool:
        return not self._by_code

    def __len__(self) -> int:
        return len(self._by_code)

    def __contains__(self, code: object) -> bool:
        return isinstance(code, str) and self.lookup(code) is not None
