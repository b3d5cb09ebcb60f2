import json
from datetime import datetime, timezone
from pathlib import Path

import httpx
import pytest

from flightglobe.airports import DEFAULT_AIRPORTS_PATH, AirportIndex

FIXTURES = Path(__file__).parent / "fixtures"

# Mid-June: seasonal tilt is near its maximum.
SUMMER_NOON = datetime(2024, 6, 20, 12, 0, tzinfo=timezone.utc)


def load_fixture(name: str) -> dict:
    with (FIXTURES / name).open(encoding="utf-8") as f:
        return json.load(f)


@pytest.fixture
def flat_payload() -> dict:
    return load_fixture("flat.json")


@pytest.fixture
def nested_payload() -> dict:
    return load_fixture("nested.json")


@pytest.fixture
def airports() -> AirportIndex:
    return AirportIndex.from_file(DEFAULT_AIRPORTS_PATH)


class FakeFeed:
    """httpx.MockTransport handler serving canned responses per URL.

    `routes` maps URL → (status, json body) or an exception instance to raise.
    Every request URL is recorded in `calls`.
    """

    def __init__(self, routes: dict):
        self.routes = dict(routes)
        self.calls: list[str] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.calls.append(url)
        route = self.routes[url]
        if isinstance(route, Exception):
            raise route
        status, body = route
        return httpx.Response(status, json=body)

    def client(self) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(self))
