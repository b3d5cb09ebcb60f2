from pathlib import Path

import pytest

from flightglobe.airports import DEFAULT_AIRPORTS_PATH, AirportKey
from flightglobe.config import ConfigError, Settings, parse_endpoints
from flightglobe.inflight import Endpoint, ResponseSchema
from flightglobe.models import AlignmentMode

ENV_VARS = (
    "ENDPOINTS",
    "REQUEST_TIMEOUT_S",
    "POLL_INTERVAL_S",
    "SUN_INTERVAL_S",
    "AIRPORTS_PATH",
    "AIRPORT_KEY",
    "ALIGNMENT",
    "ALLOWED_SSIDS",
    "SSID",
    "LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv("FLIGHTGLOBE_" + name, raising=False)


def test_parse_endpoints_keeps_rank_order():
    endpoints = parse_endpoints(
        "nested=https://b.example/tray, flat=https://a.example/f.php"
    )
    assert endpoints == (
        Endpoint("https://b.example/tray", ResponseSchema.NESTED),
        Endpoint("https://a.example/f.php", ResponseSchema.FLAT),
    )


def test_parse_endpoints_bare_url_is_flat():
    (endpoint,) = parse_endpoints("https://a.example/f.php?x=1")
    assert endpoint == Endpoint("https://a.example/f.php?x=1", ResponseSchema.FLAT)


@pytest.mark.parametrize("text", ["", " , ", "xml=https://a.example"])
def test_parse_endpoints_rejects(text):
    with pytest.raises(ConfigError):
        parse_endpoints(text)


def test_defaults():
    settings = Settings.from_env()
    assert [e.schema for e in settings.endpoints] == [
        ResponseSchema.FLAT,
        ResponseSchema.NESTED,
    ]
    assert settings.request_timeout_s == 30.0
    assert settings.poll_interval_s == 10.0
    assert settings.sun_interval_s == 60.0
    assert settings.airports_path == DEFAULT_AIRPORTS_PATH
    assert settings.airport_key is AirportKey.ICAO
    assert settings.alignment is AlignmentMode.POLES
    assert settings.allowed_ssids == ("gogoinflight", "AA-Inflight")
    assert settings.ssid is None
    assert settings.log_level == "INFO"


def test_overrides(monkeypatch):
    monkeypatch.setenv("FLIGHTGLOBE_POLL_INTERVAL_S", "2.5")
    monkeypatch.setenv("FLIGHTGLOBE_AIRPORT_KEY", "IATA")
    monkeypatch.setenv("FLIGHTGLOBE_ALIGNMENT", "terminator")
    monkeypatch.setenv("FLIGHTGLOBE_AIRPORTS_PATH", "/tmp/airports.json")
    monkeypatch.setenv("FLIGHTGLOBE_ALLOWED_SSIDS", "PlaneNet")
    monkeypatch.setenv("FLIGHTGLOBE_SSID", "PlaneNet")
    monkeypatch.setenv("FLIGHTGLOBE_LOG_LEVEL", "debug")

    settings = Settings.from_env()
    assert settings.poll_interval_s == 2.5
    assert settings.airport_key is AirportKey.IATA
    assert settings.alignment is AlignmentMode.DAY_NIGHT_TERMINATOR
    assert settings.airports_path == Path("/tmp/airports.json")
    assert settings.allowed_ssids == ("PlaneNet",)
    assert settings.ssid == "PlaneNet"
    assert settings.log_level == "DEBUG"


@pytest.mark.parametrize(
    "name,value",
    [
        ("POLL_INTERVAL_S", "soon"),
        ("REQUEST_TIMEOUT_S", "0"),
        ("SUN_INTERVAL_S", "-60"),
        ("ALIGNMENT", "equator"),
        ("AIRPORT_KEY", "faa"),
        ("LOG_LEVEL", "chatty"),
        ("ENDPOINTS", " "),
    ],
)
def test_invalid_values(monkeypatch, name, value):
    monkeypatch.setenv("FLIGHTGLOBE_" + name, value)
    with pytest.raises(ConfigError):
        Settings.from_env()
