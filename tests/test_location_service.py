"""Tests for the OpenWeatherMap location client."""

from __future__ import annotations

import pytest
import requests

from src.core.errors import NetworkFailureError
from src.core.weather import WeatherKind
from src.utils import location_service
from src.utils.location_service import (
    fetch_current_conditions,
    fetch_current_weather,
    format_coordinates,
    parse_current_weather,
    resolve_location_name,
    reverse_geocode,
    search_location,
)


class _FakeResponse:
    def __init__(self, payload, status_code: int = 200) -> None:
        self._payload = payload
        self.status_code = status_code

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self):
        return self._payload


@pytest.fixture
def fake_get(monkeypatch):
    calls: list[tuple[str, dict]] = []
    responses: list[object] = []

    def _get(url, params=None, timeout=None):
        calls.append((url, params))
        response = responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    monkeypatch.setattr(location_service.requests, "get", _get)
    return calls, responses


def test_reverse_geocode(fake_get) -> None:
    calls, responses = fake_get
    responses.append(_FakeResponse([{"name": "Sorriso", "country": "BR"}]))
    assert reverse_geocode(-12.5, -55.7, "key") == {"name": "Sorriso", "country": "BR"}
    url, params = calls[0]
    assert url.endswith("/geo/1.0/reverse")
    assert params == {"lat": -12.5, "lon": -55.7, "limit": 1, "appid": "key"}


def test_search_location(fake_get) -> None:
    calls, responses = fake_get
    responses.append(
        _FakeResponse(
            [
                {"name": "Paris", "country": "FR", "state": "Ile-de-France", "lat": 48.85, "lon": 2.35},
                {"name": "Paris", "country": "US", "lat": 33.66, "lon": -95.55},
            ]
        )
    )
    results = search_location(" Paris ", "key")
    assert [r.country for r in results] == ["FR", "US"]
    assert results[0].display_name == "Paris, Ile-de-France, FR"
    assert results[1].display_name == "Paris, US"
    assert calls[0][1]["limit"] == 5
    assert calls[0][1]["q"] == "Paris"


def test_search_location_blank_query_skips_request(fake_get) -> None:
    calls, _ = fake_get
    assert search_location("   ", "key") == []
    assert calls == []


def test_fetch_and_parse_current_weather(fake_get) -> None:
    calls, responses = fake_get
    responses.append(
        _FakeResponse(
            {
                "main": {"temp": 27.3, "humidity": 64},
                "weather": [{"id": 501}],
                "wind": {"speed": 3.1},
            }
        )
    )
    weather = parse_current_weather(fetch_current_weather(1.0, 2.0, "key"))
    assert weather.weather_kind is WeatherKind.RAINY
    assert weather.temperature_c == 27.3
    assert weather.humidity_pct == 64
    assert calls[0][1]["units"] == "metric"


def test_fetch_current_conditions(fake_get) -> None:
    _, responses = fake_get
    responses.append(
        _FakeResponse(
            {
                "main": {"temp": 12.0, "humidity": 91},
                "weather": [{"id": 211}],
                "wind": {"speed": 9.4},
            }
        )
    )
    conditions = fetch_current_conditions(1.0, 2.0, "key")
    assert conditions.weather_kind is WeatherKind.STORMY
    assert conditions.wind_speed == 9.4


def test_fetch_current_conditions_incomplete_payload(fake_get) -> None:
    _, responses = fake_get
    responses.append(_FakeResponse({"weather": []}))
    with pytest.raises(NetworkFailureError):
        fetch_current_conditions(1.0, 2.0, "key")


def test_parse_current_weather_rejects_bad_payload() -> None:
    with pytest.raises(NetworkFailureError):
        parse_current_weather({"main": {}})


def test_http_error_raises_network_failure(fake_get) -> None:
    _, responses = fake_get
    responses.append(_FakeResponse({"message": "unauthorized"}, status_code=401))
    with pytest.raises(NetworkFailureError):
        reverse_geocode(0.0, 0.0, "bad")


def test_resolve_location_name_success(fake_get) -> None:
    _, responses = fake_get
    responses.append(_FakeResponse([{"name": "Sorriso", "country": "BR"}]))
    assert resolve_location_name(-12.5, -55.7, "key") == "Sorriso, BR"


def test_resolve_location_name_degrades_on_network_error(fake_get) -> None:
    _, responses = fake_get
    responses.append(requests.ConnectionError("offline"))
    assert resolve_location_name(-12.915559, -55.314216, "key") == "-12.9156, -55.3142"


def test_resolve_location_name_degrades_on_empty_result(fake_get) -> None:
    _, responses = fake_get
    responses.append(_FakeResponse([]))
    assert resolve_location_name(10.0, 20.0, "key") == format_coordinates(10.0, 20.0)


def test_resolve_location_name_without_key(fake_get) -> None:
    calls, _ = fake_get
    assert resolve_location_name(1.23456, 2.0, None) == "1.2346, 2.0000"
    assert calls == []
