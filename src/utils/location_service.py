"""
OpenWeatherMap client for place names and current conditions.

All requests go through ``_get_json``, which converts transport errors,
non-2xx responses and unreadable bodies into ``NetworkFailureError``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import requests
from loguru import logger

from src.core.errors import NetworkFailureError
from src.core.weather import WeatherKind, map_weather_code

API_BASE_URL = "https://api.openweathermap.org"
REQUEST_TIMEOUT = 8
SEARCH_LIMIT = 5


@dataclass(frozen=True)
class GeocodeResult:
    """Place returned by a forward geocoding search."""

    name: str
    country: str
    latitude: float
    longitude: float
    state: str | None = None

    @property
    def display_name(self) -> str:
        parts = [self.name]
        if self.state:
            parts.append(self.state)
        parts.append(self.country)
        return ", ".join(part for part in parts if part)


@dataclass(frozen=True)
class CurrentWeather:
    """Current conditions reduced to simulation units."""

    temperature_c: float
    humidity_pct: int
    weather_kind: WeatherKind
    wind_speed: float


def _get_json(path: str, params: dict[str, Any]) -> Any:
    url = f"{API_BASE_URL}{path}"
    try:
        response = requests.get(url, params=params, timeout=REQUEST_TIMEOUT)
        response.raise_for_status()
        return response.json()
    except requests.RequestException as exc:
        raise NetworkFailureError(f"request to {path} failed: {exc}") from exc
    except ValueError as exc:
        raise NetworkFailureError(f"invalid response from {path}") from exc


def format_coordinates(latitude: float, longitude: float) -> str:
    """Fallback place label, e.g. ``"-12.9156, -55.3142"``."""
    return f"{latitude:.4f}, {longitude:.4f}"


def reverse_geocode(latitude: float, longitude: float, api_key: str) -> dict[str, str] | None:
    """Look up the place at a coordinate.

    Returns
    -------
    dict | None
        ``{"name": ..., "country": ...}`` or ``None`` when nothing matches.

    Raises
    ------
    NetworkFailureError
        Raised when the request fails.
    """
    data = _get_json(
        "/geo/1.0/reverse",
        {"lat": latitude, "lon": longitude, "limit": 1, "appid": api_key},
    )
    if not data:
        return None
    first = data[0]
    return {"name": str(first.get("name", "")), "country": str(first.get("country", ""))}


def search_location(query: str, api_key: str) -> list[GeocodeResult]:
    """Forward geocode ``query`` into at most five places.

    Raises
    ------
    NetworkFailureError
        Raised when the request fails.
    """
    query = query.strip()
    if not query:
        return []
    data = _get_json(
        "/geo/1.0/direct", {"q": query, "limit": SEARCH_LIMIT, "appid": api_key}
    )
    results = []
    for item in data or []:
        results.append(
            GeocodeResult(
                name=str(item.get("name", "")),
                country=str(item.get("country", "")),
                latitude=float(item["lat"]),
                longitude=float(item["lon"]),
                state=item.get("state"),
            )
        )
    logger.debug(f"Location search '{query}' returned {len(results)} results")
    return results


def fetch_current_weather(latitude: float, longitude: float, api_key: str) -> dict[str, Any]:
    """Raw current-weather payload in metric units.

    Raises
    ------
    NetworkFailureError
        Raised when the request fails.
    """
    return _get_json(
        "/data/2.5/weather",
        {"lat": latitude, "lon": longitude, "units": "metric", "appid": api_key},
    )


def parse_current_weather(payload: dict[str, Any]) -> CurrentWeather:
    """Reduce a current-weather payload to ``CurrentWeather``.

    Raises
    ------
    NetworkFailureError
        Raised when expected keys are missing.
    """
    try:
        return CurrentWeather(
            temperature_c=float(payload["main"]["temp"]),
            humidity_pct=int(payload["main"]["humidity"]),
            weather_kind=map_weather_code(int(payload["weather"][0]["id"])),
            wind_speed=float(payload["wind"]["speed"]),
        )
    except (KeyError, IndexError, TypeError, ValueError) as exc:
        raise NetworkFailureError(f"unexpected weather payload: {exc}") from exc


def fetch_current_conditions(
    latitude: float, longitude: float, api_key: str
) -> CurrentWeather:
    """Current conditions for a coordinate.

    Raises
    ------
    NetworkFailureError
        Raised when the request fails or the payload is incomplete.
    """
    conditions = parse_current_weather(fetch_current_weather(latitude, longitude, api_key))
    logger.debug(
        f"Current conditions at ({latitude:.4f}, {longitude:.4f}): "
        f"{conditions.weather_kind.label}, {conditions.temperature_c:.1f} C"
    )
    return conditions


def resolve_location_name(latitude: float, longitude: float, api_key: str | None) -> str:
    """Human readable name for a coordinate, never raising.

    Falls back to ``format_coordinates`` without an API key, on network
    failures, or when the lookup finds nothing.
    """
    fallback = format_coordinates(latitude, longitude)
    if not api_key:
        return fallback
    try:
        place = reverse_geocode(latitude, longitude, api_key)
    except NetworkFailureError as exc:
        logger.warning(f"Reverse geocoding failed, using coordinates: {exc}")
        return fallback
    if place is None or not place["name"]:
        return fallback
    if place["country"]:
        return f"{place['name']}, {place['country']}"
    return place["name"]
