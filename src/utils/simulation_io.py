"""JSON load/save helpers for simulation configuration files."""

from __future__ import annotations

import json
import math
from pathlib import Path
from typing import Any

from loguru import logger

from src.core.crops import parse_crop_type
from src.core.errors import ConfigValidationError
from src.core.field_geometry import validate_polygon
from src.core.simulation import FieldLocation, SimulationConfig, WeatherSettings

REQUIRED_FIELDS = ("type", "hectares", "density", "polygon")


def _require_fields(data: dict[str, Any]) -> None:
    """Raise for the first missing required field.

    ``density`` may be ``0``, so presence is checked against ``None``.
    """
    for key in REQUIRED_FIELDS:
        if data.get(key) is None:
            raise ConfigValidationError(f"missing required field: '{key}'")


def _parse_location(raw: Any) -> FieldLocation | None:
    if raw is None:
        return None
    if not isinstance(raw, dict):
        raise ConfigValidationError("'location' must be an object")
    try:
        return FieldLocation(
            latitude=float(raw["latitude"]),
            longitude=float(raw["longitude"]),
            name=str(raw.get("name") or ""),
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise ConfigValidationError(f"invalid location: {exc}") from exc


def _parse_weather_settings(raw: Any) -> WeatherSettings:
    if raw is None:
        return WeatherSettings()
    if not isinstance(raw, dict):
        raise ConfigValidationError("'weatherSettings' must be an object")
    api_key = raw.get("apiKey")
    return WeatherSettings(
        use_real_weather=bool(raw.get("useRealWeather", True)),
        api_key=str(api_key) if api_key else None,
    )


def config_from_dict(data: dict[str, Any]) -> SimulationConfig:
    """Build a ``SimulationConfig`` from its flat JSON form.

    Parameters
    ----------
    data : dict
        Mapping with ``type``, ``hectares``, ``density`` and ``polygon``,
        plus optional ``location`` and ``weatherSettings``.

    Returns
    -------
    SimulationConfig
        Validated configuration.

    Raises
    ------
    ConfigValidationError
        Raised for missing or malformed scalar fields.
    InvalidPolygonError
        Raised when ``polygon`` is not a list of at least 3 ``[x, y, z]``
        vertices.
    """
    if not isinstance(data, dict):
        raise ConfigValidationError("configuration must be a JSON object")
    _require_fields(data)

    try:
        crop_type = parse_crop_type(data["type"])
    except ValueError as exc:
        raise ConfigValidationError(str(exc)) from exc
    try:
        hectares = float(data["hectares"])
        density = int(float(data["density"]))
    except (TypeError, ValueError) as exc:
        raise ConfigValidationError(f"invalid numeric field: {exc}") from exc
    if not math.isfinite(hectares) or hectares <= 0:
        raise ConfigValidationError("'hectares' must be a positive number")
    if not 0 <= density <= 100:
        raise ConfigValidationError("'density' must be between 0 and 100")

    polygon = validate_polygon(data["polygon"])

    return SimulationConfig(
        crop_type=crop_type,
        hectares=hectares,
        density=density,
        polygon=polygon.tolist(),
        location=_parse_location(data.get("location")),
        weather_settings=_parse_weather_settings(data.get("weatherSettings")),
    )


def config_to_dict(config: SimulationConfig) -> dict[str, Any]:
    """Flat JSON form of ``config``; ``location`` omitted when unset."""
    data: dict[str, Any] = {
        "type": config.crop_type.value,
        "hectares": config.hectares,
        "density": config.density,
        "polygon": [list(vertex) for vertex in config.polygon],
    }
    if config.location is not None:
        data["location"] = {
            "latitude": config.location.latitude,
            "longitude": config.location.longitude,
            "name": config.location.name,
        }
    weather_settings: dict[str, Any] = {
        "useRealWeather": config.weather_settings.use_real_weather
    }
    if config.weather_settings.api_key:
        weather_settings["apiKey"] = config.weather_settings.api_key
    data["weatherSettings"] = weather_settings
    return data


def load_simulation_config(path: str | Path) -> SimulationConfig:
    """Read and validate a simulation JSON file."""
    path_obj = Path(path)
    try:
        data = json.loads(path_obj.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ConfigValidationError(f"invalid JSON: {exc.msg}") from exc
    config = config_from_dict(data)
    logger.info(f"Loaded simulation config from {path_obj}")
    return config


def save_simulation_config(config: SimulationConfig, path: str | Path) -> Path:
    """Write ``config`` as indented JSON, forcing a ``.json`` suffix."""
    path_obj = Path(path)
    if path_obj.suffix.lower() != ".json":
        path_obj = path_obj.with_suffix(".json")
    path_obj.parent.mkdir(parents=True, exist_ok=True)
    path_obj.write_text(json.dumps(config_to_dict(config), indent=2), encoding="utf-8")
    logger.info(f"Saved simulation config to {path_obj}")
    return path_obj
