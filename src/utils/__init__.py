"""Utility package exports for CropGrowthSim."""

from src.utils.field_io import (
    field_to_gdf,
    plants_to_gdf,
    save_field_layout,
    save_timeline_csv,
)
from src.utils.location_service import (
    CurrentWeather,
    GeocodeResult,
    fetch_current_conditions,
    fetch_current_weather,
    parse_current_weather,
    resolve_location_name,
    reverse_geocode,
    search_location,
)
from src.utils.simulation_io import (
    config_from_dict,
    config_to_dict,
    load_simulation_config,
    save_simulation_config,
)

__all__ = [
    "CurrentWeather",
    "GeocodeResult",
    "config_from_dict",
    "config_to_dict",
    "fetch_current_conditions",
    "fetch_current_weather",
    "field_to_gdf",
    "load_simulation_config",
    "parse_current_weather",
    "plants_to_gdf",
    "resolve_location_name",
    "reverse_geocode",
    "save_field_layout",
    "save_simulation_config",
    "save_timeline_csv",
    "search_location",
]
