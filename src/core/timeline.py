"""Crop growth timeline built on top of generated weather."""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, fields
from enum import Enum

import numpy as np
import pandas as pd
from loguru import logger

from src.core.crops import CropType
from src.core.simulation import FieldLocation, SimulationConfig
from src.core.weather import (
    DEFAULT_START_DATE,
    WeatherDay,
    generate_location_weather,
    generate_seasonal_weather,
)

DEFAULT_SIMULATION_DAYS = 90


class GrowthStage(str, Enum):
    """Crop development stage."""

    SEEDLING = "seedling"
    VEGETATIVE = "vegetative"
    REPRODUCTIVE = "reproductive"
    MATURE = "mature"


@dataclass(frozen=True)
class TimelineDay(WeatherDay):
    """Weather day annotated with crop growth."""

    growth_percent: float = 0.0
    growth_stage: GrowthStage = GrowthStage.SEEDLING


@dataclass(frozen=True)
class Timeline:
    """Ordered growth days for one field."""

    crop_type: CropType
    hectares: float
    density: int
    days: tuple[TimelineDay, ...]
    location: FieldLocation | None = None

    def __len__(self) -> int:
        return len(self.days)

    def __getitem__(self, index: int) -> TimelineDay:
        return self.days[index]

    def to_dataframe(self) -> pd.DataFrame:
        """One row per day, enums as their string values."""
        records = []
        for day in self.days:
            records.append(
                {
                    "day_index": day.day_index,
                    "date": pd.Timestamp(day.date),
                    "weather": day.weather_kind.value,
                    "temperature_c": day.temperature_c,
                    "humidity_pct": day.humidity_pct,
                    "wind_speed": day.wind_speed,
                    "growth_factor": day.growth_factor,
                    "growth_percent": day.growth_percent,
                    "growth_stage": day.growth_stage.value,
                }
            )
        columns = [
            "day_index",
            "date",
            "weather",
            "temperature_c",
            "humidity_pct",
            "wind_speed",
            "growth_factor",
            "growth_percent",
            "growth_stage",
        ]
        return pd.DataFrame.from_records(records, columns=columns)


def determine_growth_stage(growth_percent: float) -> GrowthStage:
    """Map a growth percent in ``[0, 1]`` to its stage."""
    if growth_percent < 0.2:
        return GrowthStage.SEEDLING
    if growth_percent < 0.6:
        return GrowthStage.VEGETATIVE
    if growth_percent < 0.9:
        return GrowthStage.REPRODUCTIVE
    return GrowthStage.MATURE


def growth_percent_for_day(day_index: int, total_days: int, growth_factor: float) -> float:
    """S-shaped growth curve modulated by the day's growth factor.

    Parameters
    ----------
    day_index : int
        1-based day position.
    total_days : int
        Number of days in the timeline.
    growth_factor : float
        Weather favorability in ``[0, 1]``.

    Returns
    -------
    float
        Growth percent clamped to ``[0, 1]``.
    """
    ratio = day_index / total_days
    if ratio < 0.2:
        base_growth = 0.2 + ratio * 0.5
    elif ratio < 0.7:
        base_growth = 0.3 + (ratio - 0.2) * 1.2
    else:
        base_growth = 0.7 + (ratio - 0.7) * 0.6
    adjusted = base_growth * (0.8 + growth_factor * 0.4)
    return float(min(1.0, max(0.0, adjusted)))


def build_growth_days(
    weather_days: list[WeatherDay], crop_type: CropType
) -> list[TimelineDay]:
    """Annotate weather days with growth percent and stage.

    ``crop_type`` is carried for per-crop curves; every crop currently
    shares the same curve.
    """
    total_days = len(weather_days)
    growth_days = []
    for weather_day in weather_days:
        percent = growth_percent_for_day(
            weather_day.day_index, total_days, weather_day.growth_factor
        )
        values = {f.name: getattr(weather_day, f.name) for f in fields(WeatherDay)}
        growth_days.append(
            TimelineDay(
                **values,
                growth_percent=percent,
                growth_stage=determine_growth_stage(percent),
            )
        )
    logger.debug(f"Built {len(growth_days)} growth days for {crop_type.value}")
    return growth_days


def create_crop_timeline(
    config: SimulationConfig,
    start_date: dt.date = DEFAULT_START_DATE,
    days: int = DEFAULT_SIMULATION_DAYS,
    rng: np.random.Generator | None = None,
) -> Timeline:
    """Generate weather for a field and derive its growth timeline.

    Location-aware weather is used when ``config.location`` is set,
    seasonal weather otherwise.
    """
    if rng is None:
        rng = np.random.default_rng()
    location = config.location
    if location is not None:
        weather_days = generate_location_weather(
            location.latitude, location.longitude, days, start_date, rng
        )
    else:
        weather_days = generate_seasonal_weather(days, start_date, rng)

    growth_days = build_growth_days(weather_days, config.crop_type)
    logger.info(
        f"Timeline created: {len(growth_days)} days, "
        f"{'location' if location is not None else 'seasonal'} weather"
    )
    return Timeline(
        crop_type=config.crop_type,
        hectares=config.hectares,
        density=config.density,
        days=tuple(growth_days),
        location=location,
    )
