"""Tests for growth timeline construction."""

from __future__ import annotations

import datetime as dt

import numpy as np
import pytest

from src.core.crops import CropType
from src.core.simulation import FieldLocation, SimulationConfig
from src.core.timeline import (
    GrowthStage,
    build_growth_days,
    create_crop_timeline,
    determine_growth_stage,
    growth_percent_for_day,
)
from src.core.weather import WeatherDay, WeatherKind, generate_seasonal_weather

SQUARE = [[-30, 0, -30], [-30, 0, 30], [30, 0, 30], [30, 0, -30]]


def _config(location: FieldLocation | None = None) -> SimulationConfig:
    return SimulationConfig(
        crop_type="corn", hectares=1.5, density=80, polygon=SQUARE, location=location
    )


def _constant_weather(days: int, factor: float) -> list[WeatherDay]:
    start = dt.date(2025, 3, 20)
    return [
        WeatherDay(
            day_index=i + 1,
            date=start + dt.timedelta(days=i),
            weather_kind=WeatherKind.SUNNY,
            temperature_c=22.0,
            humidity_pct=50,
            growth_factor=factor,
        )
        for i in range(days)
    ]


@pytest.mark.parametrize(
    ("percent", "stage"),
    [
        (0.0, GrowthStage.SEEDLING),
        (0.19, GrowthStage.SEEDLING),
        (0.2, GrowthStage.VEGETATIVE),
        (0.59, GrowthStage.VEGETATIVE),
        (0.6, GrowthStage.REPRODUCTIVE),
        (0.89, GrowthStage.REPRODUCTIVE),
        (0.9, GrowthStage.MATURE),
        (1.0, GrowthStage.MATURE),
    ],
)
def test_determine_growth_stage_boundaries(percent: float, stage: GrowthStage) -> None:
    assert determine_growth_stage(percent) is stage


def test_growth_stage_is_monotonic() -> None:
    order = list(GrowthStage)
    stages = [determine_growth_stage(p) for p in np.linspace(0.0, 1.0, 201)]
    ranks = [order.index(stage) for stage in stages]
    assert ranks == sorted(ranks)


def test_growth_percent_piecewise_curve() -> None:
    # Neutral factor 0.5 leaves the base curve unchanged.
    assert growth_percent_for_day(1, 10, 0.5) == pytest.approx(0.25)
    assert growth_percent_for_day(5, 10, 0.5) == pytest.approx(0.66)
    assert growth_percent_for_day(10, 10, 0.5) == pytest.approx(0.88)


def test_growth_percent_is_clamped() -> None:
    assert growth_percent_for_day(10, 10, 1.0) == pytest.approx(1.0)
    assert growth_percent_for_day(1, 100, 0.0) >= 0.0


def test_growth_is_non_decreasing_within_curve_segments() -> None:
    total = 90
    days = build_growth_days(_constant_weather(total, 0.7), CropType.WHEAT)
    segments: dict[int, list[float]] = {0: [], 1: [], 2: []}
    for day in days:
        ratio = day.day_index / total
        segment = 0 if ratio < 0.2 else 1 if ratio < 0.7 else 2
        segments[segment].append(day.growth_percent)
    for percents in segments.values():
        assert percents
        assert percents == sorted(percents)
    assert days[-1].growth_stage is GrowthStage.MATURE


def test_build_growth_days_keeps_weather_fields() -> None:
    weather = _constant_weather(3, 0.4)
    days = build_growth_days(weather, CropType.CORN)
    for weather_day, day in zip(weather, days):
        assert day.day_index == weather_day.day_index
        assert day.date == weather_day.date
        assert day.weather_kind is weather_day.weather_kind
        assert day.growth_factor == weather_day.growth_factor


def test_ten_day_seasonal_timeline() -> None:
    timeline = create_crop_timeline(
        _config(), dt.date(2025, 3, 20), days=10, rng=np.random.default_rng(0)
    )
    assert len(timeline) == 10
    assert timeline.days[0].day_index == 1
    assert timeline.days[9].date == dt.date(2025, 3, 29)
    assert timeline.location is None
    assert all(day.wind_speed is None for day in timeline.days)
    for i, day in enumerate(timeline.days):
        assert day.day_index == i + 1
        assert 0.0 <= day.growth_percent <= 1.0
        assert day.growth_stage is determine_growth_stage(day.growth_percent)


def test_location_timeline_uses_location_weather() -> None:
    location = FieldLocation(-12.915559, -55.314216, "Mato Grosso (Brazil)")
    timeline = create_crop_timeline(
        _config(location), dt.date(2025, 3, 20), days=15, rng=np.random.default_rng(0)
    )
    assert timeline.location == location
    assert all(day.wind_speed is not None for day in timeline.days)
    assert all(10 <= day.humidity_pct <= 100 for day in timeline.days)


def test_timeline_dataframe() -> None:
    timeline = create_crop_timeline(_config(), days=7, rng=np.random.default_rng(1))
    timeline_df = timeline.to_dataframe()
    assert len(timeline_df) == 7
    assert list(timeline_df["day_index"]) == list(range(1, 8))
    assert set(timeline_df["weather"]) <= {kind.value for kind in WeatherKind}
    assert timeline_df["growth_percent"].between(0.0, 1.0).all()


def test_seasonal_generator_feeds_growth_days() -> None:
    weather = generate_seasonal_weather(0)
    assert build_growth_days(weather, CropType.RICE) == []
