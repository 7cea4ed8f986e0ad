"""
Synthetic daily weather generation.

Two generators produce the same ``WeatherDay`` sequence:

- ``generate_seasonal_weather``: location-agnostic, northern-hemisphere
  seasons with day-to-day persistence.
- ``generate_location_weather``: latitude-aware temperatures, hemisphere
  adjusted seasons and wind speed.
"""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from enum import Enum

import numpy as np
from loguru import logger


class WeatherKind(str, Enum):
    """Daily weather category."""

    SUNNY = "sunny"
    PARTLY_CLOUDY = "partly_cloudy"
    CLOUDY = "cloudy"
    RAINY = "rainy"
    STORMY = "stormy"

    @property
    def label(self) -> str:
        """Human readable name, e.g. ``Partly Cloudy``."""
        return " ".join(word.capitalize() for word in self.value.split("_"))


class Season(str, Enum):
    """Calendar season."""

    SPRING = "spring"
    SUMMER = "summer"
    FALL = "fall"
    WINTER = "winter"


# Ordinal ranking used for one-step persistence moves.
WEATHER_ORDER: tuple[WeatherKind, ...] = (
    WeatherKind.SUNNY,
    WeatherKind.PARTLY_CLOUDY,
    WeatherKind.CLOUDY,
    WeatherKind.RAINY,
    WeatherKind.STORMY,
)

BASE_WEATHER_PROBABILITIES: dict[WeatherKind, float] = {
    WeatherKind.SUNNY: 0.4,
    WeatherKind.PARTLY_CLOUDY: 0.3,
    WeatherKind.CLOUDY: 0.15,
    WeatherKind.RAINY: 0.1,
    WeatherKind.STORMY: 0.05,
}

SEASONAL_PROBABILITY_OVERRIDES: dict[Season, dict[WeatherKind, float]] = {
    Season.SPRING: {WeatherKind.RAINY: 0.2, WeatherKind.SUNNY: 0.3},
    Season.SUMMER: {WeatherKind.SUNNY: 0.5, WeatherKind.RAINY: 0.1},
    Season.FALL: {WeatherKind.CLOUDY: 0.25, WeatherKind.RAINY: 0.15},
    Season.WINTER: {WeatherKind.SUNNY: 0.2, WeatherKind.CLOUDY: 0.3},
}

SUN_FACTORS: dict[WeatherKind, float] = {
    WeatherKind.SUNNY: 1.0,
    WeatherKind.PARTLY_CLOUDY: 0.8,
    WeatherKind.CLOUDY: 0.6,
    WeatherKind.RAINY: 0.4,
    WeatherKind.STORMY: 0.3,
}

# -- seasonal mode tables ---------------------------------------------------
SEASON_BASE_TEMPERATURE: dict[Season, float] = {
    Season.SPRING: 15.0,
    Season.SUMMER: 25.0,
    Season.FALL: 18.0,
    Season.WINTER: 5.0,
}
TEMPERATURE_MODIFIERS: dict[WeatherKind, float] = {
    WeatherKind.SUNNY: 5.0,
    WeatherKind.PARTLY_CLOUDY: 2.0,
    WeatherKind.CLOUDY: 0.0,
    WeatherKind.RAINY: -3.0,
    WeatherKind.STORMY: -5.0,
}
HUMIDITY_BASE: dict[WeatherKind, float] = {
    WeatherKind.SUNNY: 30.0,
    WeatherKind.PARTLY_CLOUDY: 45.0,
    WeatherKind.CLOUDY: 60.0,
    WeatherKind.RAINY: 80.0,
    WeatherKind.STORMY: 90.0,
}
SEASONAL_OPTIMUM_TEMPERATURE = 22.0
SEASONAL_PERSISTENCE = 0.7

# -- location mode tables ---------------------------------------------------
LOCATION_SEASON_DELTA: dict[Season, float] = {
    Season.SPRING: 5.0,
    Season.SUMMER: 10.0,
    Season.FALL: 2.0,
    Season.WINTER: -5.0,
}
LOCATION_TEMPERATURE_MODIFIERS: dict[WeatherKind, float] = {
    WeatherKind.SUNNY: 3.0,
    WeatherKind.PARTLY_CLOUDY: 1.0,
    WeatherKind.CLOUDY: -1.0,
    WeatherKind.RAINY: -3.0,
    WeatherKind.STORMY: -5.0,
}
LOCATION_HUMIDITY_OFFSETS: dict[WeatherKind, float] = {
    WeatherKind.SUNNY: -20.0,
    WeatherKind.PARTLY_CLOUDY: -10.0,
    WeatherKind.CLOUDY: 5.0,
    WeatherKind.RAINY: 20.0,
    WeatherKind.STORMY: 30.0,
}
WIND_MULTIPLIERS: dict[WeatherKind, float] = {
    WeatherKind.SUNNY: 0.8,
    WeatherKind.PARTLY_CLOUDY: 1.0,
    WeatherKind.CLOUDY: 1.2,
    WeatherKind.RAINY: 1.5,
    WeatherKind.STORMY: 2.5,
}
LOCATION_BASE_HUMIDITY = 60.0
LOCATION_OPTIMUM_TEMPERATURE = 20.0
LOCATION_NEW_PATTERN_CHANCE = 0.3
LOCATION_CHANGE_CHANCE = 0.2
HUMIDITY_MIN = 10
HUMIDITY_MAX = 100
NON_STORMY_KINDS: tuple[WeatherKind, ...] = WEATHER_ORDER[:4]

DEFAULT_START_DATE = dt.date(2025, 3, 20)


@dataclass(frozen=True)
class WeatherVisualSettings:
    """Scene styling for one weather kind. Colors are ``0xRRGGBB`` ints."""

    sky_color: int
    fog_color: int
    fog_density: float
    light_intensity: float
    ambient_intensity: float
    rain_particle_count: int
    cloud_opacity: float
    cloud_count: int


WEATHER_VISUALS: dict[WeatherKind, WeatherVisualSettings] = {
    WeatherKind.SUNNY: WeatherVisualSettings(
        0x87CEEB, 0xD7F0FF, 0.0025, 1.0, 0.6, 0, 0.8, 10
    ),
    WeatherKind.PARTLY_CLOUDY: WeatherVisualSettings(
        0x87CEEB, 0xD7F0FF, 0.003, 0.8, 0.5, 0, 0.9, 20
    ),
    WeatherKind.CLOUDY: WeatherVisualSettings(
        0xA3B5C7, 0xC7C7C7, 0.004, 0.6, 0.4, 0, 1.0, 30
    ),
    WeatherKind.RAINY: WeatherVisualSettings(
        0x708090, 0xA3A3A3, 0.006, 0.5, 0.3, 1000, 1.0, 35
    ),
    WeatherKind.STORMY: WeatherVisualSettings(
        0x4A5259, 0x7A7A7A, 0.008, 0.4, 0.2, 2000, 1.0, 40
    ),
}


@dataclass(frozen=True)
class WeatherDay:
    """Weather record for one simulated day.

    Parameters
    ----------
    day_index : int
        1-based position in the sequence.
    date : datetime.date
        Calendar date.
    weather_kind : WeatherKind
        Weather category.
    temperature_c : float
        Temperature in degrees Celsius, one decimal.
    humidity_pct : int
        Relative humidity in percent.
    growth_factor : float
        Growth favorability in ``[0, 1]``.
    wind_speed : float | None
        Wind speed in m/s; only set by the location generator.
    """

    day_index: int
    date: dt.date
    weather_kind: WeatherKind
    temperature_c: float
    humidity_pct: int
    growth_factor: float
    wind_speed: float | None = None

    @property
    def visuals(self) -> WeatherVisualSettings:
        """Scene styling for this day's weather."""
        return WEATHER_VISUALS[self.weather_kind]


def season_for_month(month: int, northern: bool = True) -> Season:
    """Map a calendar month (1-12) to a season.

    Examples
    --------
    >>> season_for_month(4)
    <Season.SPRING: 'spring'>
    >>> season_for_month(4, northern=False)
    <Season.FALL: 'fall'>
    """
    if 3 <= month <= 5:
        season = Season.SPRING
    elif 6 <= month <= 8:
        season = Season.SUMMER
    elif 9 <= month <= 11:
        season = Season.FALL
    else:
        season = Season.WINTER
    if northern:
        return season
    return _OPPOSITE_SEASON[season]


_OPPOSITE_SEASON: dict[Season, Season] = {
    Season.SPRING: Season.FALL,
    Season.SUMMER: Season.WINTER,
    Season.FALL: Season.SPRING,
    Season.WINTER: Season.SUMMER,
}


def seasonal_probabilities(season: Season) -> dict[WeatherKind, float]:
    """Base weather distribution with the season's overrides applied."""
    probabilities = dict(BASE_WEATHER_PROBABILITIES)
    probabilities.update(SEASONAL_PROBABILITY_OVERRIDES[season])
    return probabilities


def growth_factor(
    temperature: float,
    weather_kind: WeatherKind,
    humidity: float,
    optimum_temperature: float = SEASONAL_OPTIMUM_TEMPERATURE,
) -> float:
    """Score how favorable a day is for growth.

    Parameters
    ----------
    temperature : float
        Temperature in degrees Celsius.
    weather_kind : WeatherKind
        Weather category, selects the sunlight factor.
    humidity : float
        Relative humidity in percent.
    optimum_temperature : float
        Temperature with the best score.

    Returns
    -------
    float
        ``0.4 * temp + 0.3 * sun + 0.3 * moisture`` clamped to ``[0, 1]``.
    """
    temp_factor = 1 - abs(optimum_temperature - temperature) / optimum_temperature
    sun_factor = SUN_FACTORS[weather_kind]
    moisture_factor = min(1.0, humidity / 70)
    score = temp_factor * 0.4 + sun_factor * 0.3 + moisture_factor * 0.3
    return float(min(1.0, max(0.0, score)))


def map_weather_code(code: int) -> WeatherKind:
    """Map an OpenWeatherMap condition code to a weather kind.

    Examples
    --------
    >>> map_weather_code(802)
    <WeatherKind.PARTLY_CLOUDY: 'partly_cloudy'>
    """
    if 200 <= code < 300:
        return WeatherKind.STORMY
    # Drizzle, rain and snow.
    if 300 <= code < 700:
        return WeatherKind.RAINY
    if 700 <= code < 800:
        return WeatherKind.CLOUDY
    if code == 800:
        return WeatherKind.SUNNY
    if 800 < code < 900:
        return WeatherKind.PARTLY_CLOUDY if code <= 802 else WeatherKind.CLOUDY
    return WeatherKind.PARTLY_CLOUDY


def _as_date(value: dt.date | dt.datetime) -> dt.date:
    if isinstance(value, dt.datetime):
        return value.date()
    return value


def _draw_kind(
    probabilities: dict[WeatherKind, float], rng: np.random.Generator
) -> WeatherKind:
    """Sample a kind from a (possibly unnormalized) distribution."""
    kinds = list(probabilities)
    weight_array = np.asarray([probabilities[kind] for kind in kinds], dtype=np.float64)
    index = int(rng.choice(len(kinds), p=weight_array / weight_array.sum()))
    return kinds[index]


def _step_kind(previous: WeatherKind, rng: np.random.Generator) -> WeatherKind:
    """Move at most one step from ``previous`` in ``WEATHER_ORDER``."""
    prev_index = WEATHER_ORDER.index(previous)
    min_index = max(0, prev_index - 1)
    max_index = min(len(WEATHER_ORDER) - 1, prev_index + 1)
    return WEATHER_ORDER[min_index + int(rng.integers(max_index - min_index + 1))]


def generate_seasonal_weather(
    days: int,
    start_date: dt.date = DEFAULT_START_DATE,
    rng: np.random.Generator | None = None,
) -> list[WeatherDay]:
    """Generate location-agnostic weather.

    Parameters
    ----------
    days : int
        Number of days; ``<= 0`` yields an empty list.
    start_date : datetime.date
        Date of day 1.
    rng : numpy.random.Generator, optional
        Random generator.

    Returns
    -------
    list[WeatherDay]
        One record per day with consecutive dates.
    """
    if rng is None:
        rng = np.random.default_rng()
    start = _as_date(start_date)
    weather_days: list[WeatherDay] = []
    previous: WeatherKind | None = None

    for i in range(max(0, days)):
        date = start + dt.timedelta(days=i)
        season = season_for_month(date.month)
        if previous is not None and rng.random() < SEASONAL_PERSISTENCE:
            kind = _step_kind(previous, rng)
        else:
            kind = _draw_kind(seasonal_probabilities(season), rng)
        previous = kind

        temperature = (
            SEASON_BASE_TEMPERATURE[season]
            + TEMPERATURE_MODIFIERS[kind]
            + rng.uniform(-2.0, 2.0)
        )
        humidity = HUMIDITY_BASE[kind] + rng.uniform(-5.0, 5.0)
        weather_days.append(
            WeatherDay(
                day_index=i + 1,
                date=date,
                weather_kind=kind,
                temperature_c=round(float(temperature), 1),
                humidity_pct=int(round(humidity)),
                growth_factor=growth_factor(temperature, kind, humidity),
            )
        )

    logger.debug(f"Generated {len(weather_days)} seasonal weather days from {start}")
    return weather_days


def _fresh_location_kind(season: Season, rng: np.random.Generator) -> WeatherKind:
    """Start a new weather pattern with a light seasonal skew."""
    kind = _draw_kind(BASE_WEATHER_PROBABILITIES, rng)
    if season == Season.SUMMER and kind == WeatherKind.PARTLY_CLOUDY and rng.random() < 0.3:
        return WeatherKind.SUNNY
    if season == Season.WINTER and kind == WeatherKind.SUNNY and rng.random() < 0.5:
        return WeatherKind.CLOUDY
    if season == Season.SPRING and kind == WeatherKind.PARTLY_CLOUDY and rng.random() < 0.4:
        return WeatherKind.RAINY
    return kind


def generate_location_weather(
    latitude: float,
    longitude: float,
    days: int,
    start_date: dt.date = DEFAULT_START_DATE,
    rng: np.random.Generator | None = None,
) -> list[WeatherDay]:
    """Generate historical-style weather for a location.

    Parameters
    ----------
    latitude : float
        Latitude in degrees; ``> 0`` is the northern hemisphere.
    longitude : float
        Longitude in degrees.
    days : int
        Number of days; ``<= 0`` yields an empty list.
    start_date : datetime.date
        Date of day 1.
    rng : numpy.random.Generator, optional
        Random generator.

    Returns
    -------
    list[WeatherDay]
        One record per day, humidity clamped to ``[10, 100]`` and wind speed
        set.
    """
    if rng is None:
        rng = np.random.default_rng()
    start = _as_date(start_date)
    northern = latitude > 0
    latitude_temp = 20 - abs(latitude) * 0.4
    weather_days: list[WeatherDay] = []
    previous: WeatherKind | None = None

    for i in range(max(0, days)):
        date = start + dt.timedelta(days=i)
        season = season_for_month(date.month, northern=northern)

        if previous is None or rng.random() < LOCATION_NEW_PATTERN_CHANCE:
            kind = _fresh_location_kind(season, rng)
        else:
            kind = previous
            if rng.random() < LOCATION_CHANGE_CHANCE:
                kind = NON_STORMY_KINDS[int(rng.integers(len(NON_STORMY_KINDS)))]
        previous = kind

        temperature = round(
            float(
                latitude_temp
                + LOCATION_SEASON_DELTA[season]
                + LOCATION_TEMPERATURE_MODIFIERS[kind]
                + rng.uniform(-2.0, 2.0)
            ),
            1,
        )
        humidity_raw = (
            LOCATION_BASE_HUMIDITY
            + LOCATION_HUMIDITY_OFFSETS[kind]
            + rng.uniform(-5.0, 5.0)
        )
        humidity = min(HUMIDITY_MAX, max(HUMIDITY_MIN, int(round(humidity_raw))))
        wind_speed = round(float((2 + rng.uniform(0.0, 3.0)) * WIND_MULTIPLIERS[kind]), 1)

        weather_days.append(
            WeatherDay(
                day_index=i + 1,
                date=date,
                weather_kind=kind,
                temperature_c=temperature,
                humidity_pct=humidity,
                growth_factor=growth_factor(
                    temperature, kind, humidity, LOCATION_OPTIMUM_TEMPERATURE
                ),
                wind_speed=wind_speed,
            )
        )

    logger.debug(
        f"Generated {len(weather_days)} weather days for "
        f"({latitude:.4f}, {longitude:.4f}) from {start}"
    )
    return weather_days
