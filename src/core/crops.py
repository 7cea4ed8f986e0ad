"""Crop catalog: densities, heights and growth-dependent plant visuals."""

from __future__ import annotations

import math
from enum import Enum

import numpy as np


class CropType(str, Enum):
    """Supported crop types."""

    CORN = "corn"
    WHEAT = "wheat"
    SOYBEAN = "soybean"
    COTTON = "cotton"
    RICE = "rice"


HECTARE_TO_SQUARE_METERS = 10_000
# Visualization units per meter.
SCALE_FACTOR = 0.25
# Plant count is scaled down so scenes stay interactive.
PLANT_COUNT_SCALE = 0.01
MIN_PLANT_SCALE = 0.2

PLANTS_PER_HECTARE: dict[CropType, float] = {
    CropType.CORN: 70000 / 10,
    CropType.WHEAT: 220000 / 10,
    CropType.SOYBEAN: 360000 / 10,
    CropType.COTTON: 70000 / 10,
    CropType.RICE: 200000 / 10,
}

# Heights in meters.
PLANT_HEIGHTS: dict[CropType, float] = {
    CropType.CORN: 10.0,
    CropType.WHEAT: 1.0,
    CropType.SOYBEAN: 0.9,
    CropType.COTTON: 1.2,
    CropType.RICE: 1.0,
}

# Growth threshold per mesh part index, e.g. corn cobs.
PART_VISIBILITY_THRESHOLDS: dict[CropType, dict[int, float]] = {
    CropType.CORN: {2: 0.6, 3: 0.85},
}


def parse_crop_type(value: str | CropType) -> CropType:
    """Convert a crop name into ``CropType``.

    Parameters
    ----------
    value : str | CropType
        Crop name such as ``"corn"``; case-insensitive.

    Returns
    -------
    CropType
        Matching enum member.

    Raises
    ------
    ValueError
        Raised when the crop name is unknown.

    Examples
    --------
    >>> parse_crop_type("Soybean")
    <CropType.SOYBEAN: 'soybean'>
    """
    if isinstance(value, CropType):
        return value
    try:
        return CropType(str(value).strip().lower())
    except ValueError:
        raise ValueError(f"unsupported crop type: {value}") from None


def randomized_height(base_height: float, rng: np.random.Generator) -> float:
    """Return ``base_height`` jittered by a factor in ``[0.85, 1.15)``."""
    return float(base_height * (0.85 + rng.random() * 0.3))


def plant_count(crop_type: CropType, hectares: float, density: int) -> int:
    """Number of plants to place for a field.

    Parameters
    ----------
    crop_type : CropType
        Crop planted in the field.
    hectares : float
        Field size in hectares.
    density : int
        Planting density percentage in ``[0, 100]``.

    Returns
    -------
    int
        ``floor(density / 100 * plants_per_hectare * hectares * 0.01)``.
    """
    base_count = PLANTS_PER_HECTARE[crop_type] * hectares
    return int(math.floor((density / 100) * base_count * PLANT_COUNT_SCALE))


def plant_visual_scale(growth_percent: float) -> float:
    """Uniform plant scale for a growth percent, floored so plants stay visible."""
    return max(MIN_PLANT_SCALE, float(growth_percent))


def part_visibility(crop_type: CropType, growth_percent: float) -> dict[int, bool]:
    """Visibility of growth-dependent plant parts.

    Parameters
    ----------
    crop_type : CropType
        Crop type of the plant.
    growth_percent : float
        Growth percent in ``[0, 1]``.

    Returns
    -------
    dict[int, bool]
        Part index to visibility. Empty for crops without conditional parts.

    Examples
    --------
    >>> part_visibility(CropType.CORN, 0.7)
    {2: True, 3: False}
    """
    thresholds = PART_VISIBILITY_THRESHOLDS.get(crop_type, {})
    return {
        part_index: growth_percent >= threshold
        for part_index, threshold in thresholds.items()
    }
