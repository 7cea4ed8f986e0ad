"""
Simulation configuration and field setup through a renderer.

``build_field_simulation`` is the single entry point that turns a
``SimulationConfig`` into scene objects: it scales the field polygon, asks
the renderer to draw it, scatters plants and frames the view.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Protocol

import numpy as np
from loguru import logger

from src.core.crops import CropType, parse_crop_type
from src.core.errors import UninitializedViewportError
from src.core.field_geometry import (
    PlantPlacement,
    ViewFrame,
    compute_view_frame,
    place_plants,
    scale_to_hectares,
    triangulate,
    validate_polygon,
)
from src.core.weather import WeatherVisualSettings


@dataclass(frozen=True)
class FieldLocation:
    """Geographic location of a field."""

    latitude: float
    longitude: float
    name: str = ""


@dataclass(frozen=True)
class WeatherSettings:
    """Weather source options saved with a simulation."""

    use_real_weather: bool = True
    api_key: str | None = None


@dataclass
class SimulationConfig:
    """User input describing one simulated field.

    Parameters
    ----------
    crop_type : CropType | str
        Crop planted in the field.
    hectares : float
        Field size, must be positive.
    density : int
        Planting density percentage in ``[0, 100]``.
    polygon : sequence
        Field outline as ``[[x, 0, z], ...]``; stored as nested tuples.
    location : FieldLocation, optional
        Enables location-aware weather when set.
    weather_settings : WeatherSettings
        Weather source options.
    """

    crop_type: CropType
    hectares: float
    density: int
    polygon: tuple[tuple[float, float, float], ...]
    location: FieldLocation | None = None
    weather_settings: WeatherSettings = field(default_factory=WeatherSettings)

    def __post_init__(self) -> None:
        self.crop_type = parse_crop_type(self.crop_type)
        self.hectares = float(self.hectares)
        if not math.isfinite(self.hectares) or self.hectares <= 0:
            raise ValueError("hectares must be a positive number")
        self.density = int(self.density)
        if not 0 <= self.density <= 100:
            raise ValueError("density must be between 0 and 100")
        vertex_array = validate_polygon(self.polygon)
        self.polygon = tuple(tuple(vertex) for vertex in vertex_array.tolist())


def default_simulation_config() -> SimulationConfig:
    """Soybean field in Mato Grosso shown on startup."""
    return SimulationConfig(
        crop_type=CropType.SOYBEAN,
        hectares=1.5,
        density=100,
        polygon=(
            (-30.0, 0.0, -30.0),
            (-30.0, 0.0, 30.0),
            (30.0, 0.0, 30.0),
            (30.0, 0.0, -30.0),
        ),
        location=FieldLocation(
            latitude=-12.915559,
            longitude=-55.314216,
            name="Mato Grosso (Brazil)",
        ),
    )


class FieldRenderer(Protocol):
    """Scene operations used by the simulation and the timeline controller."""

    def is_viewport_ready(self) -> bool: ...

    def add_field(self, polygon: np.ndarray) -> Any: ...

    def add_plant(self, placement: PlantPlacement) -> Any: ...

    def frame_view(self, frame: ViewFrame) -> None: ...

    def apply_day_visuals(self, settings: WeatherVisualSettings) -> None: ...

    def set_plant_growth(
        self, plant: Any, scale: float, part_visibility: dict[int, bool]
    ) -> None: ...

    def release_weather_effects(self) -> None: ...

    def remove_objects(self, objects: list[Any]) -> None: ...


@dataclass
class FieldSimulation:
    """Scene state produced by ``build_field_simulation``.

    ``objects`` holds the renderer handles in creation order: the field
    first, then one handle per plant.
    """

    scaled_polygon: np.ndarray
    triangles: list[np.ndarray]
    plants: list[PlantPlacement]
    objects: list[Any]
    view_frame: ViewFrame

    @property
    def plant_objects(self) -> list[Any]:
        return self.objects[1:]


def build_field_simulation(
    config: SimulationConfig,
    renderer: FieldRenderer,
    rng: np.random.Generator | None = None,
) -> FieldSimulation:
    """Create the field and its plants through ``renderer``.

    Parameters
    ----------
    config : SimulationConfig
        Field description.
    renderer : FieldRenderer
        Scene collaborator.
    rng : numpy.random.Generator, optional
        Random generator for plant placement.

    Returns
    -------
    FieldSimulation
        Scaled polygon, triangles, plant placements and renderer handles.

    Raises
    ------
    UninitializedViewportError
        Raised when the renderer has no viewport. ``created_objects`` lists
        every object the renderer returned before the failure.
    InvalidPolygonError, DegenerateGeometryError
        Raised for unusable field outlines, before anything is created.
    """
    if not renderer.is_viewport_ready():
        raise UninitializedViewportError("viewport is not initialized", created_objects=[])
    if rng is None:
        rng = np.random.default_rng()

    scaled_polygon = scale_to_hectares(config.polygon, config.hectares)
    triangles = triangulate(scaled_polygon)
    created_objects: list[Any] = []
    try:
        created_objects.append(renderer.add_field(scaled_polygon))
        plants = place_plants(
            scaled_polygon,
            config.crop_type,
            config.hectares,
            config.density,
            rng=rng,
            triangles=triangles,
        )
        for plant in plants:
            created_objects.append(renderer.add_plant(plant))
        view_frame = compute_view_frame(scaled_polygon)
        renderer.frame_view(view_frame)
    except UninitializedViewportError as exc:
        logger.error(f"Viewport lost after creating {len(created_objects)} objects")
        raise UninitializedViewportError(
            str(exc), created_objects=created_objects
        ) from exc

    logger.info(
        f"Field ready: {config.crop_type.value}, {config.hectares} ha, "
        f"{len(plants)} plants"
    )
    return FieldSimulation(
        scaled_polygon=scaled_polygon,
        triangles=triangles,
        plants=plants,
        objects=created_objects,
        view_frame=view_frame,
    )


def clear_field_simulation(simulation: FieldSimulation, renderer: FieldRenderer) -> None:
    """Remove every object of ``simulation`` from the scene."""
    renderer.remove_objects(list(simulation.objects))
    simulation.objects.clear()
    logger.debug("Field simulation cleared")
