"""Tests for simulation config and field setup through a renderer."""

from __future__ import annotations

import numpy as np
import pytest

from src.core.crops import CropType, plant_count
from src.core.errors import (
    DegenerateGeometryError,
    InvalidPolygonError,
    UninitializedViewportError,
)
from src.core.simulation import (
    SimulationConfig,
    build_field_simulation,
    clear_field_simulation,
    default_simulation_config,
)

SQUARE = [[-30, 0, -30], [-30, 0, 30], [30, 0, 30], [30, 0, -30]]


class _FakeRenderer:
    """Renderer double returning simple handles."""

    def __init__(self, ready: bool = True, fail_after: int | None = None) -> None:
        self.ready = ready
        self.fail_after = fail_after
        self.fields: list[np.ndarray] = []
        self.plants: list[object] = []
        self.frames: list[object] = []
        self.removed: list[object] = []

    def is_viewport_ready(self) -> bool:
        return self.ready

    def add_field(self, polygon):
        self.fields.append(polygon)
        return "field"

    def add_plant(self, placement):
        if self.fail_after is not None and len(self.plants) >= self.fail_after:
            raise UninitializedViewportError("viewport lost")
        self.plants.append(placement)
        return ("plant", len(self.plants) - 1)

    def frame_view(self, frame) -> None:
        self.frames.append(frame)

    def remove_objects(self, objects) -> None:
        self.removed.extend(objects)


def test_config_normalizes_values() -> None:
    config = SimulationConfig(crop_type="Wheat", hectares="2", density=40.0, polygon=SQUARE)
    assert config.crop_type is CropType.WHEAT
    assert config.hectares == 2.0
    assert config.density == 40
    assert config.polygon[0] == (-30.0, 0.0, -30.0)
    assert config.weather_settings.use_real_weather is True


@pytest.mark.parametrize(
    ("kwargs", "error"),
    [
        ({"hectares": 0}, ValueError),
        ({"hectares": float("nan")}, ValueError),
        ({"hectares": float("inf")}, ValueError),
        ({"density": 120}, ValueError),
        ({"crop_type": "barley"}, ValueError),
        ({"polygon": SQUARE[:2]}, InvalidPolygonError),
    ],
)
def test_config_rejects_invalid_values(kwargs, error) -> None:
    values = {"crop_type": "corn", "hectares": 1.0, "density": 50, "polygon": SQUARE}
    values.update(kwargs)
    with pytest.raises(error):
        SimulationConfig(**values)


def test_default_config_is_soybean_in_mato_grosso() -> None:
    config = default_simulation_config()
    assert config.crop_type is CropType.SOYBEAN
    assert config.hectares == 1.5
    assert config.location is not None
    assert config.location.name == "Mato Grosso (Brazil)"


def test_build_field_simulation() -> None:
    renderer = _FakeRenderer()
    config = default_simulation_config()
    simulation = build_field_simulation(config, renderer, np.random.default_rng(0))

    expected = plant_count(config.crop_type, config.hectares, config.density)
    assert len(simulation.plants) == expected
    assert len(renderer.plants) == expected
    assert simulation.objects[0] == "field"
    assert simulation.plant_objects == [("plant", i) for i in range(expected)]
    assert len(simulation.triangles) == 2
    assert renderer.frames == [simulation.view_frame]
    np.testing.assert_allclose(renderer.fields[0], simulation.scaled_polygon)


def test_build_requires_ready_viewport() -> None:
    renderer = _FakeRenderer(ready=False)
    with pytest.raises(UninitializedViewportError) as exc_info:
        build_field_simulation(default_simulation_config(), renderer)
    assert exc_info.value.created_objects == []
    assert renderer.fields == []


def test_build_reports_partial_objects() -> None:
    renderer = _FakeRenderer(fail_after=3)
    with pytest.raises(UninitializedViewportError) as exc_info:
        build_field_simulation(default_simulation_config(), renderer, np.random.default_rng(0))
    assert exc_info.value.created_objects == [
        "field",
        ("plant", 0),
        ("plant", 1),
        ("plant", 2),
    ]


def test_build_rejects_degenerate_field_before_drawing() -> None:
    renderer = _FakeRenderer()
    config = SimulationConfig(
        crop_type="rice", hectares=1.0, density=50, polygon=[[0, 0, 0], [1, 0, 1], [2, 0, 2]]
    )
    with pytest.raises(DegenerateGeometryError):
        build_field_simulation(config, renderer)
    assert renderer.fields == []


def test_clear_field_simulation_removes_objects() -> None:
    renderer = _FakeRenderer()
    simulation = build_field_simulation(
        default_simulation_config(), renderer, np.random.default_rng(0)
    )
    created = list(simulation.objects)
    clear_field_simulation(simulation, renderer)
    assert renderer.removed == created
    assert simulation.objects == []
