"""Tests for field polygon scaling, triangulation and plant placement."""

from __future__ import annotations

import numpy as np
import pytest
from shapely.geometry import Point, Polygon

from src.core.crops import CropType, plant_count
from src.core.errors import DegenerateGeometryError, InvalidPolygonError
from src.core.field_geometry import (
    FIELD_MAX_DIMENSION,
    FIELD_MIN_DIMENSION,
    compute_view_frame,
    place_plants,
    polygon_area,
    polygon_bounds,
    polygon_centroid,
    sample_point_in_triangle,
    scale_to_hectares,
    triangulate,
    validate_polygon,
)


def _square(half: float, cx: float = 0.0, cz: float = 0.0) -> list[list[float]]:
    return [
        [cx - half, 0.0, cz - half],
        [cx - half, 0.0, cz + half],
        [cx + half, 0.0, cz + half],
        [cx + half, 0.0, cz - half],
    ]


def _bbox_size(vertices: np.ndarray) -> tuple[float, float]:
    x_min, z_min, x_max, z_max = polygon_bounds(vertices)
    return x_max - x_min, z_max - z_min


def test_polygon_area_of_square() -> None:
    square = [[0, 0, 0], [100, 0, 0], [100, 0, 100], [0, 0, 100]]
    assert polygon_area(square) == pytest.approx(10000.0)


def test_polygon_area_ignores_winding_order() -> None:
    square = _square(5.0)
    assert polygon_area(square) == pytest.approx(polygon_area(square[::-1]))


def test_polygon_area_zero_for_collinear_points() -> None:
    line = [[0, 0, 0], [1, 0, 1], [2, 0, 2]]
    assert polygon_area(line) == 0.0


def test_polygon_area_zero_for_repeated_vertices() -> None:
    repeated = [[1, 0, 1], [1, 0, 1], [3, 0, 2], [3, 0, 2]]
    assert polygon_area(repeated) == 0.0


def test_validate_polygon_rejects_short_polygon() -> None:
    with pytest.raises(InvalidPolygonError):
        validate_polygon([[0, 0, 0], [1, 0, 0]])


def test_validate_polygon_rejects_bad_vertex_length() -> None:
    with pytest.raises(InvalidPolygonError):
        validate_polygon([[0, 0, 0], [1, 0], [1, 0, 1]])


def test_validate_polygon_rejects_non_numeric_coordinate() -> None:
    with pytest.raises(InvalidPolygonError):
        validate_polygon([[0, 0, 0], [1, 0, "a"], [1, 0, 1]])


def test_validate_polygon_flattens_height() -> None:
    vertices = validate_polygon([[0, 2, 0], [1, 0, 0], [1, -1, 1]])
    assert vertices.shape == (3, 3)
    assert np.all(vertices[:, 1] == 0.0)


def test_scale_small_field_enlarged_to_minimum() -> None:
    scaled = scale_to_hectares(_square(30.0), 1.5)
    width, depth = _bbox_size(scaled)
    assert min(width, depth) == pytest.approx(FIELD_MIN_DIMENSION)
    assert np.all(scaled[:, 1] == 0.0)


def test_scale_large_field_shrunk_to_maximum() -> None:
    scaled = scale_to_hectares(_square(30.0), 100.0)
    width, depth = _bbox_size(scaled)
    assert max(width, depth) == pytest.approx(FIELD_MAX_DIMENSION)


def test_scale_matches_target_area_inside_bounds() -> None:
    scaled = scale_to_hectares(_square(30.0), 4.0)
    # 4 ha -> 40000 m2 -> 2500 scene units at 0.25 units per meter.
    assert polygon_area(scaled) == pytest.approx(2500.0)
    width, depth = _bbox_size(scaled)
    assert FIELD_MIN_DIMENSION <= width <= FIELD_MAX_DIMENSION
    assert FIELD_MIN_DIMENSION <= depth <= FIELD_MAX_DIMENSION


def test_scale_keeps_centroid_and_vertex_order() -> None:
    polygon = _square(10.0, cx=50.0, cz=-20.0)
    scaled = scale_to_hectares(polygon, 4.0)
    assert polygon_centroid(scaled) == pytest.approx((50.0, -20.0))
    assert len(scaled) == len(polygon)
    # First vertex stays the lower-left corner.
    assert scaled[0, 0] < 50.0 and scaled[0, 2] < -20.0


def test_scale_elongated_field_uses_single_correction() -> None:
    thin = [[0, 0, 0], [0, 0, 1], [400, 0, 1], [400, 0, 0]]
    scaled = scale_to_hectares(thin, 4.0)
    width, depth = _bbox_size(scaled)
    assert width == pytest.approx(FIELD_MAX_DIMENSION)
    assert depth < FIELD_MIN_DIMENSION


def test_scale_rejects_degenerate_polygon() -> None:
    with pytest.raises(DegenerateGeometryError):
        scale_to_hectares([[0, 0, 0], [1, 0, 1], [2, 0, 2]], 1.0)


@pytest.mark.parametrize("hectares", [0.0, -1.0])
def test_scale_rejects_non_positive_hectares(hectares: float) -> None:
    with pytest.raises(ValueError):
        scale_to_hectares(_square(10.0), hectares)


def test_triangulate_fans_from_first_vertex() -> None:
    pentagon = np.array(
        [[0, 0, 0], [2, 0, 0], [3, 0, 2], [1, 0, 3], [-1, 0, 2]], dtype=float
    )
    triangles = triangulate(pentagon)
    assert len(triangles) == 3
    for i, triangle in enumerate(triangles, start=1):
        assert triangle.shape == (3, 3)
        np.testing.assert_array_equal(triangle[0], pentagon[0])
        np.testing.assert_array_equal(triangle[1], pentagon[i])
        np.testing.assert_array_equal(triangle[2], pentagon[i + 1])


def test_triangulation_area_matches_polygon() -> None:
    polygon = scale_to_hectares(_square(30.0), 2.0)
    total = sum(polygon_area(triangle) for triangle in triangulate(polygon))
    assert total == pytest.approx(polygon_area(polygon))


def test_sample_point_in_random_triangles_stays_inside() -> None:
    rng = np.random.default_rng(7)
    checked = 0
    while checked < 10_000:
        triangle = rng.uniform(-50.0, 50.0, size=(3, 3))
        triangle[:, 1] = 0.0
        (x0, z0), (x1, z1), (x2, z2) = triangle[:, [0, 2]]
        det = (z1 - z2) * (x0 - x2) + (x2 - x1) * (z0 - z2)
        if abs(det) < 1.0:
            continue
        x, z = sample_point_in_triangle(triangle, rng)
        l0 = ((z1 - z2) * (x - x2) + (x2 - x1) * (z - z2)) / det
        l1 = ((z2 - z0) * (x - x2) + (x0 - x2) * (z - z2)) / det
        l2 = 1.0 - l0 - l1
        assert min(l0, l1, l2) >= -1e-9
        assert max(l0, l1, l2) <= 1.0 + 1e-9
        checked += 1


def test_scale_two_and_a_half_hectares() -> None:
    scaled = scale_to_hectares(_square(30.0), 2.5)
    # 2.5 * 10000 * 0.0625 = 1562.5, side 39.5 is enlarged to 40.
    width, depth = _bbox_size(scaled)
    assert width == pytest.approx(FIELD_MIN_DIMENSION)
    assert depth == pytest.approx(FIELD_MIN_DIMENSION)
    assert polygon_area(scaled) == pytest.approx(1600.0)


def test_sample_point_in_triangle_is_reproducible() -> None:
    triangle = np.array([[0, 0, 0], [1, 0, 0], [0, 0, 1]], dtype=float)
    first = sample_point_in_triangle(triangle, np.random.default_rng(3))
    second = sample_point_in_triangle(triangle, np.random.default_rng(3))
    assert first == second


def test_compute_view_frame_camera_position() -> None:
    polygon = np.array(_square(20.0, cx=5.0, cz=-5.0), dtype=float)
    frame = compute_view_frame(polygon)
    assert frame.center_x == pytest.approx(5.0)
    assert frame.center_z == pytest.approx(-5.0)
    assert frame.size == pytest.approx(40.0)
    assert frame.camera_position == pytest.approx((25.0, 48.0, 55.0))


def test_place_plants_inside_field() -> None:
    scaled = scale_to_hectares(_square(30.0), 1.5)
    plants = place_plants(
        scaled, CropType.SOYBEAN, 1.5, 100, rng=np.random.default_rng(11)
    )
    assert len(plants) == plant_count(CropType.SOYBEAN, 1.5, 100) == 540
    field = Polygon(scaled[:, [0, 2]]).buffer(1e-6)
    assert all(field.contains(Point(p.x, p.z)) for p in plants)
    assert all(0.0 <= p.rotation < 2 * np.pi for p in plants)
    base = 0.9 * 0.25
    assert all(base * 0.85 <= p.height < base * 1.15 for p in plants)


def test_place_plants_zero_density() -> None:
    scaled = scale_to_hectares(_square(30.0), 1.5)
    assert place_plants(scaled, CropType.CORN, 1.5, 0) == []
