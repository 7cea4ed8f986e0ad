"""
Field geometry for plant placement.

Polygons are ``(N, 3)`` arrays of ``(x, y, z)`` vertices lying on the ground
plane ``y == 0``; all planar computations use the ``(x, z)`` projection.
"""

from __future__ import annotations

import math
import numbers
from dataclasses import dataclass
from typing import Sequence

import numpy as np
from loguru import logger
from shapely import affinity
from shapely.geometry import LineString

from src.core.crops import (
    HECTARE_TO_SQUARE_METERS,
    PLANT_HEIGHTS,
    SCALE_FACTOR,
    CropType,
    plant_count,
    randomized_height,
)
from src.core.errors import DegenerateGeometryError, InvalidPolygonError


FIELD_MIN_DIMENSION = 40.0
FIELD_MAX_DIMENSION = 150.0


@dataclass(frozen=True)
class ViewFrame:
    """Camera framing for a scaled field.

    Parameters
    ----------
    center_x, center_z : float
        Bounding-box center on the ground plane.
    width, depth : float
        Bounding-box extent along x and z.
    size : float
        ``max(width, depth)``.
    camera_position : tuple[float, float, float]
        Suggested camera location looking at the field center.
    """

    center_x: float
    center_z: float
    width: float
    depth: float
    size: float
    camera_position: tuple[float, float, float]


@dataclass(frozen=True)
class PlantPlacement:
    """One plant instance placed inside the field."""

    crop_type: CropType
    x: float
    z: float
    height: float
    rotation: float


def validate_polygon(vertices: Sequence[Sequence[float]]) -> np.ndarray:
    """Validate field polygon vertices.

    Parameters
    ----------
    vertices : Sequence[Sequence[float]]
        Vertex list in ``[[x, y, z], ...]`` form.

    Returns
    -------
    numpy.ndarray
        Float array with shape ``(N, 3)`` and ``y`` forced to ``0``.

    Raises
    ------
    InvalidPolygonError
        Raised for fewer than 3 vertices, a vertex whose length is not 3,
        or a non-numeric coordinate.

    Examples
    --------
    >>> validate_polygon([[0, 0, 0], [1, 0, 0], [1, 0, 1]]).shape
    (3, 3)
    """
    if isinstance(vertices, np.ndarray):
        vertices = vertices.tolist()
    if not isinstance(vertices, (list, tuple)) or len(vertices) < 3:
        raise InvalidPolygonError("polygon must have at least 3 vertices")
    for vertex in vertices:
        if not isinstance(vertex, (list, tuple)) or len(vertex) != 3:
            raise InvalidPolygonError("each vertex must have 3 coordinates [x, y, z]")
        for coord in vertex:
            if isinstance(coord, bool) or not isinstance(coord, numbers.Real):
                raise InvalidPolygonError(f"non-numeric coordinate: {coord!r}")
    vertex_array = np.asarray(vertices, dtype=np.float64)
    if not np.all(np.isfinite(vertex_array)):
        raise InvalidPolygonError("polygon coordinates must be finite")
    if np.any(vertex_array[:, 1] != 0.0):
        logger.warning("Field polygon has non-zero y values; flattening to ground")
        vertex_array[:, 1] = 0.0
    return vertex_array


def polygon_area(vertices: Sequence[Sequence[float]] | np.ndarray) -> float:
    """Shoelace area of the ``(x, z)`` projection.

    Parameters
    ----------
    vertices : array-like
        Polygon vertices with shape ``(N, 3)``.

    Returns
    -------
    float
        Absolute area, or ``0.0`` for fewer than 3 distinct vertices or
        collinear points.

    Examples
    --------
    >>> polygon_area([[0, 0, 0], [100, 0, 0], [100, 0, 100], [0, 0, 100]])
    10000.0
    """
    vertex_array = np.asarray(vertices, dtype=np.float64)
    if vertex_array.ndim != 2 or vertex_array.shape[0] < 3:
        return 0.0
    xz_array = vertex_array[:, [0, 2]]
    if np.unique(xz_array, axis=0).shape[0] < 3:
        return 0.0
    x_array = xz_array[:, 0]
    z_array = xz_array[:, 1]
    cross_sum = np.sum(x_array * np.roll(z_array, 1) - np.roll(x_array, 1) * z_array)
    return float(abs(cross_sum) / 2.0)


def polygon_centroid(vertices: np.ndarray) -> tuple[float, float]:
    """Vertex-average centroid ``(x, z)``."""
    vertex_array = np.asarray(vertices, dtype=np.float64)
    return float(np.mean(vertex_array[:, 0])), float(np.mean(vertex_array[:, 2]))


def polygon_bounds(vertices: np.ndarray) -> tuple[float, float, float, float]:
    """Bounding box in ``(x_min, z_min, x_max, z_max)`` order."""
    vertex_array = np.asarray(vertices, dtype=np.float64)
    return (
        float(np.min(vertex_array[:, 0])),
        float(np.min(vertex_array[:, 2])),
        float(np.max(vertex_array[:, 0])),
        float(np.max(vertex_array[:, 2])),
    )


def _scale_outline(
    outline: LineString, factor: float, origin: tuple[float, float]
) -> LineString:
    return affinity.scale(outline, xfact=factor, yfact=factor, origin=origin)


def _outline_to_vertices(outline: LineString) -> np.ndarray:
    xz_array = np.asarray(outline.coords, dtype=np.float64)
    return np.column_stack(
        (xz_array[:, 0], np.zeros(len(xz_array)), xz_array[:, 1])
    )


def scale_to_hectares(
    polygon: Sequence[Sequence[float]] | np.ndarray, hectares: float
) -> np.ndarray:
    """Resize a field outline to represent ``hectares`` in scene units.

    The outline is scaled about its vertex centroid so its area equals
    ``hectares * 10000 * SCALE_FACTOR**2``. One corrective pass then keeps
    the bounding box inside ``[FIELD_MIN_DIMENSION, FIELD_MAX_DIMENSION]``:
    oversize fields are shrunk, otherwise undersize fields are enlarged.

    Parameters
    ----------
    polygon : array-like
        Field vertices with shape ``(N, 3)``.
    hectares : float
        Target field size, must be positive.

    Returns
    -------
    numpy.ndarray
        Scaled vertices with shape ``(N, 3)`` in input order, ``y == 0``.

    Raises
    ------
    InvalidPolygonError
        Raised when the polygon is malformed.
    DegenerateGeometryError
        Raised when the polygon area is zero.
    ValueError
        Raised when ``hectares`` is not positive.
    """
    vertex_array = validate_polygon(polygon)
    if hectares <= 0:
        raise ValueError("hectares must be positive")
    current_area = polygon_area(vertex_array)
    if current_area <= 0.0:
        raise DegenerateGeometryError("polygon area is zero")

    target_area = hectares * HECTARE_TO_SQUARE_METERS * SCALE_FACTOR * SCALE_FACTOR
    area_scale = math.sqrt(target_area / current_area)
    origin = polygon_centroid(vertex_array)
    outline = _scale_outline(LineString(vertex_array[:, [0, 2]]), area_scale, origin)

    min_x, min_z, max_x, max_z = outline.bounds
    width = max_x - min_x
    depth = max_z - min_z
    if width > FIELD_MAX_DIMENSION or depth > FIELD_MAX_DIMENSION:
        correction = min(FIELD_MAX_DIMENSION / width, FIELD_MAX_DIMENSION / depth)
        logger.debug(f"Field {width:.1f}x{depth:.1f} too large, shrinking by {correction:.3f}")
        outline = _scale_outline(outline, correction, origin)
    elif width < FIELD_MIN_DIMENSION or depth < FIELD_MIN_DIMENSION:
        correction = max(FIELD_MIN_DIMENSION / width, FIELD_MIN_DIMENSION / depth)
        logger.debug(f"Field {width:.1f}x{depth:.1f} too small, enlarging by {correction:.3f}")
        outline = _scale_outline(outline, correction, origin)

    return _outline_to_vertices(outline)


def triangulate(polygon: Sequence[Sequence[float]] | np.ndarray) -> list[np.ndarray]:
    """Fan-triangulate a convex polygon from vertex 0.

    Parameters
    ----------
    polygon : array-like
        Convex polygon vertices with shape ``(N, 3)``.

    Returns
    -------
    list[numpy.ndarray]
        ``N - 2`` triangles of shape ``(3, 3)``:
        ``(v0, v1, v2), (v0, v2, v3), ...``.
    """
    vertex_array = np.asarray(polygon, dtype=np.float64)
    if vertex_array.ndim != 2 or vertex_array.shape[0] < 3:
        raise InvalidPolygonError("polygon must have at least 3 vertices")
    return [
        np.stack((vertex_array[0], vertex_array[i], vertex_array[i + 1]))
        for i in range(1, vertex_array.shape[0] - 1)
    ]


def sample_point_in_triangle(
    triangle: np.ndarray, rng: np.random.Generator | None = None
) -> tuple[float, float]:
    """Draw a uniform random ``(x, z)`` point inside a triangle.

    Barycentric weights ``a, b`` are drawn from ``U(0, 1)`` and reflected
    into the lower simplex when ``a + b > 1``.

    Parameters
    ----------
    triangle : numpy.ndarray
        Triangle vertices with shape ``(3, 3)``.
    rng : numpy.random.Generator, optional
        Random generator; a fresh default generator when omitted.

    Returns
    -------
    tuple[float, float]
        Sampled ``(x, z)`` coordinate.
    """
    if rng is None:
        rng = np.random.default_rng()
    tri_array = np.asarray(triangle, dtype=np.float64)
    a, b = rng.random(2)
    if a + b > 1.0:
        a, b = 1.0 - a, 1.0 - b
    c = 1.0 - a - b
    point = a * tri_array[0] + b * tri_array[1] + c * tri_array[2]
    return float(point[0]), float(point[2])


def compute_view_frame(polygon: np.ndarray) -> ViewFrame:
    """Frame the whole field for a camera looking down at its center."""
    min_x, min_z, max_x, max_z = polygon_bounds(polygon)
    center_x = (min_x + max_x) / 2
    center_z = (min_z + max_z) / 2
    width = max_x - min_x
    depth = max_z - min_z
    size = max(width, depth)
    return ViewFrame(
        center_x=center_x,
        center_z=center_z,
        width=width,
        depth=depth,
        size=size,
        camera_position=(center_x + 20, size * 1.2, center_z + size * 1.5),
    )


def place_plants(
    scaled_polygon: np.ndarray,
    crop_type: CropType,
    hectares: float,
    density: int,
    rng: np.random.Generator | None = None,
    triangles: list[np.ndarray] | None = None,
) -> list[PlantPlacement]:
    """Scatter plants over a scaled field.

    Each plant picks one fan triangle uniformly at random and samples a point
    inside it, then draws a jittered height and a random heading.

    Parameters
    ----------
    scaled_polygon : numpy.ndarray
        Output of ``scale_to_hectares``.
    crop_type : CropType
        Crop to plant.
    hectares : float
        Field size in hectares.
    density : int
        Planting density percentage.
    rng : numpy.random.Generator, optional
        Random generator.
    triangles : list[numpy.ndarray], optional
        Precomputed triangulation of ``scaled_polygon``.

    Returns
    -------
    list[PlantPlacement]
        Placed plants, ``plant_count(crop_type, hectares, density)`` long.
    """
    if rng is None:
        rng = np.random.default_rng()
    if triangles is None:
        triangles = triangulate(scaled_polygon)
    count = plant_count(crop_type, hectares, density)
    base_height = PLANT_HEIGHTS[crop_type] * SCALE_FACTOR
    placements = []
    for _ in range(count):
        triangle = triangles[int(rng.integers(len(triangles)))]
        x, z = sample_point_in_triangle(triangle, rng)
        placements.append(
            PlantPlacement(
                crop_type=crop_type,
                x=x,
                z=z,
                height=randomized_height(base_height, rng),
                rotation=float(rng.random() * 2 * math.pi),
            )
        )
    logger.debug(f"Placed {len(placements)} {crop_type.value} plants")
    return placements
