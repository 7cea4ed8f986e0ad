"""Exception types raised by the simulation engine."""

from __future__ import annotations

from typing import Any


class InvalidPolygonError(ValueError):
    """Field polygon has too few vertices or malformed coordinates."""


class DegenerateGeometryError(ValueError):
    """Polygon has zero area and cannot be scaled."""


class ConfigValidationError(ValueError):
    """Persisted simulation configuration is missing required fields."""


class NetworkFailureError(RuntimeError):
    """Geocoding or weather HTTP request failed."""


class UninitializedViewportError(RuntimeError):
    """Renderer collaborator is not ready to receive scene objects.

    Parameters
    ----------
    message : str
        Error description.
    created_objects : list, optional
        Objects already handed to the renderer before the failure. Callers
        pass them to ``remove_objects`` for cleanup.
    """

    def __init__(self, message: str, created_objects: list[Any] | None = None) -> None:
        super().__init__(message)
        self.created_objects: list[Any] = list(created_objects or [])
