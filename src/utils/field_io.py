"""GeoPandas export of simulated field layouts and timeline tables."""

from __future__ import annotations

from pathlib import Path

import geopandas as gpd
import numpy as np
import pandas as pd
from loguru import logger
from shapely.geometry import Point, Polygon

from src.core.field_geometry import PlantPlacement
from src.core.simulation import FieldSimulation
from src.core.timeline import Timeline


def _normalize_shp_output_path(output_path: str | Path) -> Path:
    path_obj = Path(output_path)
    if path_obj.suffix.lower() == ".shp":
        return path_obj
    return path_obj.with_suffix(".shp")


def field_to_gdf(scaled_polygon: np.ndarray) -> gpd.GeoDataFrame:
    """One-row polygon GeoDataFrame of the field in scene ``(x, z)`` units.

    Parameters
    ----------
    scaled_polygon : numpy.ndarray
        Field vertices with shape ``(N, 3)``.

    Returns
    -------
    geopandas.GeoDataFrame
        Columns ``fid, area`` and a polygon geometry without CRS.
    """
    vertex_array = np.asarray(scaled_polygon, dtype=np.float64)
    polygon = Polygon(vertex_array[:, [0, 2]])
    return gpd.GeoDataFrame(
        {"fid": [0], "area": [float(polygon.area)]},
        geometry=[polygon],
        crs=None,
    )


def plants_to_gdf(plants: list[PlantPlacement]) -> gpd.GeoDataFrame:
    """Point GeoDataFrame with one row per placed plant.

    Parameters
    ----------
    plants : list[PlantPlacement]
        Placed plants.

    Returns
    -------
    geopandas.GeoDataFrame
        Columns ``fid, crop, height, rotation`` and point geometry.
    """
    return gpd.GeoDataFrame(
        {
            "fid": list(range(len(plants))),
            "crop": [plant.crop_type.value for plant in plants],
            "height": [plant.height for plant in plants],
            "rotation": [plant.rotation for plant in plants],
        },
        geometry=[Point(plant.x, plant.z) for plant in plants],
        crs=None,
    )


def save_field_layout(
    simulation: FieldSimulation, output_path: str | Path
) -> tuple[Path, Path | None]:
    """Write the field outline and plant points as two shapefiles.

    Parameters
    ----------
    simulation : FieldSimulation
        Built field simulation.
    output_path : str | Path
        Base path; files are written as ``<stem>_field.shp`` and
        ``<stem>_plants.shp`` next to it.

    Returns
    -------
    tuple[pathlib.Path, pathlib.Path | None]
        Field and plant shapefile paths. The plant path is ``None`` when
        the field has no plants and no plant layer was written.
    """
    base_path = _normalize_shp_output_path(output_path)
    base_path.parent.mkdir(parents=True, exist_ok=True)
    field_path = base_path.with_name(f"{base_path.stem}_field.shp")
    plants_path = base_path.with_name(f"{base_path.stem}_plants.shp")

    field_to_gdf(simulation.scaled_polygon).to_file(field_path)
    if simulation.plants:
        plants_to_gdf(simulation.plants).to_file(plants_path)
    else:
        logger.warning("Field has no plants; plant layer not written")
        plants_path = None
    logger.info(f"Field layout exported to {field_path.parent}")
    return field_path, plants_path


def save_timeline_csv(timeline: Timeline, output_path: str | Path) -> Path:
    """Write the timeline table as CSV."""
    path_obj = Path(output_path)
    if path_obj.suffix.lower() != ".csv":
        path_obj = path_obj.with_suffix(".csv")
    path_obj.parent.mkdir(parents=True, exist_ok=True)
    timeline_df: pd.DataFrame = timeline.to_dataframe()
    timeline_df.to_csv(path_obj, index=False)
    logger.info(f"Timeline exported to {path_obj}")
    return path_obj
