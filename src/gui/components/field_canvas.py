"""
Field Canvas component for CropGrowthSim GUI.

Top-down PyQtGraph view of a simulated field. The canvas implements the
renderer operations used by ``build_field_simulation`` and
``TimelineController``:

- field outline and plant markers
- per-plant growth scale and part visibility
- per-day sky, light, cloud and rain styling
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import numpy as np
import pyqtgraph as pg
from loguru import logger
from PySide6.QtCore import QPointF, QRectF, Qt, QTimer, Signal
from PySide6.QtGui import QBrush, QColor, QPen, QPolygonF
from PySide6.QtWidgets import QGraphicsPolygonItem, QVBoxLayout, QWidget

from src.core.crops import CropType
from src.core.field_geometry import PlantPlacement, ViewFrame
from src.core.weather import WeatherVisualSettings

# Marker size in pixels of a fully grown plant.
PLANT_MARKER_SIZE = 9.0
RAIN_PARTICLES_PER_MARKER = 10

CROP_COLORS: Dict[CropType, str] = {
    CropType.CORN: "#3f8f29",
    CropType.WHEAT: "#b5a642",
    CropType.SOYBEAN: "#4caf50",
    CropType.COTTON: "#6b8e23",
    CropType.RICE: "#7cb342",
}
# Marker color once growth-dependent parts (cobs, bolls...) are visible.
PART_COLOR = "#e0b43c"
FIELD_FILL = (110, 84, 60)


@dataclass(frozen=True)
class PlantHandle:
    """Renderer handle for one plant marker."""

    index: int


@dataclass(frozen=True)
class FieldHandle:
    """Renderer handle for the field outline item."""

    item: QGraphicsPolygonItem


def _hex_color(value: int) -> str:
    return f"#{value:06x}"


def _scale_rgb(rgb: tuple, factor: float) -> tuple:
    return tuple(int(min(255, max(0, channel * factor))) for channel in rgb)


class FieldCanvas(QWidget):
    """
    Top-down field viewer with PyQtGraph backend.

    Plant updates only mark the canvas dirty; markers are redrawn once by a
    debounce timer so a day change touching every plant costs one redraw.

    Signals
    -------
    sigCoordinateChanged : Signal(float, float)
        Emitted when the cursor moves, providing field ``(x, z)``.
    """

    sigCoordinateChanged = Signal(float, float)

    def __init__(self, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)

        self._field_handle: Optional[FieldHandle] = None
        self._plants: List[PlantPlacement] = []
        self._plant_scales: List[float] = []
        self._plant_parts: List[bool] = []
        self._plant_alive: List[bool] = []
        self._visuals: Optional[WeatherVisualSettings] = None
        self._frame: Optional[ViewFrame] = None
        self._rng = np.random.default_rng()
        self._viewport_ready = False

        # Debounce timer for marker redraws
        self._update_timer = QTimer(self)
        self._update_timer.setSingleShot(True)
        self._update_timer.setInterval(30)
        self._update_timer.timeout.connect(self.refresh_plants)

        self._init_ui()

        logger.debug("FieldCanvas initialized")

    def _init_ui(self) -> None:
        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)

        self._plot_widget = pg.PlotWidget()
        self._plot_widget.setAspectLocked(True)
        self._plot_widget.setBackground(_hex_color(0x87CEEB))

        plot_item = self._plot_widget.getPlotItem()
        plot_item.hideAxis("left")
        plot_item.hideAxis("bottom")
        plot_item.hideButtons()
        self._view_box = plot_item.getViewBox()
        self._plot_widget.scene().sigMouseMoved.connect(self._on_mouse_moved)

        layout.addWidget(self._plot_widget)

        self._plant_item = pg.ScatterPlotItem(pxMode=True)
        self._plant_item.setZValue(10)
        self._view_box.addItem(self._plant_item)

        self._cloud_item = pg.ScatterPlotItem(pxMode=False)
        self._cloud_item.setZValue(20)
        self._rain_item = pg.ScatterPlotItem(pxMode=True)
        self._rain_item.setZValue(30)
        self._weather_items_attached = False

        self._viewport_ready = True

    # ------------------------------------------------------------------
    # renderer interface
    # ------------------------------------------------------------------
    def is_viewport_ready(self) -> bool:
        return self._viewport_ready

    def add_field(self, polygon: np.ndarray) -> FieldHandle:
        """Draw the field outline; replaces any previous field."""
        if self._field_handle is not None:
            self._view_box.removeItem(self._field_handle.item)
        vertex_array = np.asarray(polygon, dtype=np.float64)
        qpoly = QPolygonF([QPointF(x, z) for x, z in vertex_array[:, [0, 2]]])
        poly_item = QGraphicsPolygonItem(qpoly)
        pen = QPen(QColor("#4e3b2a"))
        pen.setCosmetic(True)
        pen.setWidth(2)
        poly_item.setPen(pen)
        poly_item.setBrush(QBrush(QColor(*FIELD_FILL)))
        poly_item.setZValue(-10)
        self._view_box.addItem(poly_item)
        self._field_handle = FieldHandle(poly_item)
        logger.debug(f"Field outline added with {len(vertex_array)} vertices")
        return self._field_handle

    def add_plant(self, placement: PlantPlacement) -> PlantHandle:
        handle = PlantHandle(len(self._plants))
        self._plants.append(placement)
        self._plant_scales.append(1.0)
        self._plant_parts.append(False)
        self._plant_alive.append(True)
        self._schedule_refresh()
        return handle

    def frame_view(self, frame: ViewFrame) -> None:
        self._frame = frame
        half = frame.size / 2
        rect = QRectF(frame.center_x - half, frame.center_z - half, frame.size, frame.size)
        self._view_box.setRange(rect, padding=0.1)

    def set_plant_growth(
        self, plant: PlantHandle, scale: float, part_visibility: Dict[int, bool]
    ) -> None:
        self._plant_scales[plant.index] = float(scale)
        self._plant_parts[plant.index] = any(part_visibility.values())
        self._schedule_refresh()

    def apply_day_visuals(self, settings: WeatherVisualSettings) -> None:
        """Restyle sky, field light, clouds and rain for one day."""
        self._visuals = settings
        self._plot_widget.setBackground(_hex_color(settings.sky_color))
        if self._field_handle is not None:
            light = settings.light_intensity * 0.7 + settings.ambient_intensity * 0.5
            self._field_handle.item.setBrush(QBrush(QColor(*_scale_rgb(FIELD_FILL, light))))
        self._attach_weather_items()
        self._draw_clouds(settings)
        self._draw_rain(settings)

    def release_weather_effects(self) -> None:
        """Remove cloud and rain layers from the scene."""
        if self._weather_items_attached:
            self._view_box.removeItem(self._cloud_item)
            self._view_box.removeItem(self._rain_item)
            self._weather_items_attached = False
        self._cloud_item.clear()
        self._rain_item.clear()
        logger.debug("Weather effects released")

    def remove_objects(self, objects: List[Any]) -> None:
        """Remove field and plant handles created by this canvas."""
        for obj in objects:
            if isinstance(obj, PlantHandle):
                self._plant_alive[obj.index] = False
            elif isinstance(obj, FieldHandle):
                self._view_box.removeItem(obj.item)
                if obj is self._field_handle:
                    self._field_handle = None
        if not any(self._plant_alive):
            self._plants.clear()
            self._plant_scales.clear()
            self._plant_parts.clear()
            self._plant_alive.clear()
        self.refresh_plants()

    # ------------------------------------------------------------------
    # drawing
    # ------------------------------------------------------------------
    def _schedule_refresh(self) -> None:
        self._update_timer.start()

    def refresh_plants(self) -> None:
        """Redraw plant markers from the stored growth state."""
        self._update_timer.stop()
        alive = [i for i, is_alive in enumerate(self._plant_alive) if is_alive]
        if not alive:
            self._plant_item.clear()
            return
        xs = np.fromiter((self._plants[i].x for i in alive), dtype=np.float64, count=len(alive))
        zs = np.fromiter((self._plants[i].z for i in alive), dtype=np.float64, count=len(alive))
        sizes = [PLANT_MARKER_SIZE * self._plant_scales[i] for i in alive]
        brushes = [
            pg.mkBrush(PART_COLOR if self._plant_parts[i] else CROP_COLORS[self._plants[i].crop_type])
            for i in alive
        ]
        self._plant_item.setData(x=xs, y=zs, size=sizes, brush=brushes, pen=None)

    def _attach_weather_items(self) -> None:
        if self._weather_items_attached:
            return
        self._view_box.addItem(self._cloud_item)
        self._view_box.addItem(self._rain_item)
        self._weather_items_attached = True

    def _draw_clouds(self, settings: WeatherVisualSettings) -> None:
        if self._frame is None:
            self._cloud_item.clear()
            return
        half = self._frame.size / 2
        count = settings.cloud_count
        xs = self._frame.center_x + self._rng.uniform(-half, half, count)
        zs = self._frame.center_z + self._rng.uniform(-half, half, count)
        # Cloud cover grows with fog density; opacity comes straight from the table.
        alpha = int(255 * settings.cloud_opacity * min(1.0, settings.fog_density * 60))
        fog = QColor(_hex_color(settings.fog_color))
        fog.setAlpha(alpha)
        self._cloud_item.setData(
            x=xs, y=zs, size=self._frame.size * 0.15, brush=pg.mkBrush(fog), pen=None
        )

    def _draw_rain(self, settings: WeatherVisualSettings) -> None:
        count = settings.rain_particle_count // RAIN_PARTICLES_PER_MARKER
        if count == 0 or self._frame is None:
            self._rain_item.clear()
            return
        half = self._frame.size / 2
        xs = self._frame.center_x + self._rng.uniform(-half, half, count)
        zs = self._frame.center_z + self._rng.uniform(-half, half, count)
        self._rain_item.setData(
            x=xs, y=zs, size=2, symbol="t", brush=pg.mkBrush("#c8d8ff"), pen=None
        )

    # ------------------------------------------------------------------
    # queries
    # ------------------------------------------------------------------
    @property
    def plant_count(self) -> int:
        return sum(self._plant_alive)

    @property
    def has_field(self) -> bool:
        return self._field_handle is not None

    @property
    def current_visuals(self) -> Optional[WeatherVisualSettings]:
        return self._visuals

    @property
    def weather_effects_active(self) -> bool:
        return self._weather_items_attached

    def plant_scale(self, plant: PlantHandle) -> float:
        return self._plant_scales[plant.index]

    def plant_parts_visible(self, plant: PlantHandle) -> bool:
        return self._plant_parts[plant.index]

    def rain_marker_count(self) -> int:
        return len(self._rain_item.data)

    def cloud_marker_count(self) -> int:
        return len(self._cloud_item.data)

    def _on_mouse_moved(self, pos) -> None:
        point = self._view_box.mapSceneToView(pos)
        self.sigCoordinateChanged.emit(point.x(), point.y())

    def cleanup(self) -> None:
        """Clean up resources."""
        self._update_timer.stop()
        self.release_weather_effects()
        self._viewport_ready = False
        logger.debug("FieldCanvas cleaned up")
