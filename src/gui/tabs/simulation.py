from dataclasses import replace
from typing import Optional

import numpy as np
from loguru import logger
from PySide6.QtCore import QThread, Qt, QTimer, Slot
from PySide6.QtWidgets import QFileDialog, QHBoxLayout, QWidget
from qfluentwidgets import (
    CheckBox,
    ComboBox,
    DoubleSpinBox,
    InfoBar,
    InfoBarPosition,
    LineEdit,
    PrimaryPushButton,
    PushButton,
    SpinBox,
)

from src.core.crops import CropType
from src.core.errors import (
    ConfigValidationError,
    DegenerateGeometryError,
    InvalidPolygonError,
    UninitializedViewportError,
)
from src.core.simulation import (
    FieldLocation,
    FieldSimulation,
    SimulationConfig,
    WeatherSettings,
    build_field_simulation,
    clear_field_simulation,
    default_simulation_config,
)
from src.core.timeline import Timeline, create_crop_timeline
from src.core.timeline_controller import TimelineController
from src.gui.components.base_interface import BaseInterface, PageGroup
from src.gui.components.field_canvas import FieldCanvas
from src.gui.components.timeline_bar import TimelineBar
from src.gui.components.weather_panel import WeatherPanel
from src.gui.config import cfg, tr
from src.utils.field_io import save_field_layout, save_timeline_csv
from src.utils.location_service import (
    CurrentWeather,
    GeocodeResult,
    fetch_current_conditions,
    format_coordinates,
    resolve_location_name,
    search_location,
)
from src.utils.location_worker import LocationLookupWorker, start_lookup_thread
from src.utils.simulation_io import load_simulation_config, save_simulation_config


class SimulationTab(BaseInterface):
    """
    Interface content for crop growth simulation.

    Layout:
    [ Toolbar: field | location | file | run ]
    [ FieldCanvas | WeatherPanel ]
    [ TimelineBar ]
    """

    def __init__(self, parent: Optional[QWidget] = None, autoload: bool = True) -> None:
        super().__init__(parent)
        self._polygon = default_simulation_config().polygon
        self._location_name = ""
        self._coordinates_edited = False
        self._weather_settings = WeatherSettings(use_real_weather=cfg.get(cfg.useRealWeather))
        self._simulation: Optional[FieldSimulation] = None
        self._timeline: Optional[Timeline] = None
        self._controller: Optional[TimelineController] = None
        self._rng = np.random.default_rng()

        self._lookups: list[tuple[QThread, LocationLookupWorker]] = []
        self._last_request_id = 0
        self._name_request: Optional[int] = None
        self._conditions_request: Optional[int] = None
        self._search_request: Optional[int] = None

        self._init_ui()
        self._init_layout()

        if autoload:
            QTimer.singleShot(100, self.load_default_simulation)

    def _init_ui(self) -> None:
        """Initialize the tool bar controls."""
        # --- Field Group ---
        field_group = PageGroup(tr("page.sim.group.field"))

        self.combo_crop = ComboBox()
        for crop in CropType:
            self.combo_crop.addItem(crop.value.capitalize(), userData=crop)
        field_group.add_widget(self.combo_crop)

        self.spin_hectares = DoubleSpinBox()
        self.spin_hectares.setRange(0.1, 1000.0)
        self.spin_hectares.setSingleStep(0.5)
        self.spin_hectares.setDecimals(2)
        self.spin_hectares.setSuffix(" ha")
        field_group.add_widget(self.spin_hectares)

        self.spin_density = SpinBox()
        self.spin_density.setRange(0, 100)
        self.spin_density.setSuffix(" %")
        field_group.add_widget(self.spin_density)

        self.add_group(field_group)

        # --- Location Group ---
        location_group = PageGroup(tr("page.sim.group.location"))

        self.check_location = CheckBox(tr("page.sim.check.location"))
        self.check_location.setChecked(True)
        location_group.add_widget(self.check_location)

        self.edit_search = LineEdit()
        self.edit_search.setPlaceholderText(tr("page.sim.placeholder.search"))
        self.edit_search.returnPressed.connect(self._on_search_location)
        location_group.add_widget(self.edit_search)

        self.spin_lat = DoubleSpinBox()
        self.spin_lat.setRange(-90.0, 90.0)
        self.spin_lat.setDecimals(4)
        location_group.add_widget(self.spin_lat)

        self.spin_lon = DoubleSpinBox()
        self.spin_lon.setRange(-180.0, 180.0)
        self.spin_lon.setDecimals(4)
        location_group.add_widget(self.spin_lon)

        self.spin_lat.valueChanged.connect(self._on_coordinates_edited)
        self.spin_lon.valueChanged.connect(self._on_coordinates_edited)

        self.add_group(location_group)

        # --- File Group ---
        file_group = PageGroup(tr("page.sim.group.file"))

        self.btn_load = PushButton(tr("page.sim.btn.load"))
        self.btn_load.clicked.connect(self._on_load_config)
        file_group.add_widget(self.btn_load)

        self.btn_save = PushButton(tr("page.sim.btn.save"))
        self.btn_save.clicked.connect(self._on_save_config)
        file_group.add_widget(self.btn_save)

        self.btn_export = PushButton(tr("page.sim.btn.export"))
        self.btn_export.clicked.connect(self._on_export)
        file_group.add_widget(self.btn_export)

        self.add_group(file_group)

        # --- Run Group ---
        run_group = PageGroup(tr("page.sim.group.run"))
        self.btn_start = PrimaryPushButton(tr("page.sim.btn.start"))
        self.btn_start.clicked.connect(self._on_start)
        run_group.add_widget(self.btn_start)
        self.add_group(run_group)

        self.add_stretch()

    def _init_layout(self) -> None:
        row = QWidget()
        row_layout = QHBoxLayout(row)
        row_layout.setContentsMargins(0, 0, 0, 0)
        row_layout.setSpacing(0)

        self.field_canvas = FieldCanvas()
        self.weather_panel = WeatherPanel()
        row_layout.addWidget(self.field_canvas, 1)
        row_layout.addWidget(self.weather_panel)

        self.timeline_bar = TimelineBar()

        self._content_layout.addWidget(row, 1)
        self._content_layout.addWidget(self.timeline_bar)

    # ------------------------------------------------------------------
    # state
    # ------------------------------------------------------------------
    @property
    def controller(self) -> Optional[TimelineController]:
        return self._controller

    @property
    def simulation(self) -> Optional[FieldSimulation]:
        return self._simulation

    @property
    def timeline(self) -> Optional[Timeline]:
        return self._timeline

    def config_from_form(self) -> SimulationConfig:
        """Current form values as a ``SimulationConfig``."""
        location = None
        if self.check_location.isChecked():
            location = FieldLocation(
                latitude=self.spin_lat.value(),
                longitude=self.spin_lon.value(),
                name=self._location_name,
            )
        return SimulationConfig(
            crop_type=self.combo_crop.currentData(),
            hectares=self.spin_hectares.value(),
            density=self.spin_density.value(),
            polygon=self._polygon,
            location=location,
            weather_settings=self._weather_settings,
        )

    def apply_config_to_form(self, config: SimulationConfig) -> None:
        self.combo_crop.setCurrentIndex(list(CropType).index(config.crop_type))
        self.spin_hectares.setValue(config.hectares)
        self.spin_density.setValue(config.density)
        self._polygon = config.polygon
        self._weather_settings = config.weather_settings
        self.check_location.setChecked(config.location is not None)
        if config.location is not None:
            self._set_coordinates(config.location.latitude, config.location.longitude)
            self._location_name = config.location.name

    def _set_coordinates(self, latitude: float, longitude: float) -> None:
        for spin, value in ((self.spin_lat, latitude), (self.spin_lon, longitude)):
            spin.blockSignals(True)
            spin.setValue(value)
            spin.blockSignals(False)

    # ------------------------------------------------------------------
    # simulation lifecycle
    # ------------------------------------------------------------------
    @Slot()
    def load_default_simulation(self) -> None:
        config = replace(
            default_simulation_config(),
            weather_settings=WeatherSettings(use_real_weather=cfg.get(cfg.useRealWeather)),
        )
        self.apply_config_to_form(config)
        self.start_simulation(config)

    def start_simulation(self, config: SimulationConfig) -> bool:
        """Replace the current simulation with one built from ``config``.

        Returns
        -------
        bool
            ``False`` when the field could not be built.
        """
        self.stop_simulation()

        try:
            simulation = build_field_simulation(config, self.field_canvas, self._rng)
        except UninitializedViewportError as e:
            logger.error(f"Viewport not ready: {e}")
            self.field_canvas.remove_objects(e.created_objects)
            self._show_error(tr("page.sim.error.viewport"))
            return False
        except (InvalidPolygonError, DegenerateGeometryError) as e:
            logger.error(f"Invalid field geometry: {e}")
            self._show_error(tr("page.sim.error.geometry").format(error=e))
            return False

        timeline = create_crop_timeline(
            config,
            start_date=cfg.start_date(),
            days=cfg.get(cfg.simulationDays),
            rng=self._rng,
        )
        controller = TimelineController(
            timeline,
            self.field_canvas,
            simulation.plant_objects,
            base_interval_ms=cfg.get(cfg.playbackInterval),
            parent=self,
        )
        controller.sigDayChanged.connect(self.weather_panel.update_day)

        self._simulation = simulation
        self._timeline = timeline
        self._controller = controller

        self.weather_panel.set_location(config.location)
        self.weather_panel.update_day(controller.current_day_index, controller.current_day)
        self.timeline_bar.set_controller(controller)
        self._coordinates_edited = False
        if config.location is not None:
            self._start_location_lookups(config.location, config.weather_settings)
        logger.info(f"Simulation started with {len(simulation.plants)} plants")
        return True

    def stop_simulation(self) -> None:
        """Dispose the controller and remove the field from the canvas."""
        if self._controller is not None:
            self.timeline_bar.set_controller(None)
            self._controller.dispose()
            self._controller.deleteLater()
            self._controller = None
        if self._simulation is not None:
            clear_field_simulation(self._simulation, self.field_canvas)
            self._simulation = None
        self._timeline = None
        self._cancel_lookup(self._name_request)
        self._cancel_lookup(self._conditions_request)
        self._name_request = None
        self._conditions_request = None
        self.weather_panel.clear()

    def cleanup(self) -> None:
        self.stop_simulation()
        self._cancel_lookup(self._search_request)
        self._search_request = None
        for thread, worker in self._lookups:
            worker.request_cancel()
            thread.quit()
            thread.wait()
        self._prune_lookups()
        self.field_canvas.cleanup()

    # ------------------------------------------------------------------
    # location lookups
    # ------------------------------------------------------------------
    def _api_key(self, settings: Optional[WeatherSettings] = None) -> Optional[str]:
        settings = settings or self._weather_settings
        return settings.api_key or cfg.get(cfg.openWeatherApiKey) or None

    def _start_lookup(self, lookup, *args, on_finished, on_failed=None) -> int:
        """Run ``lookup(*args)`` on a worker thread and return its request id."""
        self._prune_lookups()
        self._last_request_id += 1
        worker = LocationLookupWorker(self._last_request_id, lookup, *args)
        worker.sigFinished.connect(on_finished)
        if on_failed is not None:
            worker.sigFailed.connect(on_failed)
        thread = start_lookup_thread(worker, self)
        self._lookups.append((thread, worker))
        logger.debug(f"Started location lookup {worker.request_id}: {lookup.__name__}")
        return worker.request_id

    def _cancel_lookup(self, request_id: Optional[int]) -> None:
        if request_id is None:
            return
        for _, worker in self._lookups:
            if worker.request_id == request_id:
                worker.request_cancel()

    def _prune_lookups(self) -> None:
        active = []
        for thread, worker in self._lookups:
            if thread.isFinished():
                thread.deleteLater()
            else:
                active.append((thread, worker))
        self._lookups = active

    @property
    def pending_lookups(self) -> int:
        """Number of lookup threads still running."""
        return sum(1 for thread, _ in self._lookups if not thread.isFinished())

    def _start_location_lookups(
        self, location: FieldLocation, settings: WeatherSettings
    ) -> None:
        """Fetch the place name and current conditions off the GUI thread.

        Nothing is requested when ``settings.use_real_weather`` is off; an
        unnamed location then shows its coordinates.
        """
        api_key = self._api_key(settings) if settings.use_real_weather else None
        if not location.name:
            if api_key is None:
                self._show_location_name(
                    format_coordinates(location.latitude, location.longitude)
                )
            else:
                self._name_request = self._start_lookup(
                    resolve_location_name,
                    location.latitude,
                    location.longitude,
                    api_key,
                    on_finished=self._on_location_resolved,
                )
        if api_key is not None:
            self._conditions_request = self._start_lookup(
                fetch_current_conditions,
                location.latitude,
                location.longitude,
                api_key,
                on_finished=self._on_current_conditions,
                on_failed=self._on_current_conditions_failed,
            )

    def _show_location_name(self, name: str) -> None:
        if self._timeline is None or self._timeline.location is None:
            return
        location = self._timeline.location
        self.weather_panel.set_location(
            FieldLocation(location.latitude, location.longitude, name)
        )
        if not self._coordinates_edited:
            self._location_name = name

    # ------------------------------------------------------------------
    # slots
    # ------------------------------------------------------------------
    @Slot()
    def _on_start(self):
        try:
            config = self.config_from_form()
        except ValueError as e:
            self._show_error(str(e))
            return
        if self.start_simulation(config):
            InfoBar.success(
                title=tr("success"),
                content=tr("page.sim.msg.started"),
                parent=self,
                duration=2000,
            )

    @Slot()
    def _on_coordinates_edited(self):
        self._location_name = ""
        self._coordinates_edited = True

    @Slot(int, object)
    def _on_location_resolved(self, request_id: int, name: str):
        if request_id != self._name_request:
            return
        self._name_request = None
        self._show_location_name(name)

    @Slot(int, object)
    def _on_current_conditions(self, request_id: int, conditions: CurrentWeather):
        if request_id != self._conditions_request:
            return
        self._conditions_request = None
        self.weather_panel.set_current_conditions(conditions)

    @Slot(int, str)
    def _on_current_conditions_failed(self, request_id: int, message: str):
        if request_id != self._conditions_request:
            return
        self._conditions_request = None
        logger.warning(f"Current conditions unavailable: {message}")

    @Slot()
    def _on_search_location(self):
        query = self.edit_search.text().strip()
        if not query:
            return
        api_key = self._api_key()
        if not api_key:
            self._show_warning(tr("page.sim.msg.no_api_key"))
            return
        self._cancel_lookup(self._search_request)
        self._search_request = self._start_lookup(
            search_location,
            query,
            api_key,
            on_finished=self._on_search_finished,
            on_failed=self._on_search_failed,
        )

    @Slot(int, str)
    def _on_search_failed(self, request_id: int, message: str):
        if request_id != self._search_request:
            return
        self._search_request = None
        logger.warning(f"Location search failed: {message}")
        self._show_warning(tr("page.sim.msg.search_failed"))

    @Slot(int, object)
    def _on_search_finished(self, request_id: int, results: list[GeocodeResult]):
        if request_id != self._search_request:
            return
        self._search_request = None
        if not results:
            self._show_warning(tr("page.sim.msg.no_results"))
            return
        place = results[0]
        self._set_coordinates(place.latitude, place.longitude)
        self._location_name = place.display_name
        self._coordinates_edited = True
        self.check_location.setChecked(True)
        logger.info(f"Location selected: {place.display_name}")

    @Slot()
    def _on_load_config(self):
        file_path, _ = QFileDialog.getOpenFileName(
            self, tr("page.sim.dialog.load"), "", "JSON (*.json);;All Files (*)"
        )
        if not file_path:
            return
        try:
            config = load_simulation_config(file_path)
        except (ConfigValidationError, InvalidPolygonError, OSError) as e:
            logger.error(f"Failed to load config {file_path}: {e}")
            self._show_error(tr("page.sim.error.load").format(error=e))
            return
        self.apply_config_to_form(config)
        self.start_simulation(config)

    @Slot()
    def _on_save_config(self):
        file_path, _ = QFileDialog.getSaveFileName(
            self, tr("page.sim.dialog.save"), "", "JSON (*.json)"
        )
        if not file_path:
            return
        try:
            saved_path = save_simulation_config(self.config_from_form(), file_path)
        except (ValueError, OSError) as e:
            self._show_error(str(e))
            return
        InfoBar.success(
            title=tr("success"),
            content=tr("page.sim.msg.saved").format(path=saved_path.name),
            parent=self,
            duration=3000,
        )

    @Slot()
    def _on_export(self):
        if self._simulation is None or self._timeline is None:
            self._show_warning(tr("page.sim.msg.no_simulation"))
            return
        file_path, _ = QFileDialog.getSaveFileName(
            self, tr("page.sim.dialog.export"), "", "Shapefile (*.shp)"
        )
        if not file_path:
            return
        try:
            field_path, _ = save_field_layout(self._simulation, file_path)
            save_timeline_csv(self._timeline, field_path.with_name(f"{field_path.stem}_timeline.csv"))
        except (OSError, ValueError) as e:
            logger.error(f"Export failed: {e}")
            self._show_error(str(e))
            return
        InfoBar.success(
            title=tr("success"),
            content=tr("page.sim.msg.exported"),
            parent=self,
            duration=3000,
        )

    def _show_error(self, content: str) -> None:
        InfoBar.error(
            title=tr("error"),
            content=content,
            orient=Qt.Orientation.Horizontal,
            isClosable=True,
            position=InfoBarPosition.TOP_RIGHT,
            duration=5000,
            parent=self,
        )

    def _show_warning(self, content: str) -> None:
        InfoBar.warning(
            title=tr("warning"),
            content=content,
            orient=Qt.Orientation.Horizontal,
            isClosable=True,
            position=InfoBarPosition.TOP_RIGHT,
            duration=3000,
            parent=self,
        )
