from typing import Optional

from PySide6.QtCore import Qt
from PySide6.QtWidgets import QFrame, QHBoxLayout, QWidget
from qfluentwidgets import BodyLabel, ComboBox, Slider, ToolButton
from qfluentwidgets import FluentIcon as FIF

from src.core.timeline import TimelineDay
from src.core.timeline_controller import SPEED_OPTIONS, TimelineController
from src.gui.config import tr


class TimelineBar(QFrame):
    """
    Playback controls bound to a ``TimelineController``.

    Widgets only forward user input to the controller; their state is
    refreshed from ``sigDayChanged`` and ``sigPlaybackChanged``.
    """

    def __init__(self, parent: QWidget = None):
        super().__init__(parent)
        self._controller: Optional[TimelineController] = None
        self._init_ui()
        self._connect_signals()
        self.setEnabled(False)

    def _init_ui(self):
        self.setObjectName("timelineBar")
        self.setFixedHeight(48)

        layout = QHBoxLayout(self)
        layout.setContentsMargins(16, 0, 16, 0)
        layout.setSpacing(8)

        self.btn_prev = ToolButton(FIF.LEFT_ARROW, self)
        self.btn_play = ToolButton(FIF.PLAY, self)
        self.btn_next = ToolButton(FIF.RIGHT_ARROW, self)

        self.slider = Slider(Qt.Orientation.Horizontal, self)
        self.slider.setRange(0, 0)

        self.day_label = BodyLabel(tr("timeline.day").format(day=0, total=0))

        self.speed_combo = ComboBox(self)
        for speed in SPEED_OPTIONS:
            self.speed_combo.addItem(f"{speed:g}x", userData=speed)
        self.speed_combo.setCurrentIndex(SPEED_OPTIONS.index(1.0))

        layout.addWidget(self.btn_prev)
        layout.addWidget(self.btn_play)
        layout.addWidget(self.btn_next)
        layout.addWidget(self.slider, 1)
        layout.addWidget(self.day_label)
        layout.addWidget(self.speed_combo)

    def _connect_signals(self):
        self.btn_prev.clicked.connect(self._on_prev)
        self.btn_next.clicked.connect(self._on_next)
        self.btn_play.clicked.connect(self._on_play_clicked)
        self.slider.valueChanged.connect(self._on_slider_changed)
        self.speed_combo.currentIndexChanged.connect(self._on_speed_changed)

    @property
    def controller(self) -> Optional[TimelineController]:
        return self._controller

    def set_controller(self, controller: Optional[TimelineController]) -> None:
        """Bind to ``controller``; ``None`` disables the bar."""
        if self._controller is not None:
            self._controller.sigDayChanged.disconnect(self.update_day)
            self._controller.sigPlaybackChanged.disconnect(self.update_playing)
        self._controller = controller
        if controller is None:
            self.setEnabled(False)
            return

        controller.sigDayChanged.connect(self.update_day)
        controller.sigPlaybackChanged.connect(self.update_playing)
        controller.set_speed(self.current_speed())

        self.slider.blockSignals(True)
        self.slider.setRange(0, controller.last_index)
        self.slider.blockSignals(False)
        self.update_day(controller.current_day_index, controller.current_day)
        self.update_playing(controller.is_playing)
        self.setEnabled(True)

    def current_speed(self) -> float:
        return float(self.speed_combo.currentData())

    def update_day(self, index: int, day: TimelineDay) -> None:
        if self.slider.value() != index:
            self.slider.blockSignals(True)
            self.slider.setValue(index)
            self.slider.blockSignals(False)
        total = self._controller.last_index + 1 if self._controller is not None else 0
        self.day_label.setText(tr("timeline.day").format(day=day.day_index, total=total))

    def update_playing(self, playing: bool) -> None:
        self.btn_play.setIcon(FIF.PAUSE if playing else FIF.PLAY)

    def _on_play_clicked(self):
        if self._controller is not None:
            self._controller.toggle_playback()

    def _on_prev(self):
        if self._controller is not None:
            self._controller.prev_day()

    def _on_next(self):
        if self._controller is not None:
            self._controller.next_day()

    def _on_slider_changed(self, value: int):
        if self._controller is not None:
            self._controller.set_day(value)

    def _on_speed_changed(self, index: int):
        if self._controller is not None:
            self._controller.set_speed(self.current_speed())
