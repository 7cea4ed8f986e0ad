"""Playback state machine stepping through a growth timeline."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from loguru import logger
from PySide6.QtCore import QObject, QTimer, Signal

from src.core.crops import part_visibility, plant_visual_scale
from src.core.simulation import FieldRenderer
from src.core.timeline import Timeline, TimelineDay
from src.core.weather import WEATHER_VISUALS

BASE_INTERVAL_MS = 1000
SPEED_OPTIONS = (0.5, 1.0, 2.0, 5.0, 10.0)


@dataclass
class PlaybackState:
    """Mutable playback state owned by ``TimelineController``."""

    current_day_index: int = 0
    is_playing: bool = False
    speed_factor: float = 1.0
    timer: Optional[QTimer] = None


class TimelineController(QObject):
    """Drive day snapshots of a timeline into a renderer.

    The controller starts paused on day 0 with that day already applied.
    While playing, a ``QTimer`` advances one day per tick and stops on the
    last day.

    Parameters
    ----------
    timeline : Timeline
        Non-empty growth timeline.
    renderer : FieldRenderer
        Scene collaborator receiving plant growth and day visuals.
    plant_objects : list
        Renderer plant handles updated on every day change.
    base_interval_ms : int, optional
        Tick interval at speed ``1.0``.
    parent : QObject, optional
        Qt parent.

    Signals
    -------
    sigDayChanged : Signal(int, object)
        Emitted with ``(day_index, TimelineDay)`` after each snapshot.
    sigPlaybackChanged : Signal(bool)
        Emitted when playback starts or stops.
    """

    sigDayChanged = Signal(int, object)
    sigPlaybackChanged = Signal(bool)

    def __init__(
        self,
        timeline: Timeline,
        renderer: FieldRenderer,
        plant_objects: list[Any],
        base_interval_ms: int = BASE_INTERVAL_MS,
        parent: Optional[QObject] = None,
    ) -> None:
        super().__init__(parent)
        if len(timeline.days) == 0:
            raise ValueError("timeline has no days")
        if base_interval_ms <= 0:
            raise ValueError("base interval must be positive")
        self._timeline = timeline
        self._renderer = renderer
        self._plant_objects = list(plant_objects)
        self._base_interval_ms = base_interval_ms
        self._disposed = False

        timer = QTimer(self)
        timer.timeout.connect(self._on_tick)
        self._state = PlaybackState(timer=timer)

        self._apply_snapshot()

    # ------------------------------------------------------------------
    # properties
    # ------------------------------------------------------------------
    @property
    def state(self) -> PlaybackState:
        return self._state

    @property
    def timeline(self) -> Timeline:
        return self._timeline

    @property
    def current_day_index(self) -> int:
        return self._state.current_day_index

    @property
    def current_day(self) -> TimelineDay:
        return self._timeline.days[self._state.current_day_index]

    @property
    def is_playing(self) -> bool:
        return self._state.is_playing

    @property
    def speed_factor(self) -> float:
        return self._state.speed_factor

    @property
    def last_index(self) -> int:
        return len(self._timeline.days) - 1

    @property
    def is_disposed(self) -> bool:
        return self._disposed

    def interval_ms(self) -> int:
        """Current tick interval derived from the speed factor."""
        return max(1, int(round(self._base_interval_ms / self._state.speed_factor)))

    # ------------------------------------------------------------------
    # operations
    # ------------------------------------------------------------------
    def set_day(self, index: int) -> None:
        """Jump to ``index`` clamped to the timeline range."""
        if self._disposed:
            return
        self._state.current_day_index = min(max(int(index), 0), self.last_index)
        self._apply_snapshot()

    def play(self) -> None:
        if self._disposed or self._state.is_playing:
            return
        if self._state.current_day_index >= self.last_index:
            logger.debug("Playback not started: already on the last day")
            return
        self._state.is_playing = True
        self._restart_timer()
        logger.debug(f"Playback started at {self._state.speed_factor}x")
        self.sigPlaybackChanged.emit(True)

    def pause(self) -> None:
        if not self._state.is_playing:
            return
        if self._state.timer is not None:
            self._state.timer.stop()
        self._state.is_playing = False
        logger.debug(f"Playback paused on day {self._state.current_day_index}")
        self.sigPlaybackChanged.emit(False)

    def toggle_playback(self) -> None:
        if self._state.is_playing:
            self.pause()
        else:
            self.play()

    def set_speed(self, factor: float) -> None:
        """Change the playback speed, keeping the current day."""
        if factor <= 0:
            raise ValueError("speed factor must be positive")
        self._state.speed_factor = float(factor)
        if self._state.is_playing and not self._disposed:
            self._restart_timer()

    def next_day(self) -> None:
        if self._state.current_day_index < self.last_index:
            self.set_day(self._state.current_day_index + 1)

    def prev_day(self) -> None:
        if self._state.current_day_index > 0:
            self.set_day(self._state.current_day_index - 1)

    def dispose(self) -> None:
        """Stop playback and release renderer weather effects."""
        if self._disposed:
            return
        self.pause()
        self._disposed = True
        timer = self._state.timer
        if timer is not None:
            timer.timeout.disconnect(self._on_tick)
            timer.deleteLater()
            self._state.timer = None
        self._renderer.release_weather_effects()
        logger.debug("Timeline controller disposed")

    # ------------------------------------------------------------------
    # internals
    # ------------------------------------------------------------------
    def _restart_timer(self) -> None:
        timer = self._state.timer
        if timer is None:
            return
        timer.stop()
        timer.start(self.interval_ms())

    def _on_tick(self) -> None:
        if self._disposed or not self._state.is_playing:
            return
        next_index = self._state.current_day_index + 1
        if next_index > self.last_index:
            self.pause()
            return
        self._state.current_day_index = next_index
        self._apply_snapshot()
        if next_index == self.last_index:
            self.pause()

    def _apply_snapshot(self) -> None:
        index = self._state.current_day_index
        day = self._timeline.days[index]
        scale = plant_visual_scale(day.growth_percent)
        visibility = part_visibility(self._timeline.crop_type, day.growth_percent)
        for plant in self._plant_objects:
            self._renderer.set_plant_growth(plant, scale, dict(visibility))
        self._renderer.apply_day_visuals(WEATHER_VISUALS[day.weather_kind])
        self.sigDayChanged.emit(index, day)
