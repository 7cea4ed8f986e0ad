"""Tests for timeline playback controller."""

from __future__ import annotations

import datetime as dt

import pytest

from src.core.crops import CropType
from src.core.timeline import Timeline, build_growth_days
from src.core.timeline_controller import TimelineController
from src.core.weather import WEATHER_VISUALS, WeatherDay, WeatherKind


class _FakeRenderer:
    """Minimal renderer double recording controller side effects."""

    def __init__(self) -> None:
        self.growth_calls: list[tuple[object, float, dict[int, bool]]] = []
        self.visuals: list[object] = []
        self.release_count = 0

    def set_plant_growth(self, plant, scale, part_visibility) -> None:
        self.growth_calls.append((plant, scale, part_visibility))

    def apply_day_visuals(self, settings) -> None:
        self.visuals.append(settings)

    def release_weather_effects(self) -> None:
        self.release_count += 1


def _timeline(days: int = 6, crop: CropType = CropType.CORN) -> Timeline:
    start = dt.date(2025, 3, 20)
    kinds = list(WeatherKind)
    weather = [
        WeatherDay(
            day_index=i + 1,
            date=start + dt.timedelta(days=i),
            weather_kind=kinds[i % len(kinds)],
            temperature_c=20.0,
            humidity_pct=60,
            growth_factor=0.5,
        )
        for i in range(days)
    ]
    return Timeline(
        crop_type=crop,
        hectares=1.0,
        density=100,
        days=tuple(build_growth_days(weather, crop)),
    )


@pytest.fixture
def renderer() -> _FakeRenderer:
    return _FakeRenderer()


@pytest.fixture
def controller(qtbot, renderer) -> TimelineController:
    ctrl = TimelineController(_timeline(), renderer, ["p0", "p1", "p2"])
    yield ctrl
    ctrl.dispose()


def test_initial_snapshot_applied(controller, renderer) -> None:
    assert controller.current_day_index == 0
    assert controller.is_playing is False
    assert len(renderer.growth_calls) == 3
    assert renderer.visuals == [WEATHER_VISUALS[controller.current_day.weather_kind]]


def test_set_day_clamps(controller) -> None:
    controller.set_day(-5)
    assert controller.current_day_index == 0
    controller.set_day(len(controller.timeline.days) + 5)
    assert controller.current_day_index == controller.last_index


def test_set_day_emits_snapshot(qtbot, controller, renderer) -> None:
    with qtbot.waitSignal(controller.sigDayChanged) as blocker:
        controller.set_day(3)
    index, day = blocker.args
    assert index == 3
    assert day.day_index == 4
    assert renderer.visuals[-1] == WEATHER_VISUALS[day.weather_kind]


def test_snapshot_scale_and_part_visibility(controller, renderer) -> None:
    controller.set_day(controller.last_index)
    day = controller.current_day
    _, scale, visibility = renderer.growth_calls[-1]
    assert scale == pytest.approx(max(0.2, day.growth_percent))
    assert visibility == {2: day.growth_percent >= 0.6, 3: day.growth_percent >= 0.85}


def test_ticks_advance_until_last_day(qtbot, controller) -> None:
    controller.play()
    assert controller.is_playing is True
    controller._on_tick()
    controller._on_tick()
    assert controller.current_day_index == 2

    with qtbot.waitSignal(controller.sigPlaybackChanged) as blocker:
        for _ in range(10):
            controller._on_tick()
    assert blocker.args == [False]
    assert controller.current_day_index == controller.last_index
    assert controller.is_playing is False
    assert not controller.state.timer.isActive()


def test_pause_halts_advancement(controller) -> None:
    controller.play()
    controller._on_tick()
    controller.pause()
    controller._on_tick()
    assert controller.current_day_index == 1
    assert controller.is_playing is False
    controller.pause()
    assert controller.is_playing is False


def test_play_on_last_day_stays_paused(controller) -> None:
    controller.set_day(controller.last_index)
    controller.play()
    assert controller.is_playing is False
    assert not controller.state.timer.isActive()


def test_set_speed_restarts_timer_without_skipping(controller) -> None:
    controller.play()
    controller._on_tick()
    controller.set_speed(2.0)
    assert controller.state.timer.isActive()
    assert controller.state.timer.interval() == 500
    assert controller.current_day_index == 1


def test_set_speed_while_paused_only_stores(controller) -> None:
    controller.set_speed(5.0)
    assert controller.speed_factor == 5.0
    assert not controller.state.timer.isActive()
    assert controller.interval_ms() == 200


@pytest.mark.parametrize("factor", [0.0, -1.0])
def test_set_speed_rejects_non_positive(controller, factor: float) -> None:
    with pytest.raises(ValueError):
        controller.set_speed(factor)


def test_next_and_prev_stop_at_bounds(controller, renderer) -> None:
    calls_before = len(renderer.visuals)
    controller.prev_day()
    assert len(renderer.visuals) == calls_before
    controller.next_day()
    assert controller.current_day_index == 1
    controller.set_day(controller.last_index)
    calls_before = len(renderer.visuals)
    controller.next_day()
    assert len(renderer.visuals) == calls_before


def test_dispose_stops_emission(qtbot, renderer) -> None:
    ctrl = TimelineController(_timeline(), renderer, ["p0"])
    ctrl.play()
    ctrl.dispose()
    assert renderer.release_count == 1
    assert ctrl.is_playing is False
    assert ctrl.state.timer is None

    with qtbot.assertNotEmitted(ctrl.sigDayChanged):
        ctrl.set_day(2)
        ctrl._on_tick()
    ctrl.dispose()
    assert renderer.release_count == 1


def test_timer_plays_to_the_end(qtbot, renderer) -> None:
    ctrl = TimelineController(_timeline(4), renderer, [], base_interval_ms=10)
    ctrl.play()
    qtbot.waitUntil(lambda: not ctrl.is_playing, timeout=2000)
    assert ctrl.current_day_index == 3
    indices = []
    ctrl.sigDayChanged.connect(lambda index, _day: indices.append(index))
    ctrl.set_day(1)
    assert indices == [1]
    ctrl.dispose()


def test_empty_timeline_rejected(qtbot, renderer) -> None:
    empty = Timeline(crop_type=CropType.RICE, hectares=1.0, density=50, days=())
    with pytest.raises(ValueError):
        TimelineController(empty, renderer, [])
