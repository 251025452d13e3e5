"""Tests for the host-driven render loop."""

from __future__ import annotations

import logging

import pytest

from wavescope.services.analysis_tap import AnalysisTap
from wavescope.visualizers import (
    PixelSurface,
    RasterSurface,
    RenderLoop,
    ViewportGeometry,
    VisualizationPipeline,
)


class FakeTimer:
    def __init__(self, interval: float, callback) -> None:
        self.interval = interval
        self.callback = callback
        self.stopped = False

    def stop(self) -> None:
        self.stopped = True


class FakeScheduler:
    """Collects timers instead of scheduling them."""

    def __init__(self) -> None:
        self.timers: list[FakeTimer] = []

    def __call__(self, interval: float, callback) -> FakeTimer:
        timer = FakeTimer(interval, callback)
        self.timers.append(timer)
        return timer


class StepClock:
    """Monotonic clock double returning scripted timestamps."""

    def __init__(self, values: list[float]) -> None:
        self._values = list(values)

    def __call__(self) -> float:
        return self._values.pop(0)


def _loop(**kwargs):
    frames: list[RasterSurface] = []
    pipeline = VisualizationPipeline(AnalysisTap(fft_size=64))
    surface = PixelSurface(ViewportGeometry(16, 16))
    loop = RenderLoop(pipeline, surface, sink=frames.append, **kwargs)
    return loop, surface, frames


def test_start_schedules_at_target_fps() -> None:
    loop, _surface, _frames = _loop(target_fps=20)
    scheduler = FakeScheduler()

    loop.start(scheduler)
    loop.start(scheduler)

    assert len(scheduler.timers) == 1
    assert scheduler.timers[0].interval == pytest.approx(0.05)
    assert loop.running


def test_target_fps_is_clamped() -> None:
    assert _loop(target_fps=500)[0].target_fps == 60
    assert _loop(target_fps=0)[0].target_fps == 2


def test_tick_renders_into_surface_and_sink() -> None:
    loop, surface, frames = _loop()
    loop.tick()
    loop.tick()
    assert frames == [surface, surface]
    assert loop.frame_index == 2


def test_tick_rereads_geometry_after_resize() -> None:
    loop, surface, _frames = _loop()
    loop.resize(40, 24)
    assert surface.geometry == ViewportGeometry(16, 16)

    loop.tick()

    assert loop.geometry == ViewportGeometry(40, 24)
    assert surface.geometry == ViewportGeometry(40, 24)
    assert surface.pixels.shape == (24, 40, 3)


def test_resize_clamps_to_one_pixel() -> None:
    loop, _surface, _frames = _loop()
    loop.resize(0, -3)
    assert loop.geometry == ViewportGeometry(1, 1)


def test_stop_cancels_timer_and_silences_ticks() -> None:
    loop, _surface, frames = _loop()
    scheduler = FakeScheduler()
    loop.start(scheduler)

    loop.stop()
    loop.tick()

    assert scheduler.timers[0].stopped is True
    assert frames == []
    assert not loop.running
    with pytest.raises(RuntimeError):
        loop.start(scheduler)


def test_render_failure_is_logged_and_frame_skipped(caplog) -> None:
    calls = 0

    def failing_sink(surface: RasterSurface) -> None:
        nonlocal calls
        calls += 1
        raise RuntimeError("sink broke")

    pipeline = VisualizationPipeline(AnalysisTap(fft_size=64))
    loop = RenderLoop(pipeline, PixelSurface(ViewportGeometry(8, 8)), sink=failing_sink)

    with caplog.at_level(logging.ERROR):
        loop.tick()
        loop.tick()

    assert calls == 2
    assert loop.frame_index == 0
    assert any("render failed" in record.message for record in caplog.records)


def test_overrun_streak_skips_one_frame() -> None:
    # Each rendered tick reads the clock twice; 0.2s per frame overruns 10 fps.
    clock = StepClock([0.0, 0.2] * 4)
    loop, _surface, frames = _loop(target_fps=10, clock=clock)

    for _ in range(3):
        loop.tick()
    assert len(frames) == 3

    loop.tick()
    assert len(frames) == 3

    loop.tick()
    assert len(frames) == 4


def test_fast_frames_reset_overrun_streak() -> None:
    clock = StepClock([0.0, 0.2, 0.0, 0.2, 0.0, 0.01, 0.0, 0.2, 0.0, 0.2])
    loop, _surface, frames = _loop(target_fps=10, clock=clock)

    for _ in range(5):
        loop.tick()

    assert len(frames) == 5
