"""Host-driven frame loop with resize handling and budget-based throttling."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import Protocol

from .base import RasterSurface, ViewportGeometry
from .pipeline import VisualizationPipeline

logger = logging.getLogger(__name__)

FPS_MIN = 2
FPS_MAX = 60
OVERRUN_STREAK_LIMIT = 3


class TimerHandle(Protocol):
    def stop(self) -> None: ...


ScheduleInterval = Callable[[float, Callable[[], None]], TimerHandle]


class RenderLoop:
    """Runs the pipeline once per host frame until torn down.

    `start()` takes the host's repeating-timer primitive (Textual's
    ``set_interval``). Every tick re-reads the current geometry, so a resize
    that lands between frames is honored on the next one.
    """

    def __init__(
        self,
        pipeline: VisualizationPipeline,
        surface: RasterSurface,
        *,
        sink: Callable[[RasterSurface], None],
        target_fps: int = 30,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._pipeline = pipeline
        self._surface = surface
        self._sink = sink
        self._clock = clock
        self._geometry = surface.geometry
        self._target_fps = max(FPS_MIN, min(target_fps, FPS_MAX))
        self._budget_s = 1.0 / self._target_fps
        self._timer: TimerHandle | None = None
        self._closed = False
        self._frame_index = 0
        self._overrun_streak = 0
        self._skip_frames = 0

    @property
    def target_fps(self) -> int:
        return self._target_fps

    @property
    def geometry(self) -> ViewportGeometry:
        return self._geometry

    @property
    def frame_index(self) -> int:
        return self._frame_index

    @property
    def running(self) -> bool:
        return self._timer is not None

    def start(self, schedule_interval: ScheduleInterval) -> None:
        if self._closed:
            raise RuntimeError("RenderLoop was torn down and cannot restart.")
        if self._timer is not None:
            return
        self._timer = schedule_interval(self._budget_s, self.tick)
        logger.info(
            "Render loop started",
            extra={"event": "render_loop_started", "target_fps": self._target_fps},
        )

    def stop(self) -> None:
        """Cancel the timer; later ticks become no-ops."""
        self._closed = True
        timer, self._timer = self._timer, None
        if timer is not None:
            timer.stop()
            logger.info("Render loop stopped", extra={"event": "render_loop_stopped"})

    def resize(self, width: int, height: int) -> None:
        geometry = ViewportGeometry(max(1, int(width)), max(1, int(height)))
        if geometry != self._geometry:
            logger.debug("Viewport resized to %dx%d", geometry.width, geometry.height)
            self._geometry = geometry

    def tick(self) -> None:
        """Render one frame against the current geometry."""
        if self._closed:
            return
        if self._skip_frames > 0:
            self._skip_frames -= 1
            return
        geometry = self._geometry
        start = self._clock()
        try:
            self._surface.resize(geometry)
            self._surface.apply(self._pipeline.render(geometry))
            self._sink(self._surface)
        except Exception as exc:
            logger.exception("Frame %d render failed: %s", self._frame_index, exc)
            return
        elapsed = self._clock() - start
        if elapsed > self._budget_s:
            self._overrun_streak += 1
            if self._overrun_streak >= OVERRUN_STREAK_LIMIT:
                logger.warning(
                    "Frame render overrun %.3fs > %.3fs; skipping one frame",
                    elapsed,
                    self._budget_s,
                )
                self._skip_frames = 1
                self._overrun_streak = 0
        else:
            self._overrun_streak = 0
        self._frame_index += 1
