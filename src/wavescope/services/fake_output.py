"""Fake audio output with a simulated clock for deterministic testing."""

from __future__ import annotations

import asyncio
import logging
from contextlib import suppress

import numpy as np

from .analysis_tap import AnalysisTap
from .audio_decode import DEFAULT_SAMPLE_RATE, AudioAsset
from .audio_output import OutputHaltError, PlaybackSource

logger = logging.getLogger(__name__)


class FakeAudioOutput:
    """In-memory output whose clock only moves when `advance()` is called.

    With ``realtime=True`` an asyncio ticker advances the clock on the running
    loop, which lets the TUI run without a sound device.
    """

    def __init__(
        self,
        tap: AnalysisTap | None = None,
        *,
        sample_rate: int = DEFAULT_SAMPLE_RATE,
        channels: int = 2,
        realtime: bool = False,
        tick_interval_ms: int = 20,
    ) -> None:
        self._tap = tap
        self._sample_rate = sample_rate
        self._channels = channels
        self._realtime = realtime
        self._tick_interval_s = tick_interval_ms / 1000
        self._source: PlaybackSource | None = None
        self._frames_rendered = 0
        self._task: asyncio.Task[None] | None = None
        self.is_open = False
        self.volume = 1.0
        self.started_offsets: list[float] = []
        self.stop_calls = 0

    @property
    def sample_rate(self) -> int:
        return self._sample_rate

    @property
    def source(self) -> PlaybackSource | None:
        return self._source

    def open(self) -> None:
        self.is_open = True
        if self._realtime and self._task is None:
            self._task = asyncio.get_running_loop().create_task(self._ticker_loop())

    def close(self) -> None:
        self._source = None
        if self._tap is not None:
            self._tap.deactivate()
        if self._task is not None:
            self._task.cancel()
            self._task = None
        self.is_open = False

    def clock(self) -> float:
        return self._frames_rendered / self._sample_rate

    def start_source(self, asset: AudioAsset, offset_s: float) -> None:
        self.started_offsets.append(offset_s)
        start_frame = int(round(offset_s * asset.sample_rate))
        if self._tap is not None:
            self._tap.activate()
        self._source = PlaybackSource(asset, start_frame, self._channels)

    def stop_source(self) -> None:
        self.stop_calls += 1
        if self._source is None:
            raise OutputHaltError("No active source to stop")
        self._source = None
        if self._tap is not None:
            self._tap.deactivate()

    def set_volume(self, volume: float) -> None:
        self.volume = max(0.0, min(float(volume), 1.0))

    def advance(self, seconds: float) -> None:
        """Render `seconds` of audio, feeding the tap when a source is active."""
        frames = int(round(seconds * self._sample_rate))
        if frames <= 0:
            return
        source = self._source
        if source is not None and self._tap is not None:
            block: np.ndarray = source.read(frames)
            self._tap.write(block.mean(axis=1))
        elif source is not None:
            source.read(frames)
        self._frames_rendered += frames

    async def _ticker_loop(self) -> None:
        with suppress(asyncio.CancelledError):
            while True:
                await asyncio.sleep(self._tick_interval_s)
                self.advance(self._tick_interval_s)
