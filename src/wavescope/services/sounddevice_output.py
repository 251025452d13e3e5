"""PortAudio output via sounddevice.

One `OutputStream` stays open for the whole session, rendering silence while
no source is active. Its frame counter defines the audio clock, which keeps
transport timing immune to frame-timeline scheduling jitter.
"""

from __future__ import annotations

import logging
from typing import Any

import numpy as np

from .analysis_tap import AnalysisTap
from .audio_decode import DEFAULT_SAMPLE_RATE, AudioAsset
from .audio_output import OutputHaltError, OutputUnavailableError, PlaybackSource

logger = logging.getLogger(__name__)


class SoundDeviceOutput:
    """Audio output backed by a callback-driven PortAudio stream."""

    def __init__(
        self,
        tap: AnalysisTap,
        *,
        sample_rate: int = DEFAULT_SAMPLE_RATE,
        channels: int = 2,
        blocksize: int = 512,
        device: int | str | None = None,
    ) -> None:
        self._tap = tap
        self._sample_rate = sample_rate
        self._channels = channels
        self._blocksize = blocksize
        self._device = device
        self._stream: Any = None
        self._source: PlaybackSource | None = None
        self._frames_rendered = 0
        self._volume = 1.0

    @property
    def sample_rate(self) -> int:
        return self._sample_rate

    def open(self) -> None:
        if self._stream is not None:
            return
        try:
            import sounddevice as sd

            stream = sd.OutputStream(
                samplerate=self._sample_rate,
                channels=self._channels,
                dtype="float32",
                blocksize=self._blocksize,
                device=self._device,
                callback=self._callback,
            )
            stream.start()
        except Exception as exc:  # pragma: no cover - depends on PortAudio install
            raise OutputUnavailableError(
                "Audio output unavailable. Ensure PortAudio and an output device "
                "are present."
            ) from exc
        self._stream = stream
        logger.info(
            "Audio output opened",
            extra={
                "event": "output_opened",
                "sample_rate": self._sample_rate,
                "channels": self._channels,
                "blocksize": self._blocksize,
            },
        )

    def close(self) -> None:
        self._source = None
        self._tap.deactivate()
        stream, self._stream = self._stream, None
        if stream is None:
            return
        try:
            stream.stop()
        finally:
            stream.close()
        logger.info("Audio output closed", extra={"event": "output_closed"})

    def clock(self) -> float:
        return self._frames_rendered / self._sample_rate

    def start_source(self, asset: AudioAsset, offset_s: float) -> None:
        start_frame = int(round(offset_s * asset.sample_rate))
        self._tap.activate()
        self._source = PlaybackSource(asset, start_frame, self._channels)

    def stop_source(self) -> None:
        if self._source is None:
            raise OutputHaltError("No active source to stop")
        self._source = None
        self._tap.deactivate()

    def set_volume(self, volume: float) -> None:
        self._volume = max(0.0, min(float(volume), 1.0))

    def _callback(self, outdata: np.ndarray, frames: int, time_info, status) -> None:
        del time_info
        if status:
            logger.debug("Audio callback status: %s", status)
        source = self._source
        if source is None:
            outdata.fill(0.0)
        else:
            block = source.read(frames)
            outdata[:] = block * self._volume
            self._tap.write(block.mean(axis=1))
        self._frames_rendered += frames
