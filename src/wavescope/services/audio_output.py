"""Audio output contracts shared by the real and fake output paths.

`TransportEngine` depends on the `AudioOutput` protocol only. An output owns
the authoritative playback clock and streams at most one `PlaybackSource` at a
time through the analysis tap.
"""

from __future__ import annotations

from typing import Protocol

import numpy as np

from .audio_decode import AudioAsset


class OutputHaltError(Exception):
    """Raised when halting a source that is not (or no longer) active."""


class OutputUnavailableError(RuntimeError):
    """Raised when the platform audio device cannot be opened."""


class PlaybackSource:
    """Looping frame cursor over an asset's samples.

    Reads wrap at the end of the buffer so the audible position always equals
    the elapsed offset taken modulo the asset duration.
    """

    def __init__(self, asset: AudioAsset, start_frame: int, channels: int) -> None:
        self._samples = _match_channels(asset.samples, channels)
        self._frames = self._samples.shape[0]
        self._cursor = start_frame % self._frames

    @property
    def cursor(self) -> int:
        return self._cursor

    def read(self, frames: int) -> np.ndarray:
        indices = (self._cursor + np.arange(frames)) % self._frames
        self._cursor = (self._cursor + frames) % self._frames
        return self._samples[indices]


def _match_channels(samples: np.ndarray, channels: int) -> np.ndarray:
    have = samples.shape[1]
    if have == channels:
        return samples
    if have == 1:
        return np.repeat(samples, channels, axis=1)
    if have > channels:
        return samples[:, :channels]
    pad = np.repeat(samples[:, -1:], channels - have, axis=1)
    return np.concatenate((samples, pad), axis=1)


class AudioOutput(Protocol):
    """Platform audio path consumed by `TransportEngine`."""

    @property
    def sample_rate(self) -> int: ...

    def open(self) -> None: ...

    def close(self) -> None: ...

    def clock(self) -> float:
        """Seconds of audio rendered since `open()`; monotonic."""
        ...

    def start_source(self, asset: AudioAsset, offset_s: float) -> None: ...

    def stop_source(self) -> None:
        """Halt the active source; raise `OutputHaltError` when none is active."""
        ...

    def set_volume(self, volume: float) -> None: ...
