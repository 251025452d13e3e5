"""Live analysis tap between the audio timeline and the frame timeline.

The audio callback thread calls `write()` with each rendered block. Every
write publishes a fresh, never-mutated numpy window by plain attribute
assignment, so readers on the frame timeline grab whatever reference is
current without locking or waiting. Frequency smoothing state lives on the
reader side only.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np

logger = logging.getLogger(__name__)

MAX_MAGNITUDE = 255.0
DEFAULT_MIN_DECIBELS = -100.0
DEFAULT_MAX_DECIBELS = -30.0


@dataclass(frozen=True)
class AnalysisFrame:
    """One frame's worth of spectrum and waveform samples."""

    frequency: np.ndarray
    time_domain: np.ndarray


class AnalysisTap:
    """Windowed FFT with exponential smoothing over the most recent samples."""

    def __init__(
        self,
        *,
        fft_size: int = 2048,
        smoothing: float = 0.85,
        min_decibels: float = DEFAULT_MIN_DECIBELS,
        max_decibels: float = DEFAULT_MAX_DECIBELS,
    ) -> None:
        if fft_size < 32 or fft_size & (fft_size - 1):
            raise ValueError("fft_size must be a power of two >= 32")
        if not 0.0 <= smoothing < 1.0:
            raise ValueError("smoothing must be in [0, 1)")
        if min_decibels >= max_decibels:
            raise ValueError("min_decibels must be below max_decibels")
        self._fft_size = fft_size
        self._bin_count = fft_size // 2
        self._smoothing = smoothing
        self._min_db = min_decibels
        self._db_scale = MAX_MAGNITUDE / (max_decibels - min_decibels)
        self._window_fn = np.blackman(fft_size).astype(np.float64)
        self._window: np.ndarray = np.zeros(fft_size, dtype=np.float32)
        self._active = False
        self._halt_generation = 0
        self._smoothed_generation = 0
        self._smoothed = np.zeros(self._bin_count, dtype=np.float64)

    @property
    def fft_size(self) -> int:
        return self._fft_size

    @property
    def bin_count(self) -> int:
        return self._bin_count

    @property
    def smoothing(self) -> float:
        return self._smoothing

    @property
    def active(self) -> bool:
        return self._active

    def activate(self) -> None:
        """Mark signal as flowing; snapshots start reflecting written blocks."""
        self._window = np.zeros(self._fft_size, dtype=np.float32)
        self._active = True

    def deactivate(self) -> None:
        """Mark signal as halted; snapshots become all-quiet."""
        self._active = False
        self._window = np.zeros(self._fft_size, dtype=np.float32)
        self._halt_generation += 1

    def write(self, block: np.ndarray) -> None:
        """Append mono samples from the audio timeline."""
        samples = np.asarray(block, dtype=np.float32).reshape(-1)
        if samples.size == 0:
            return
        if samples.size >= self._fft_size:
            window = samples[-self._fft_size :].copy()
        else:
            window = np.concatenate((self._window[samples.size :], samples))
        self._window = window

    def snapshot_frequency(self) -> np.ndarray:
        """Return smoothed magnitudes scaled to [0, MAX_MAGNITUDE]."""
        generation = self._halt_generation
        if generation != self._smoothed_generation:
            self._smoothed = np.zeros(self._bin_count, dtype=np.float64)
            self._smoothed_generation = generation
        if not self._active:
            return np.zeros(self._bin_count, dtype=np.float64)
        window = self._window
        spectrum = np.fft.rfft(window.astype(np.float64) * self._window_fn)
        magnitudes = np.abs(spectrum[: self._bin_count]) / self._fft_size
        tau = self._smoothing
        self._smoothed = tau * self._smoothed + (1.0 - tau) * magnitudes
        with np.errstate(divide="ignore"):
            decibels = 20.0 * np.log10(self._smoothed)
        scaled = (decibels - self._min_db) * self._db_scale
        return np.clip(np.nan_to_num(scaled, neginf=0.0), 0.0, MAX_MAGNITUDE)

    def snapshot_time_domain(self) -> np.ndarray:
        """Return the most recent `bin_count` samples in [-1, 1]."""
        if not self._active:
            return np.zeros(self._bin_count, dtype=np.float64)
        window = self._window
        recent = window[-self._bin_count :].astype(np.float64)
        return np.clip(recent, -1.0, 1.0)

    def snapshot(self) -> AnalysisFrame:
        return AnalysisFrame(
            frequency=self.snapshot_frequency(),
            time_domain=self.snapshot_time_domain(),
        )
