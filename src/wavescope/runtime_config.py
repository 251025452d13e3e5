"""Runtime configuration normalization helpers.

These keep CLI flags and persisted settings interpreted the same way before
they reach the audio and render layers.
"""

from __future__ import annotations

import math

OUTPUT_BACKENDS = ("sounddevice", "fake")
FPS_MIN = 2
FPS_MAX = 60
DEFAULT_FPS = 30
FFT_SIZE_MIN = 32
FFT_SIZE_MAX = 32_768
DEFAULT_FFT_SIZE = 2048
DEFAULT_SMOOTHING = 0.85


def resolve_log_level(*, verbose: bool, quiet: bool) -> str:
    """Resolve effective log level from CLI flags.

    Precedence is deterministic: --quiet overrides --verbose.
    """
    if quiet:
        return "WARNING"
    if verbose:
        return "DEBUG"
    return "INFO"


def normalize_output_backend(value: str | None) -> str:
    if value is None:
        return "sounddevice"
    normalized = value.strip().lower()
    if normalized in OUTPUT_BACKENDS:
        return normalized
    return "sounddevice"


def clamp_fps(value: int) -> int:
    return max(FPS_MIN, min(int(value), FPS_MAX))


def normalize_fft_size(value: int) -> int:
    """Round to the nearest power of two inside the supported window range."""
    if value <= 0:
        return DEFAULT_FFT_SIZE
    exponent = round(math.log2(value))
    size = 1 << int(exponent)
    return max(FFT_SIZE_MIN, min(size, FFT_SIZE_MAX))


def normalize_smoothing(value: float) -> float:
    if not math.isfinite(value):
        return DEFAULT_SMOOTHING
    return max(0.0, min(float(value), 0.99))
