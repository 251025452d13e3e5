"""Tests for runtime config normalization and precedence."""

from __future__ import annotations

import math

from wavescope.cli import build_parser
from wavescope.runtime_config import (
    DEFAULT_FFT_SIZE,
    DEFAULT_SMOOTHING,
    clamp_fps,
    normalize_fft_size,
    normalize_output_backend,
    normalize_smoothing,
    resolve_log_level,
)


def test_resolve_log_level_precedence_matrix() -> None:
    assert resolve_log_level(verbose=False, quiet=False) == "INFO"
    assert resolve_log_level(verbose=True, quiet=False) == "DEBUG"
    assert resolve_log_level(verbose=False, quiet=True) == "WARNING"
    assert resolve_log_level(verbose=True, quiet=True) == "WARNING"


def test_parser_and_log_resolution_consistent() -> None:
    args = build_parser().parse_args(["--output", "fake", "--verbose", "--quiet"])
    assert args.output == "fake"
    assert resolve_log_level(verbose=args.verbose, quiet=args.quiet) == "WARNING"


def test_output_backend_normalization() -> None:
    assert normalize_output_backend(" FAKE ") == "fake"
    assert normalize_output_backend("sounddevice") == "sounddevice"
    assert normalize_output_backend("alsa") == "sounddevice"
    assert normalize_output_backend(None) == "sounddevice"


def test_fps_clamp() -> None:
    assert clamp_fps(1) == 2
    assert clamp_fps(30) == 30
    assert clamp_fps(240) == 60


def test_fft_size_rounds_to_power_of_two() -> None:
    assert normalize_fft_size(2048) == 2048
    assert normalize_fft_size(1000) == 1024
    assert normalize_fft_size(3000) == 4096
    assert normalize_fft_size(8) == 32
    assert normalize_fft_size(1 << 20) == 32_768
    assert normalize_fft_size(0) == DEFAULT_FFT_SIZE


def test_smoothing_normalization() -> None:
    assert normalize_smoothing(0.5) == 0.5
    assert normalize_smoothing(-1.0) == 0.0
    assert normalize_smoothing(1.0) == 0.99
    assert normalize_smoothing(math.nan) == DEFAULT_SMOOTHING
