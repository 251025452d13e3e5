"""JSON persistence for user settings.

Only presentation and output preferences are stored; playback position is
never written. The store tolerates invalid or missing values so a corrupt
file degrades to defaults instead of aborting startup.
"""

from __future__ import annotations

import json
import logging
import math
import time
from contextlib import suppress
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any
from uuid import uuid4

from .runtime_config import (
    DEFAULT_FFT_SIZE,
    DEFAULT_FPS,
    DEFAULT_SMOOTHING,
    clamp_fps,
    normalize_fft_size,
    normalize_output_backend,
    normalize_smoothing,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AppSettings:
    """Persisted settings loaded at startup and updated from the UI."""

    output_backend: str = "sounddevice"
    visualizer_fps: int = DEFAULT_FPS
    fft_size: int = DEFAULT_FFT_SIZE
    smoothing: float = DEFAULT_SMOOTHING
    volume: float = 1.0
    autoplay: bool = False
    last_directory: str | None = None


def _coerce_settings(data: dict[str, Any]) -> AppSettings:
    def _int_or_default(value: Any, default: int) -> int:
        if isinstance(value, bool) or not isinstance(value, int):
            return default
        return value

    def _float_or_default(value: Any, default: float) -> float:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return default
        normalized = float(value)
        return normalized if math.isfinite(normalized) else default

    def _str_or_default(value: Any, default: str) -> str:
        return value if isinstance(value, str) else default

    last_directory = data.get("last_directory")
    return AppSettings(
        output_backend=normalize_output_backend(
            _str_or_default(data.get("output_backend"), "sounddevice")
        ),
        visualizer_fps=clamp_fps(
            _int_or_default(data.get("visualizer_fps"), DEFAULT_FPS)
        ),
        fft_size=normalize_fft_size(
            _int_or_default(data.get("fft_size"), DEFAULT_FFT_SIZE)
        ),
        smoothing=normalize_smoothing(
            _float_or_default(data.get("smoothing"), DEFAULT_SMOOTHING)
        ),
        volume=max(0.0, min(_float_or_default(data.get("volume"), 1.0), 1.0)),
        autoplay=data.get("autoplay") is True,
        last_directory=last_directory if isinstance(last_directory, str) else None,
    )


def load_settings_with_notice(path: Path) -> tuple[AppSettings, str | None]:
    """Load settings and return an optional user-facing notice."""
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        logger.info("Settings file missing at %s; using defaults.", path)
        return AppSettings(), None
    except OSError as exc:
        logger.warning("Failed to read settings %s: %s; using defaults.", path, exc)
        return (
            AppSettings(),
            "Settings were reset to defaults.\n"
            "Likely cause: settings file is unreadable.\n"
            f"Next step: verify access to '{path}' and restart.",
        )

    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("Settings file at %s is invalid JSON; using defaults.", path)
        return (
            AppSettings(),
            "Settings were reset to defaults.\n"
            "Likely cause: settings file is corrupt or partially written.\n"
            f"Next step: remove or repair '{path}' and restart.",
        )

    if not isinstance(data, dict):
        logger.warning("Settings file at %s is not a JSON object.", path)
        return (
            AppSettings(),
            "Settings were reset to defaults.\n"
            "Likely cause: settings file format is invalid.\n"
            f"Next step: remove '{path}' and restart.",
        )
    return _coerce_settings(data), None


def load_settings(path: Path) -> AppSettings:
    settings, _notice = load_settings_with_notice(path)
    return settings


def save_settings(path: Path, settings: AppSettings) -> None:
    """Persist settings atomically via write-then-replace."""
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_name(f"{path.name}.{uuid4().hex}.tmp")
    payload = json.dumps(asdict(settings), indent=2, sort_keys=True)
    delay_s = 0.02
    try:
        for attempt in range(4):
            tmp_path.write_text(payload, encoding="utf-8")
            try:
                tmp_path.replace(path)
                return
            except OSError as exc:
                # Windows can hold the target open briefly (AV scanners, indexers).
                if getattr(exc, "winerror", None) not in {5, 32} or attempt >= 3:
                    raise
                time.sleep(delay_s)
                delay_s = min(0.25, delay_s * 2.0)
    finally:
        with suppress(OSError):
            tmp_path.unlink()
