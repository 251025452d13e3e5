"""Time formatting helpers for the status line."""

from __future__ import annotations

import math


def format_seconds(seconds: float, *, force_hours: bool = False) -> str:
    """Format seconds as MM:SS, or H:MM:SS when needed."""
    total = _coerce_seconds(seconds)
    hours = total // 3600
    if hours > 0 or force_hours:
        return f"{hours}:{(total // 60) % 60:02d}:{total % 60:02d}"
    return f"{total // 60:02d}:{total % 60:02d}"


def format_position(position_s: float, duration_s: float | None) -> str:
    """Format `position / duration` with consistent width."""
    hours_mode = _coerce_seconds(position_s) >= 3600 or (
        duration_s is not None and _coerce_seconds(duration_s) >= 3600
    )
    position = format_seconds(position_s, force_hours=hours_mode)
    if duration_s is None or duration_s <= 0:
        return f"{position} / {'--:--:--' if hours_mode else '--:--'}"
    return f"{position} / {format_seconds(duration_s, force_hours=hours_mode)}"


def _coerce_seconds(value: float) -> int:
    try:
        numeric = float(value)
    except (TypeError, ValueError):
        return 0
    if not math.isfinite(numeric):
        return 0
    return max(0, int(numeric))
