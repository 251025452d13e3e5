"""Per-frame projection of analysis snapshots into draw commands.

Each frame is five layered passes: a translucent trail fade, the bar
spectrum, the centered waveform, the closed polar plot and a loudness glow
at the center. All passes run every frame; a quiet snapshot simply draws a
flat baseline.
"""

from __future__ import annotations

import math

import numpy as np

from wavescope.services.analysis_tap import MAX_MAGNITUDE, AnalysisTap

from .base import (
    DrawCommand,
    FillCircle,
    FillRect,
    Restore,
    Rgba,
    Save,
    StrokePath,
    Translate,
    ViewportGeometry,
)

TRAIL_COLOR = Rgba(10, 10, 18, 0.3)
WAVEFORM_COLOR = Rgba.from_hex("#00ffcc")
POLAR_COLOR = Rgba(255, 0, 191, 0.8)

BAR_WIDTH_FACTOR = 2.5
BAR_HEIGHT_SCALE = 1.5
BAR_GUTTER = 1.0
WAVEFORM_LINE_WIDTH = 3.0
POLAR_LINE_WIDTH = 2.0
POLAR_RADIUS_DIVISOR = 3.5
POLAR_AMPLITUDE_PX = 100.0
GLOW_RADIUS_SCALE = 0.5


class VisualizationPipeline:
    """Builds one frame of draw commands from the tap's current snapshot.

    Time-domain samples are normalized as ``(sample - zero_level) / scale``;
    the defaults match the tap's float output centered on zero.
    """

    def __init__(
        self,
        tap: AnalysisTap,
        *,
        zero_level: float = 0.0,
        scale: float = 1.0,
        max_energy: float = MAX_MAGNITUDE,
    ) -> None:
        if scale == 0:
            raise ValueError("scale must be non-zero")
        if max_energy <= 0:
            raise ValueError("max_energy must be positive")
        self._tap = tap
        self._zero_level = zero_level
        self._scale = scale
        self._max_energy = max_energy

    @property
    def bin_count(self) -> int:
        return self._tap.bin_count

    def render(self, geometry: ViewportGeometry) -> list[DrawCommand]:
        """Pull fresh snapshots from the tap and build the frame."""
        frame = self._tap.snapshot()
        return self.build_frame(geometry, frame.frequency, frame.time_domain)

    def build_frame(
        self,
        geometry: ViewportGeometry,
        frequency: np.ndarray,
        time_domain: np.ndarray,
    ) -> list[DrawCommand]:
        freq = np.asarray(frequency, dtype=np.float64)
        samples = np.asarray(time_domain, dtype=np.float64)
        if freq.size == 0 or freq.size != samples.size:
            raise ValueError(
                f"snapshot lengths must match and be non-empty "
                f"({freq.size} vs {samples.size})"
            )
        normalized = (samples - self._zero_level) / self._scale

        commands: list[DrawCommand] = [
            FillRect(0.0, 0.0, float(geometry.width), float(geometry.height), TRAIL_COLOR)
        ]
        commands.extend(self._bar_spectrum(geometry, freq))
        commands.append(self._waveform(geometry, normalized))
        commands.append(Save())
        commands.append(Translate(geometry.width / 2, geometry.height / 2))
        commands.append(self._polar(geometry, normalized))
        commands.append(self._glow(freq))
        commands.append(Restore())
        return commands

    def _bar_spectrum(
        self, geometry: ViewportGeometry, freq: np.ndarray
    ) -> list[FillRect]:
        count = freq.size
        width = float(geometry.width)
        height = float(geometry.height)
        bar_width = (width / count) * BAR_WIDTH_FACTOR
        bars: list[FillRect] = []
        x = 0.0
        for index, magnitude in enumerate(freq.tolist()):
            raw_height = magnitude * BAR_HEIGHT_SCALE
            # Only the drawn rect is clipped to the viewport; color uses the raw height.
            bar_height = min(raw_height, height)
            ratio = index / count
            color = Rgba.clamped(raw_height + 25 * ratio, 250 * ratio, 50)
            bars.append(
                FillRect(x, height - bar_height, bar_width, bar_height, color)
            )
            x += bar_width + BAR_GUTTER
        return bars

    def _waveform(
        self, geometry: ViewportGeometry, normalized: np.ndarray
    ) -> StrokePath:
        count = normalized.size
        slice_width = geometry.width / count
        mid = geometry.height / 2
        amplitude = geometry.height / 3
        points = tuple(
            (index * slice_width, mid + value * amplitude)
            for index, value in enumerate(normalized.tolist())
        )
        return StrokePath(points, WAVEFORM_COLOR, WAVEFORM_LINE_WIDTH, closed=False)

    def _polar(self, geometry: ViewportGeometry, normalized: np.ndarray) -> StrokePath:
        count = normalized.size
        base_radius = min(geometry.width, geometry.height) / POLAR_RADIUS_DIVISOR
        angles = np.arange(count, dtype=np.float64) / count * 2 * math.pi
        radii = base_radius + normalized * POLAR_AMPLITUDE_PX
        xs = (radii * np.cos(angles)).tolist()
        ys = (radii * np.sin(angles)).tolist()
        points = list(zip(xs, ys))
        points.append(points[0])
        return StrokePath(tuple(points), POLAR_COLOR, POLAR_LINE_WIDTH, closed=True)

    def _glow(self, freq: np.ndarray) -> FillCircle:
        average = float(freq.mean())
        opacity = average / self._max_energy
        return FillCircle(
            0.0,
            0.0,
            max(0.0, average * GLOW_RADIUS_SCALE),
            Rgba.clamped(255, 255, 255, opacity),
        )
