"""Numpy pixel raster that executes draw commands and renders to terminal cells.

The surface keeps an RGB float buffer and alpha-composites every command onto
it, so a translucent full-surface fill decays earlier frames into trails.
`to_text()` box-averages the buffer down to half-block cells: each terminal
cell shows two stacked pixels via the upper-half-block glyph.
"""

from __future__ import annotations

import math

import numpy as np
from rich.color import Color
from rich.style import Style
from rich.text import Text

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

UPPER_HALF_BLOCK = "▀"
BACKGROUND = Rgba(10, 10, 18)


class PixelSurface:
    """Alpha-compositing raster of `ViewportGeometry` size."""

    def __init__(
        self, geometry: ViewportGeometry, *, background: Rgba = BACKGROUND
    ) -> None:
        self._background = np.array(
            [background.r, background.g, background.b], dtype=np.float32
        )
        self._geometry = geometry
        self._pixels = self._blank(geometry)
        self._offset = (0.0, 0.0)
        self._saved: list[tuple[float, float]] = []
        self._style_cache: dict[tuple[int, ...], Style] = {}

    @property
    def geometry(self) -> ViewportGeometry:
        return self._geometry

    @property
    def pixels(self) -> np.ndarray:
        """Read-only view of the ``(height, width, 3)`` buffer."""
        view = self._pixels.view()
        view.setflags(write=False)
        return view

    def resize(self, geometry: ViewportGeometry) -> None:
        if geometry == self._geometry:
            return
        self._geometry = geometry
        self._pixels = self._blank(geometry)

    def apply(self, commands: list[DrawCommand]) -> None:
        self._offset = (0.0, 0.0)
        self._saved.clear()
        for command in commands:
            if isinstance(command, FillRect):
                self._fill_rect(command)
            elif isinstance(command, StrokePath):
                self._stroke(command)
            elif isinstance(command, FillCircle):
                self._fill_circle(command)
            elif isinstance(command, Translate):
                self._offset = (
                    self._offset[0] + command.dx,
                    self._offset[1] + command.dy,
                )
            elif isinstance(command, Save):
                self._saved.append(self._offset)
            elif isinstance(command, Restore):
                if self._saved:
                    self._offset = self._saved.pop()
            else:
                raise TypeError(f"Unsupported draw command: {command!r}")

    def to_text(self, columns: int, rows: int) -> Text:
        """Downsample to ``columns x rows`` half-block cells."""
        columns = max(1, columns)
        rows = max(1, rows)
        cells = _box_downsample(self._pixels, rows * 2, columns)
        cells = np.clip(np.rint(cells), 0, 255).astype(np.uint8)
        text = Text(no_wrap=True, overflow="crop")
        for row in range(rows):
            top = cells[row * 2]
            bottom = cells[row * 2 + 1]
            for column in range(columns):
                key = (*top[column].tolist(), *bottom[column].tolist())
                text.append(UPPER_HALF_BLOCK, self._style(key))
            if row < rows - 1:
                text.append("\n")
        return text

    def _style(self, key: tuple[int, ...]) -> Style:
        style = self._style_cache.get(key)
        if style is None:
            if len(self._style_cache) > 4096:
                self._style_cache.clear()
            style = Style(
                color=Color.from_rgb(key[0], key[1], key[2]),
                bgcolor=Color.from_rgb(key[3], key[4], key[5]),
            )
            self._style_cache[key] = style
        return style

    def _blank(self, geometry: ViewportGeometry) -> np.ndarray:
        pixels = np.empty((geometry.height, geometry.width, 3), dtype=np.float32)
        pixels[:] = self._background
        return pixels

    def _blend(self, region: np.ndarray | tuple, color: Rgba) -> None:
        if color.a <= 0.0:
            return
        rgb = np.array([color.r, color.g, color.b], dtype=np.float32)
        if color.a >= 1.0:
            self._pixels[region] = rgb
            return
        current = self._pixels[region]
        self._pixels[region] = current + (rgb - current) * np.float32(color.a)

    def _fill_rect(self, command: FillRect) -> None:
        if command.width <= 0 or command.height <= 0:
            return
        ox, oy = self._offset
        height, width = self._pixels.shape[:2]
        x0 = int(math.floor(command.x + ox))
        y0 = int(math.floor(command.y + oy))
        x1 = max(x0 + 1, int(math.ceil(command.x + ox + command.width)))
        y1 = max(y0 + 1, int(math.ceil(command.y + oy + command.height)))
        x0, x1 = max(0, x0), min(width, x1)
        y0, y1 = max(0, y0), min(height, y1)
        if x0 >= x1 or y0 >= y1:
            return
        self._blend((slice(y0, y1), slice(x0, x1)), command.color)

    def _stroke(self, command: StrokePath) -> None:
        if len(command.points) < 2:
            return
        ox, oy = self._offset
        points = np.asarray(command.points, dtype=np.float64) + (ox, oy)
        starts, ends = points[:-1], points[1:]
        lengths = np.ceil(np.abs(ends - starts).max(axis=1)).astype(np.int64) + 1
        xs = np.concatenate(
            [np.linspace(s[0], e[0], n) for s, e, n in zip(starts, ends, lengths)]
        )
        ys = np.concatenate(
            [np.linspace(s[1], e[1], n) for s, e, n in zip(starts, ends, lengths)]
        )
        height, width = self._pixels.shape[:2]
        mask = np.zeros((height, width), dtype=bool)
        reach = max(0, int(round(command.line_width)) // 2)
        for dy in range(-reach, reach + 1):
            for dx in range(-reach, reach + 1):
                px = np.rint(xs + dx).astype(np.int64)
                py = np.rint(ys + dy).astype(np.int64)
                inside = (px >= 0) & (px < width) & (py >= 0) & (py < height)
                mask[py[inside], px[inside]] = True
        if mask.any():
            self._blend(mask, command.color)

    def _fill_circle(self, command: FillCircle) -> None:
        if command.radius <= 0:
            return
        ox, oy = self._offset
        cx, cy = command.cx + ox, command.cy + oy
        height, width = self._pixels.shape[:2]
        x0 = max(0, int(math.floor(cx - command.radius)))
        x1 = min(width, int(math.ceil(cx + command.radius)) + 1)
        y0 = max(0, int(math.floor(cy - command.radius)))
        y1 = min(height, int(math.ceil(cy + command.radius)) + 1)
        if x0 >= x1 or y0 >= y1:
            return
        yy, xx = np.ogrid[y0:y1, x0:x1]
        inside = (xx + 0.5 - cx) ** 2 + (yy + 0.5 - cy) ** 2 <= command.radius**2
        if not inside.any():
            return
        mask = np.zeros((height, width), dtype=bool)
        mask[y0:y1, x0:x1] = inside
        self._blend(mask, command.color)


def _box_downsample(pixels: np.ndarray, out_rows: int, out_columns: int) -> np.ndarray:
    """Average pixel blocks into an ``(out_rows, out_columns, 3)`` grid."""
    height, width = pixels.shape[:2]
    row_edges = np.linspace(0, height, out_rows + 1).astype(np.int64)
    column_edges = np.linspace(0, width, out_columns + 1).astype(np.int64)
    # Prefix sums make every block mean O(1) regardless of block size.
    summed = np.zeros((height + 1, width + 1, 3), dtype=np.float64)
    summed[1:, 1:] = pixels.cumsum(axis=0).cumsum(axis=1)
    r0 = np.minimum(row_edges[:-1], height - 1)
    r1 = np.maximum(row_edges[1:], r0 + 1)
    c0 = np.minimum(column_edges[:-1], width - 1)
    c1 = np.maximum(column_edges[1:], c0 + 1)
    total = (
        summed[r1][:, c1]
        - summed[r0][:, c1]
        - summed[r1][:, c0]
        + summed[r0][:, c0]
    )
    area = ((r1 - r0)[:, None] * (c1 - c0)[None, :]).astype(np.float64)
    return total / area[:, :, None]
