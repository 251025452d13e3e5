"""Widget hosting the scope raster inside the Textual layout."""

from __future__ import annotations

from textual import events
from textual.widgets import Static

from wavescope.events import ScopeResized
from wavescope.visualizers.base import RasterSurface, ViewportGeometry
from wavescope.visualizers.raster import PixelSurface

# Raster pixels per terminal cell column, and per half-cell row.
PIXELS_PER_COLUMN = 8
PIXELS_PER_HALF_ROW = 8


def geometry_for_cells(columns: int, rows: int) -> ViewportGeometry:
    """Map a widget's cell size to raster pixels (two half-rows per cell)."""
    return ViewportGeometry(
        max(1, columns) * PIXELS_PER_COLUMN,
        max(1, rows) * 2 * PIXELS_PER_HALF_ROW,
    )


class ScopeView(Static):
    DEFAULT_CSS = """
    ScopeView {
        height: 1fr;
        width: 1fr;
    }
    """

    def on_resize(self, event: events.Resize) -> None:
        geometry = geometry_for_cells(event.size.width, event.size.height)
        self.post_message(ScopeResized(geometry.width, geometry.height))

    def show(self, surface: RasterSurface) -> None:
        if not isinstance(surface, PixelSurface):
            raise TypeError("ScopeView can only display a PixelSurface")
        self.update(surface.to_text(self.size.width, self.size.height))
