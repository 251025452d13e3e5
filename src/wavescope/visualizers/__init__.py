"""Visualization subsystem: draw commands, pipeline, raster and frame loop."""

from .base import (
    DrawCommand,
    FillCircle,
    FillRect,
    RasterSurface,
    Restore,
    Rgba,
    Save,
    StrokePath,
    Translate,
    ViewportGeometry,
)
from .pipeline import VisualizationPipeline
from .raster import PixelSurface
from .render_loop import RenderLoop

__all__ = [
    "DrawCommand",
    "FillCircle",
    "FillRect",
    "PixelSurface",
    "RasterSurface",
    "RenderLoop",
    "Restore",
    "Rgba",
    "Save",
    "StrokePath",
    "Translate",
    "ViewportGeometry",
    "VisualizationPipeline",
]
