"""Tests for the numpy pixel surface and its half-block text output."""

from __future__ import annotations

import numpy as np
import pytest

from wavescope.visualizers import (
    FillCircle,
    FillRect,
    PixelSurface,
    Restore,
    Rgba,
    Save,
    StrokePath,
    Translate,
    ViewportGeometry,
)
from wavescope.visualizers.raster import UPPER_HALF_BLOCK

BLACK = Rgba(0, 0, 0)
WHITE = Rgba(255, 255, 255)


def _surface(width: int = 10, height: int = 10) -> PixelSurface:
    return PixelSurface(ViewportGeometry(width, height), background=BLACK)


def test_opaque_fill_rect_is_clipped_to_surface() -> None:
    surface = _surface()
    surface.apply([FillRect(-5, 8, 8, 10, WHITE)])
    pixels = surface.pixels

    assert pixels[8:, :3].min() == 255
    assert pixels[:8].max() == 0
    assert pixels[:, 3:].max() == 0


def test_translucent_fill_blends_toward_color() -> None:
    surface = _surface()
    surface.apply([FillRect(0, 0, 10, 10, WHITE)])
    surface.apply([FillRect(0, 0, 10, 10, Rgba(0, 0, 0, 0.3))])

    assert surface.pixels[0, 0].tolist() == pytest.approx([178.5] * 3)


def test_repeated_trail_fill_decays_previous_frames() -> None:
    surface = _surface()
    surface.apply([FillRect(0, 0, 10, 10, WHITE)])
    for _ in range(20):
        surface.apply([FillRect(0, 0, 10, 10, Rgba(0, 0, 0, 0.3))])
    assert surface.pixels.max() < 1.0


def test_stroke_marks_pixels_along_path() -> None:
    surface = _surface()
    surface.apply([StrokePath(((0, 5), (9, 5)), WHITE, 1.0)])
    pixels = surface.pixels

    assert pixels[5, :, 0].tolist() == [255.0] * 10
    assert pixels[4].max() == 0
    assert pixels[6].max() == 0


def test_wide_stroke_covers_neighbor_rows() -> None:
    surface = _surface()
    surface.apply([StrokePath(((0, 5), (9, 5)), WHITE, 3.0)])
    pixels = surface.pixels

    assert pixels[4:7, :, 0].min() == 255
    assert pixels[3].max() == 0


def test_translate_save_restore_offsets_drawing() -> None:
    surface = _surface()
    surface.apply(
        [
            Save(),
            Translate(5, 5),
            FillRect(0, 0, 1, 1, WHITE),
            Restore(),
            FillRect(0, 0, 1, 1, Rgba(255, 0, 0)),
        ]
    )
    pixels = surface.pixels

    assert pixels[5, 5].tolist() == [255.0, 255.0, 255.0]
    assert pixels[0, 0].tolist() == [255.0, 0.0, 0.0]


def test_fill_circle_respects_radius() -> None:
    surface = _surface(20, 20)
    surface.apply([Translate(10, 10), FillCircle(0, 0, 4, WHITE)])
    pixels = surface.pixels

    assert pixels[10, 10, 0] == 255
    assert pixels[10, 13, 0] == 255
    assert pixels[10, 16, 0] == 0
    assert pixels[0, 0, 0] == 0


def test_zero_sized_shapes_draw_nothing() -> None:
    surface = _surface()
    surface.apply(
        [
            FillRect(2, 2, 0, 5, WHITE),
            FillCircle(5, 5, 0, WHITE),
            StrokePath(((1, 1),), WHITE, 3.0),
        ]
    )
    assert surface.pixels.max() == 0


def test_unknown_command_is_rejected() -> None:
    surface = _surface()
    with pytest.raises(TypeError):
        surface.apply(["not a command"])  # type: ignore[list-item]


def test_resize_resets_buffer_only_when_geometry_changes() -> None:
    surface = _surface()
    surface.apply([FillRect(0, 0, 10, 10, WHITE)])

    surface.resize(ViewportGeometry(10, 10))
    assert surface.pixels.max() == 255

    surface.resize(ViewportGeometry(4, 6))
    assert surface.geometry == ViewportGeometry(4, 6)
    assert surface.pixels.shape == (6, 4, 3)
    assert surface.pixels.max() == 0


def test_pixels_view_is_read_only() -> None:
    surface = _surface()
    with pytest.raises(ValueError):
        surface.pixels[0, 0, 0] = 1.0


def test_to_text_renders_half_blocks_with_colors() -> None:
    surface = _surface(4, 4)
    surface.apply([FillRect(0, 0, 4, 2, WHITE)])

    text = surface.to_text(2, 1)

    assert text.plain == UPPER_HALF_BLOCK * 2
    style = text.spans[0].style
    assert style.color.get_truecolor() == (255, 255, 255)
    assert style.bgcolor.get_truecolor() == (0, 0, 0)


def test_to_text_averages_blocks_and_emits_rows() -> None:
    surface = _surface(4, 8)
    surface.apply([FillRect(0, 0, 2, 8, WHITE)])

    text = surface.to_text(1, 2)

    assert text.plain == f"{UPPER_HALF_BLOCK}\n{UPPER_HALF_BLOCK}"
    style = text.spans[0].style
    assert style.color.get_truecolor() == (128, 128, 128)


def test_to_text_handles_more_cells_than_pixels() -> None:
    surface = _surface(2, 2)
    text = surface.to_text(5, 3)
    lines = text.plain.split("\n")
    assert len(lines) == 3
    assert all(len(line) == 5 for line in lines)
    assert np.isfinite(surface.pixels).all()
