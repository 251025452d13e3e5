"""Geometry, colors and draw commands passed from the pipeline to a surface.

Commands are plain frozen dataclasses so a frame can be inspected in tests
and replayed onto any raster that implements `RasterSurface`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, Union


@dataclass(frozen=True)
class ViewportGeometry:
    """Drawing surface size in pixels."""

    width: int
    height: int

    def __post_init__(self) -> None:
        if self.width < 1 or self.height < 1:
            raise ValueError(
                f"viewport must be positive, got {self.width}x{self.height}"
            )


@dataclass(frozen=True)
class Rgba:
    r: int
    g: int
    b: int
    a: float = 1.0

    @classmethod
    def clamped(cls, r: float, g: float, b: float, a: float = 1.0) -> Rgba:
        """Build a color the way a canvas would, clamping out-of-range channels."""
        return cls(
            _channel(r),
            _channel(g),
            _channel(b),
            max(0.0, min(float(a), 1.0)),
        )

    @classmethod
    def from_hex(cls, value: str, alpha: float = 1.0) -> Rgba:
        digits = value.lstrip("#")
        if len(digits) != 6:
            raise ValueError(f"expected #rrggbb, got {value!r}")
        return cls(
            int(digits[0:2], 16), int(digits[2:4], 16), int(digits[4:6], 16), alpha
        )


def _channel(value: float) -> int:
    return int(round(max(0.0, min(float(value), 255.0))))


@dataclass(frozen=True)
class FillRect:
    x: float
    y: float
    width: float
    height: float
    color: Rgba


@dataclass(frozen=True)
class StrokePath:
    """Connected polyline; closed paths repeat their first point at the end."""

    points: tuple[tuple[float, float], ...]
    color: Rgba
    line_width: float
    closed: bool = False


@dataclass(frozen=True)
class FillCircle:
    cx: float
    cy: float
    radius: float
    color: Rgba


@dataclass(frozen=True)
class Translate:
    dx: float
    dy: float


@dataclass(frozen=True)
class Save:
    pass


@dataclass(frozen=True)
class Restore:
    pass


DrawCommand = Union[FillRect, StrokePath, FillCircle, Translate, Save, Restore]


class RasterSurface(Protocol):
    """Anything that can execute a frame's draw commands."""

    @property
    def geometry(self) -> ViewportGeometry: ...

    def resize(self, geometry: ViewportGeometry) -> None: ...

    def apply(self, commands: list[DrawCommand]) -> None: ...
