"""
Drawing Surface Contract
========================
The renderer only talks to this protocol. The Qt implementation lives in
`geoview.view.widgets.painter_surface`; tests use a recording double.

All coordinates are logical pixels. Colours are CSS-like strings
("#333333" or "rgba(r, g, b, a)").
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, Sequence

Point2D = tuple[float, float]


@dataclass(frozen=True)
class RadialGradient:
    """Two-circle radial gradient, same parameters as canvas createRadialGradient."""
    x0: float
    y0: float
    r0: float
    x1: float
    y1: float
    r1: float
    stops: tuple[tuple[float, str], ...]


class Surface(Protocol):
    def clear(self, width: float, height: float, device_pixel_ratio: float, background: str | None) -> None:
        """Reset to (width * dpr) x (height * dpr) physical pixels, then scale to logical units."""
        ...

    def fill_polygon(self, points: Sequence[Point2D], fill: str, stroke: str, line_width: float) -> None: ...

    def fill_circle(self, center: Point2D, radius: float, fill: str | RadialGradient) -> None: ...

    def stroke_line(self, start: Point2D, end: Point2D, color: str, line_width: float) -> None: ...

    def stroke_polyline(self, points: Sequence[Point2D], color: str, line_width: float) -> None: ...

    def text_size(self, text: str) -> tuple[float, float]: ...

    def draw_label(self, rect: tuple[float, float, float, float], text: str, color: str, background: str) -> None: ...
