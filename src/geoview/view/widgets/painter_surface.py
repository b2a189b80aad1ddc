"""
QPainter implementation of the renderer's Surface protocol.

The scene is painted into an offscreen QImage at physical resolution
(logical size x device pixel ratio). The painter is then scaled so the
renderer keeps working in logical pixels.
"""
from __future__ import annotations

import re
from typing import Optional, Sequence

from PySide6.QtCore import QPointF, QRectF, Qt
from PySide6.QtGui import (
    QBrush, QColor, QFont, QFontMetricsF, QImage, QPainter, QPen, QPolygonF, QRadialGradient
)

from geoview.render.surface import Point2D, RadialGradient

_RGBA_RE = re.compile(
    r"^rgba?\(\s*([\d.]+)\s*,\s*([\d.]+)\s*,\s*([\d.]+)\s*(?:,\s*([\d.]+)\s*)?\)$", re.IGNORECASE
)


def parse_color(text: str) -> QColor:
    """Convert '#rrggbb' or 'rgba(r, g, b, a)' to a QColor."""
    match = _RGBA_RE.match(text.strip())
    if match:
        r, g, b, a = match.groups()
        alpha = float(a) if a is not None else 1.0
        return QColor(int(float(r)), int(float(g)), int(float(b)), int(round(alpha * 255)))
    color = QColor(text)
    if not color.isValid():
        raise ValueError(f"Unrecognised colour: {text!r}")
    return color


class PainterSurface:
    def __init__(self, font: Optional[QFont] = None) -> None:
        self.image: Optional[QImage] = None
        self.painter: Optional[QPainter] = None
        self.device_pixel_ratio: float = 1.0
        self._font = font or QFont()
        self._font.setPointSizeF(9.0)

    # ------------------------------------------------------------------------------
    # Frame lifecycle
    # ------------------------------------------------------------------------------

    def clear(self, width: float, height: float, device_pixel_ratio: float, background: Optional[str]) -> None:
        self.finish()
        self.device_pixel_ratio = device_pixel_ratio
        physical_w = max(1, int(round(width * device_pixel_ratio)))
        physical_h = max(1, int(round(height * device_pixel_ratio)))

        self.image = QImage(physical_w, physical_h, QImage.Format.Format_ARGB32_Premultiplied)
        self.image.fill(parse_color(background) if background else QColor(Qt.GlobalColor.transparent))

        self.painter = QPainter(self.image)
        self.painter.setRenderHint(QPainter.RenderHint.Antialiasing)
        self.painter.setFont(self._font)
        self.painter.scale(device_pixel_ratio, device_pixel_ratio)

    def finish(self) -> Optional[QImage]:
        """End painting and return the frame, tagged with its device pixel ratio."""
        if self.painter is not None:
            self.painter.end()
            self.painter = None
            if self.image is not None:
                self.image.setDevicePixelRatio(self.device_pixel_ratio)
        return self.image

    def discard(self) -> None:
        self.finish()
        self.image = None

    # ------------------------------------------------------------------------------
    # Primitives
    # ------------------------------------------------------------------------------

    def _pen(self, color: str, line_width: float) -> QPen:
        pen = QPen(parse_color(color))
        pen.setWidthF(line_width)
        pen.setCapStyle(Qt.PenCapStyle.RoundCap)
        pen.setJoinStyle(Qt.PenJoinStyle.RoundJoin)
        return pen

    @staticmethod
    def _polygon(points: Sequence[Point2D]) -> QPolygonF:
        return QPolygonF([QPointF(x, y) for x, y in points])

    def fill_polygon(self, points: Sequence[Point2D], fill: str, stroke: str, line_width: float) -> None:
        self.painter.setPen(self._pen(stroke, line_width))
        self.painter.setBrush(QBrush(parse_color(fill)))
        self.painter.drawPolygon(self._polygon(points))

    def fill_circle(self, center: Point2D, radius: float, fill: str | RadialGradient) -> None:
        if isinstance(fill, RadialGradient):
            gradient = QRadialGradient(
                QPointF(fill.x1, fill.y1), fill.r1, QPointF(fill.x0, fill.y0), fill.r0
            )
            for offset, color in fill.stops:
                gradient.setColorAt(offset, parse_color(color))
            brush = QBrush(gradient)
        else:
            brush = QBrush(parse_color(fill))

        self.painter.setPen(Qt.PenStyle.NoPen)
        self.painter.setBrush(brush)
        self.painter.drawEllipse(QPointF(*center), radius, radius)

    def stroke_line(self, start: Point2D, end: Point2D, color: str, line_width: float) -> None:
        self.painter.setPen(self._pen(color, line_width))
        self.painter.drawLine(QPointF(*start), QPointF(*end))

    def stroke_polyline(self, points: Sequence[Point2D], color: str, line_width: float) -> None:
        self.painter.setPen(self._pen(color, line_width))
        self.painter.setBrush(Qt.BrushStyle.NoBrush)
        self.painter.drawPolyline(self._polygon(points))

    def text_size(self, text: str) -> tuple[float, float]:
        font = self.painter.font() if self.painter is not None else self._font
        metrics = QFontMetricsF(font)
        return metrics.horizontalAdvance(text), metrics.height()

    def draw_label(self, rect: tuple[float, float, float, float], text: str, color: str, background: str) -> None:
        box = QRectF(*rect)
        self.painter.fillRect(box, parse_color(background))
        self.painter.setPen(parse_color(color))
        self.painter.drawText(box, Qt.AlignmentFlag.AlignCenter, text)
