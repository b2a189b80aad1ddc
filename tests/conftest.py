import os

# Qt tests must not need a display server.
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import pytest

from geoview.model.scene import ObjectKind, SceneObject, Size3, Vec3


class RecordingSurface:
    """Surface double that records every drawing call as (name, args)."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, tuple]] = []

    def clear(self, width, height, device_pixel_ratio, background):
        self.calls.append(("clear", (width, height, device_pixel_ratio, background)))

    def fill_polygon(self, points, fill, stroke, line_width):
        self.calls.append(("fill_polygon", (list(points), fill, stroke, line_width)))

    def fill_circle(self, center, radius, fill):
        self.calls.append(("fill_circle", (center, radius, fill)))

    def stroke_line(self, start, end, color, line_width):
        self.calls.append(("stroke_line", (start, end, color, line_width)))

    def stroke_polyline(self, points, color, line_width):
        self.calls.append(("stroke_polyline", (list(points), color, line_width)))

    def text_size(self, text):
        return 6.0 * len(text), 10.0

    def draw_label(self, rect, text, color, background):
        self.calls.append(("draw_label", (rect, text, color, background)))

    def names(self) -> list[str]:
        return [name for name, _ in self.calls]

    def of(self, name: str) -> list[tuple]:
        return [args for n, args in self.calls if n == name]


@pytest.fixture
def surface() -> RecordingSurface:
    return RecordingSurface()


@pytest.fixture
def make_object():
    def _make(kind=ObjectKind.METAL, position=(50, 50, 50), size=(10, 10, 10), points=None):
        return SceneObject(
            kind=ObjectKind.parse(kind),
            position=Vec3(*position),
            size=Size3(*size),
            points=tuple(Vec3(*p) for p in points) if points is not None else None,
        )
    return _make


@pytest.fixture
def qapp():
    QtWidgets = pytest.importorskip("PySide6.QtWidgets")
    app = QtWidgets.QApplication.instance() or QtWidgets.QApplication([])
    yield app
