"""
Scene Object Model
==================
Typed descriptors for the subsurface features detected in a GPR image.

Why is this file needed?
------------------------
1. One Category Enum: every detection carries an ObjectKind. Unknown
   producer strings collapse to ANOMALY instead of failing.
2. One Style Table: fill/stroke/label per kind live in STYLES, with the
   anomaly entry as the fallback.
3. Shape Dispatch: the renderer asks `SceneObject.shape` which routine to
   use (box, sphere, cylinder-as-line, polyline).

Coordinate convention (canonical, see adapters.py):
    The scene is a 0..100 cube. x is horizontal, y is depth (larger = deeper),
    z is the distance from the front of the survey.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Optional

SCENE_EXTENT: float = 100.0
SCENE_HALF: float = SCENE_EXTENT / 2.0


# ------------------------------------------------------------------------------
# Enums
# ------------------------------------------------------------------------------
class ObjectKind(StrEnum):
    """Semantic category of a detected feature."""
    PIPE = "pipe"
    CAVITY = "cavity"
    METAL = "metal"
    CABLE = "cable"
    ROCK = "rock"
    ANOMALY = "anomaly"

    @classmethod
    def parse(cls, value: object) -> ObjectKind:
        """Map any producer string onto a kind. Never raises."""
        if isinstance(value, cls):
            return value
        text = str(value).strip().lower() if value is not None else ""
        try:
            return cls(text)
        except ValueError:
            return cls.ANOMALY


class ShapeKind(StrEnum):
    """Geometric primitive used to draw a SceneObject."""
    BOX = "box"
    SPHERE = "sphere"
    CYLINDER = "cylinder"
    POLYLINE = "polyline"


# ------------------------------------------------------------------------------
# Data Structures
# ------------------------------------------------------------------------------
@dataclass(frozen=True)
class Vec3:
    x: float
    y: float
    z: float = 0.0

    def __add__(self, other: Vec3) -> Vec3:
        return Vec3(self.x + other.x, self.y + other.y, self.z + other.z)

    def __sub__(self, other: Vec3) -> Vec3:
        return Vec3(self.x - other.x, self.y - other.y, self.z - other.z)

    def as_tuple(self) -> tuple[float, float, float]:
        return self.x, self.y, self.z


@dataclass(frozen=True)
class Size3:
    """Width/height/depth extents. Negative input is clamped to zero."""
    width: float
    height: float
    depth: float

    def __post_init__(self) -> None:
        # frozen dataclass -> bypass __setattr__
        object.__setattr__(self, "width", max(0.0, float(self.width)))
        object.__setattr__(self, "height", max(0.0, float(self.height)))
        object.__setattr__(self, "depth", max(0.0, float(self.depth)))


_SCENE_CENTER = Vec3(SCENE_HALF, SCENE_HALF, SCENE_HALF)


@dataclass(frozen=True)
class SceneObject:
    """
    One detected subsurface feature.

    `points` is only set for objects that come with an explicit path
    (cables traced as polylines). An empty or one-point path is kept as-is;
    the renderer skips it.
    """
    kind: ObjectKind
    position: Vec3
    size: Size3
    points: Optional[tuple[Vec3, ...]] = None

    @property
    def shape(self) -> ShapeKind:
        if self.points is not None:
            return ShapeKind.POLYLINE
        return _KIND_SHAPES.get(self.kind, ShapeKind.BOX)

    @property
    def style(self) -> ObjectStyle:
        return style_for(self.kind)

    def centered(self) -> Vec3:
        """Position relative to the scene center (origin of rotation)."""
        return self.position - _SCENE_CENTER

    def centered_points(self) -> list[Vec3]:
        return [p - _SCENE_CENTER for p in (self.points or ())]


_KIND_SHAPES: dict[ObjectKind, ShapeKind] = {
    ObjectKind.METAL: ShapeKind.BOX,
    ObjectKind.ROCK: ShapeKind.BOX,
    ObjectKind.ANOMALY: ShapeKind.BOX,
    ObjectKind.CAVITY: ShapeKind.SPHERE,
    ObjectKind.PIPE: ShapeKind.CYLINDER,
    ObjectKind.CABLE: ShapeKind.CYLINDER,
}


# ------------------------------------------------------------------------------
# Styles
# ------------------------------------------------------------------------------
@dataclass(frozen=True)
class ObjectStyle:
    fill: str
    stroke: str
    label: str


STYLES: dict[ObjectKind, ObjectStyle] = {
    ObjectKind.METAL: ObjectStyle("rgba(192, 192, 192, 0.7)", "rgba(192, 192, 192, 1)", "Metal"),
    ObjectKind.ROCK: ObjectStyle("rgba(139, 69, 19, 0.7)", "rgba(139, 69, 19, 1)", "Rock"),
    ObjectKind.PIPE: ObjectStyle("rgba(50, 150, 255, 0.7)", "rgba(50, 150, 255, 1)", "Pipe"),
    ObjectKind.CAVITY: ObjectStyle("rgba(255, 255, 0, 0.7)", "rgba(255, 255, 0, 1)", "Cavity"),
    ObjectKind.CABLE: ObjectStyle("rgba(200, 100, 255, 0.9)", "rgba(200, 100, 255, 0.9)", "Cable"),
    ObjectKind.ANOMALY: ObjectStyle("rgba(255, 0, 255, 0.7)", "rgba(255, 0, 255, 1)", "Anomaly"),
}


def style_for(kind: ObjectKind | str) -> ObjectStyle:
    """Look up the style for a kind, falling back to the anomaly entry."""
    return STYLES.get(ObjectKind.parse(kind), STYLES[ObjectKind.ANOMALY])
