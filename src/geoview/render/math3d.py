from __future__ import annotations

import math
from typing import NamedTuple, TYPE_CHECKING

import numpy as np

from geoview.model.scene import Vec3

if TYPE_CHECKING:
    import numpy.typing as npt
    from geoview.model.view_state import Rotation

ISO_FACTOR: float = 0.707


class ProjectedVertex(NamedTuple):
    screen_x: float
    screen_y: float
    depth: float  # rotated Z, sort key only


def rotate(point: Vec3, rotation: Rotation) -> Vec3:
    """
    Rotate a point about the X axis, then about the Y axis.

    Args:
        point: Point relative to the scene center.
        rotation: Angles in radians.

    Returns:
        The rotated point.
    """
    cos_x = math.cos(rotation.x)
    sin_x = math.sin(rotation.x)
    y1 = point.y * cos_x - point.z * sin_x
    z1 = point.y * sin_x + point.z * cos_x

    cos_y = math.cos(rotation.y)
    sin_y = math.sin(rotation.y)
    x2 = point.x * cos_y + z1 * sin_y
    z2 = -point.x * sin_y + z1 * cos_y
    return Vec3(x2, y1, z2)


def rotate_many(points: npt.NDArray[np.float64], rotation: Rotation) -> npt.NDArray[np.float64]:
    """Vectorised `rotate` for an (N, 3) array."""
    pts = np.asarray(points, dtype=np.float64).reshape(-1, 3)
    x, y, z = pts[:, 0], pts[:, 1], pts[:, 2]

    cos_x, sin_x = math.cos(rotation.x), math.sin(rotation.x)
    y1 = y * cos_x - z * sin_x
    z1 = y * sin_x + z * cos_x

    cos_y, sin_y = math.cos(rotation.y), math.sin(rotation.y)
    x2 = x * cos_y + z1 * sin_y
    z2 = -x * sin_y + z1 * cos_y
    return np.c_[x2, y1, z2]


def projection_factor(scene_scale: float) -> float:
    return ISO_FACTOR * scene_scale


def project(
    point: Vec3,
    rotation: Rotation,
    zoom: float,
    center_x: float,
    center_y: float,
    scene_scale: float = 1.0,
) -> ProjectedVertex:
    """
    Rotate then map to screen with the isometric-style formula

        screen_x = cx + (x - z) * k * zoom
        screen_y = cy + (y + (x + z) / 2) * k * zoom

    where k = 0.707 * scene_scale.
    """
    r = rotate(point, rotation)
    k = projection_factor(scene_scale) * zoom
    return ProjectedVertex(
        center_x + (r.x - r.z) * k,
        center_y + (r.y + (r.x + r.z) / 2) * k,
        r.z,
    )


def project_many(
    points: npt.NDArray[np.float64],
    rotation: Rotation,
    zoom: float,
    center_x: float,
    center_y: float,
    scene_scale: float = 1.0,
) -> list[ProjectedVertex]:
    rotated = rotate_many(points, rotation)
    k = projection_factor(scene_scale) * zoom
    sx = center_x + (rotated[:, 0] - rotated[:, 2]) * k
    sy = center_y + (rotated[:, 1] + (rotated[:, 0] + rotated[:, 2]) / 2) * k
    return [ProjectedVertex(float(a), float(b), float(d)) for a, b, d in zip(sx, sy, rotated[:, 2])]
