"""
Depth-Sorted Scene Renderer
===========================
Draws the detected subsurface objects onto a 2D Surface with a painter's
algorithm.

Why is this file needed?
------------------------
1. Full Redraw: every call clears the surface and draws the whole scene.
   There is no incremental diffing.
2. Ordering: objects (and their labels) are sorted once by rotated depth and
   drawn back-to-front. Box faces get their own back-to-front sort plus
   back-face culling.
3. Robustness: unknown kinds draw as anomaly boxes, degenerate geometry is
   skipped, and a zero-sized surface is a no-op.

Depth convention:
    The viewer sits on the +Z side of the rotated scene. Smaller rotated Z is
    farther away and is drawn first.
"""
from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Callable, Iterable, Optional, Sequence

import numpy as np

from geoview.model.scene import SCENE_EXTENT, ObjectKind, SceneObject, ShapeKind, Vec3
from geoview.model.view_state import ViewState
from geoview.render.math3d import ProjectedVertex, project, project_many, projection_factor, rotate
from geoview.render.surface import RadialGradient, Surface

logger = logging.getLogger(__name__)

# Labels are composited in the same sort as objects but pushed in front of
# everything. This is an "always on top" policy, not a depth test.
LABEL_DEPTH_BIAS: float = 1e6

BOX_OUTLINE_COLOR = "#333333"
BOX_OUTLINE_WIDTH = 1.5
CABLE_LINE_WIDTH = 3.0
SPHERE_HIGHLIGHT = "rgba(255, 255, 255, 0.9)"
GRID_COLOR = "rgba(0, 255, 127, 0.18)"
LABEL_TEXT_COLOR = "#00FF7F"
LABEL_BACKGROUND = "rgba(13, 13, 13, 0.7)"
LABEL_PADDING = 4.0
LABEL_OFFSET = 4.0

# Corner indices of the 6 quads and their outward normals (unrotated).
BOX_FACES: tuple[tuple[int, int, int, int], ...] = (
    (0, 1, 2, 3), (4, 5, 6, 7), (0, 4, 7, 3),
    (1, 5, 6, 2), (0, 1, 5, 4), (3, 2, 6, 7),
)
BOX_FACE_NORMALS: tuple[Vec3, ...] = (
    Vec3(0, 0, -1), Vec3(0, 0, 1), Vec3(-1, 0, 0),
    Vec3(1, 0, 0), Vec3(0, -1, 0), Vec3(0, 1, 0),
)
_CORNER_SIGNS = np.array([
    [-1, -1, -1], [1, -1, -1], [1, 1, -1], [-1, 1, -1],
    [-1, -1, 1], [1, -1, 1], [1, 1, 1], [-1, 1, 1],
], dtype=np.float64)


@dataclass
class RenderOptions:
    show_grid: bool = False
    show_labels: bool = False
    # Survey depth in metres that the full 0..100 y range represents.
    max_depth: Optional[float] = None
    # Multiplier on box half-extents so small detections stay visible.
    box_exaggeration: float = 1.0
    grid_divisions: int = 10
    grid_levels: int = 4
    cull_threshold: float = -0.2
    background: Optional[str] = None


@dataclass
class RenderStats:
    drawn: int = 0
    skipped: int = 0
    faces: int = 0
    labels: int = 0


@dataclass
class _Frame:
    """Per-redraw projection parameters."""
    view: ViewState
    center_x: float
    center_y: float
    scene_scale: float

    @property
    def k(self) -> float:
        return projection_factor(self.scene_scale)

    def project(self, point: Vec3) -> ProjectedVertex:
        return project(point, self.view.rotation, self.view.zoom, self.center_x, self.center_y, self.scene_scale)

    def project_many(self, points: np.ndarray) -> list[ProjectedVertex]:
        return project_many(points, self.view.rotation, self.view.zoom, self.center_x, self.center_y,
                            self.scene_scale)


def box_corners(center: Vec3, half_extents: tuple[float, float, float]) -> np.ndarray:
    """(8, 3) array of box corners, ordered as BOX_FACES expects."""
    return np.asarray(center.as_tuple()) + _CORNER_SIGNS * np.asarray(half_extents)


def visible_faces(
    projected: Sequence[ProjectedVertex],
    view: ViewState,
    cull_threshold: float = -0.2,
) -> list[int]:
    """
    Indices of box faces to draw, back-to-front.

    Faces are sorted by the mean depth of their projected corners; a face
    whose rotated normal has z <= cull_threshold is facing away and dropped.
    """
    def mean_depth(face: tuple[int, ...]) -> float:
        return sum(projected[i].depth for i in face) / len(face)

    order = sorted(range(len(BOX_FACES)), key=lambda i: mean_depth(BOX_FACES[i]))
    return [i for i in order if rotate(BOX_FACE_NORMALS[i], view.rotation).z > cull_threshold]


def sort_back_to_front(objects: Iterable[SceneObject], view: ViewState) -> list[SceneObject]:
    """Stable sort by rotated depth, farthest (smallest z) first."""
    return sorted(objects, key=lambda obj: rotate(obj.centered(), view.rotation).z)


class SceneRenderer:
    def __init__(self) -> None:
        self._draw_routines: dict[ShapeKind, Callable[[Surface, SceneObject, _Frame, RenderOptions], int | bool]] = {
            ShapeKind.BOX: self._draw_box,
            ShapeKind.SPHERE: self._draw_sphere,
            ShapeKind.CYLINDER: self._draw_cylinder,
            ShapeKind.POLYLINE: self._draw_polyline,
        }

    def render(
        self,
        surface: Surface,
        objects: Sequence[SceneObject],
        view: ViewState,
        width: float,
        height: float,
        device_pixel_ratio: float = 1.0,
        options: Optional[RenderOptions] = None,
    ) -> RenderStats:
        """
        Clear the surface and draw the whole scene once.

        Args:
            surface: Target surface.
            objects: Canonical scene objects.
            view: Current rotation/zoom (read only).
            width: Logical width of the surface in pixels.
            height: Logical height of the surface in pixels.
            device_pixel_ratio: Physical pixels per logical pixel.
            options: Grid/label/cull settings.

        Returns:
            Counters describing what was drawn.
        """
        options = options or RenderOptions()
        stats = RenderStats()

        if width <= 0 or height <= 0:
            logger.debug(f"Skipping redraw of degenerate surface {width}x{height}.")
            return stats

        surface.clear(width, height, device_pixel_ratio or 1.0, options.background)

        frame = _Frame(
            view=view,
            center_x=width / 2,
            center_y=height / 2,
            scene_scale=min(width, height) / SCENE_EXTENT,
        )

        if options.show_grid:
            self._draw_grid(surface, frame, options)

        # One combined back-to-front ordering for geometry and labels.
        items: list[tuple[float, int, SceneObject, bool]] = []
        for index, obj in enumerate(objects):
            depth = rotate(obj.centered(), view.rotation).z
            items.append((depth, index, obj, False))
            if options.show_labels:
                items.append((depth + LABEL_DEPTH_BIAS, index, obj, True))
        items.sort(key=lambda item: item[0])

        for _, _, obj, is_label in items:
            if is_label:
                self._draw_label(surface, obj, frame, options)
                stats.labels += 1
                continue

            routine = self._draw_routines[obj.shape]
            faces = routine(surface, obj, frame, options)
            if faces is False:
                stats.skipped += 1
                logger.debug(f"Skipped degenerate {obj.kind} object at {obj.position}.")
                continue
            stats.drawn += 1
            if obj.shape == ShapeKind.BOX:
                stats.faces += int(faces)

        return stats

    # ------------------------------------------------------------------------------
    # Shape routines. Return False when nothing could be drawn.
    # ------------------------------------------------------------------------------

    @staticmethod
    def _draw_box(surface: Surface, obj: SceneObject, frame: _Frame, options: RenderOptions) -> int:
        scale = options.box_exaggeration
        half = (obj.size.width / 2 * scale, obj.size.height / 2 * scale, obj.size.depth / 2 * scale)
        projected = frame.project_many(box_corners(obj.centered(), half))

        style = obj.style
        faces = visible_faces(projected, frame.view, options.cull_threshold)
        for face_index in faces:
            polygon = [(projected[i].screen_x, projected[i].screen_y) for i in BOX_FACES[face_index]]
            surface.fill_polygon(polygon, style.fill, BOX_OUTLINE_COLOR, BOX_OUTLINE_WIDTH)
        return len(faces)

    @staticmethod
    def _draw_sphere(surface: Surface, obj: SceneObject, frame: _Frame, options: RenderOptions) -> bool:
        radius = obj.size.width / 2 * frame.view.zoom * frame.k
        if radius <= 0:
            return False
        p = frame.project(obj.centered())
        gradient = RadialGradient(
            p.screen_x - radius * 0.3, p.screen_y - radius * 0.3, radius * 0.1,
            p.screen_x, p.screen_y, radius,
            stops=((0.0, SPHERE_HIGHLIGHT), (1.0, obj.style.fill)),
        )
        surface.fill_circle((p.screen_x, p.screen_y), radius, gradient)
        return True

    @staticmethod
    def _draw_cylinder(surface: Surface, obj: SceneObject, frame: _Frame, options: RenderOptions) -> bool:
        c = obj.centered()
        half_length = obj.size.width / 2
        p1 = frame.project(Vec3(c.x - half_length, c.y, c.z))
        p2 = frame.project(Vec3(c.x + half_length, c.y, c.z))

        if obj.kind == ObjectKind.PIPE:
            line_width = obj.size.height * frame.view.zoom * frame.k
        else:
            line_width = CABLE_LINE_WIDTH * frame.view.zoom
        surface.stroke_line((p1.screen_x, p1.screen_y), (p2.screen_x, p2.screen_y), obj.style.stroke, line_width)
        return True

    @staticmethod
    def _draw_polyline(surface: Surface, obj: SceneObject, frame: _Frame, options: RenderOptions) -> bool:
        points = obj.centered_points()
        if len(points) < 2:
            return False
        projected = [frame.project(p) for p in points]
        surface.stroke_polyline(
            [(p.screen_x, p.screen_y) for p in projected],
            obj.style.stroke,
            CABLE_LINE_WIDTH * frame.view.zoom,
        )
        return True

    # ------------------------------------------------------------------------------
    # Overlays
    # ------------------------------------------------------------------------------

    @staticmethod
    def label_text(obj: SceneObject, max_depth: Optional[float]) -> str:
        label = obj.style.label
        if max_depth is None:
            return label
        depth_m = obj.position.y / SCENE_EXTENT * max_depth
        return f"{label} · {depth_m:.2f} m"

    def _draw_label(self, surface: Surface, obj: SceneObject, frame: _Frame, options: RenderOptions) -> None:
        c = obj.centered()
        # up is -y (larger y is deeper)
        anchor = frame.project(Vec3(c.x, c.y - obj.size.height / 2 - LABEL_OFFSET, c.z))
        text = self.label_text(obj, options.max_depth)
        text_w, text_h = surface.text_size(text)
        rect = (
            anchor.screen_x - text_w / 2 - LABEL_PADDING,
            anchor.screen_y - text_h - 2 * LABEL_PADDING,
            text_w + 2 * LABEL_PADDING,
            text_h + 2 * LABEL_PADDING,
        )
        surface.draw_label(rect, text, LABEL_TEXT_COLOR, LABEL_BACKGROUND)

    @staticmethod
    def _draw_grid(surface: Surface, frame: _Frame, options: RenderOptions) -> None:
        """Ground-plane grid plus the scene outline at evenly spaced depth levels."""
        half = SCENE_EXTENT / 2
        divisions = max(1, options.grid_divisions)
        ticks = np.linspace(-half, half, divisions + 1)

        # ground plane (y = top of the volume)
        for t in ticks:
            a = frame.project(Vec3(t, -half, -half))
            b = frame.project(Vec3(t, -half, half))
            surface.stroke_line((a.screen_x, a.screen_y), (b.screen_x, b.screen_y), GRID_COLOR, 1.0)
            a = frame.project(Vec3(-half, -half, t))
            b = frame.project(Vec3(half, -half, t))
            surface.stroke_line((a.screen_x, a.screen_y), (b.screen_x, b.screen_y), GRID_COLOR, 1.0)

        # outline of the volume at each depth level
        corners = [(-half, -half), (half, -half), (half, half), (-half, half)]
        for level in np.linspace(-half, half, max(2, options.grid_levels + 1))[1:]:
            ring = [frame.project(Vec3(x, float(level), z)) for x, z in corners]
            ring.append(ring[0])
            surface.stroke_polyline([(p.screen_x, p.screen_y) for p in ring], GRID_COLOR, 1.0)
