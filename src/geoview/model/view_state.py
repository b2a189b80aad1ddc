"""
Viewing transform state (rotation, zoom, drag bookkeeping).

Owned and mutated only by the InteractionController; the renderer reads it.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

INITIAL_ROTATION_X: float = 0.5
INITIAL_ROTATION_Y: float = -0.5
INITIAL_ZOOM: float = 1.0

ZOOM_MIN: float = 0.2
ZOOM_MAX: float = 3.0

DRAG_SENSITIVITY: float = 0.01  # rad per pixel
WHEEL_SENSITIVITY: float = 0.001  # zoom per wheel delta unit


def clamp_zoom(value: float) -> float:
    return max(ZOOM_MIN, min(ZOOM_MAX, value))


@dataclass
class Rotation:
    """Pitch-like X angle and yaw-like Y angle in radians. Unbounded."""
    x: float = INITIAL_ROTATION_X
    y: float = INITIAL_ROTATION_Y


@dataclass
class ViewState:
    rotation: Rotation = field(default_factory=Rotation)
    zoom: float = INITIAL_ZOOM
    dragging: bool = False
    last_pointer: Optional[tuple[float, float]] = None

    def reset(self) -> None:
        self.rotation = Rotation()
        self.zoom = INITIAL_ZOOM
        self.dragging = False
        self.last_pointer = None
