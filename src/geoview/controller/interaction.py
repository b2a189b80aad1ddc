"""
Interaction Controller
======================
Turns pointer drags into rotation and wheel scrolls into zoom.

Why is this file needed?
------------------------
1. Ownership: the ViewState is mutated here and nowhere else. The renderer
   only reads it.
2. State Machine: Idle <-> Dragging. Drags are tracked incrementally (every
   move is a delta from the previous move, not from the press point).
3. Redraw Coalescing: every mutation requests a redraw through a
   RedrawScheduler, which keeps at most one redraw pending per frame.
"""
from __future__ import annotations

from enum import Enum
import logging
from typing import Callable, Optional

from geoview.model.view_state import (
    DRAG_SENSITIVITY,
    WHEEL_SENSITIVITY,
    Rotation,
    ViewState,
    clamp_zoom,
)

logger = logging.getLogger(__name__)


class InteractionMode(Enum):
    IDLE = "idle"
    DRAGGING = "dragging"


class RedrawScheduler:
    """
    Collapses bursts of change notifications into a single redraw.

    `post` must arrange for `flush` to be called later (e.g. on the next
    event-loop turn). It is called at most once per pending redraw.
    """
    def __init__(self, redraw: Callable[[], None], post: Callable[[Callable[[], None]], None]) -> None:
        self._redraw = redraw
        self._post = post
        self._pending = False

    @property
    def pending(self) -> bool:
        return self._pending

    def request(self) -> None:
        if self._pending:
            return
        self._pending = True
        self._post(self.flush)

    def flush(self) -> None:
        if not self._pending:
            return
        self._pending = False
        self._redraw()


class InteractionController:
    def __init__(
        self,
        view_state: Optional[ViewState] = None,
        on_change: Optional[Callable[[], None]] = None,
        drag_sensitivity: float = DRAG_SENSITIVITY,
        wheel_sensitivity: float = WHEEL_SENSITIVITY,
    ) -> None:
        self.view = view_state or ViewState()
        self._on_change = on_change
        self.drag_sensitivity = drag_sensitivity
        self.wheel_sensitivity = wheel_sensitivity

    @property
    def mode(self) -> InteractionMode:
        return InteractionMode.DRAGGING if self.view.dragging else InteractionMode.IDLE

    # --- pointer ---

    def press(self, x: float, y: float) -> None:
        self.view.dragging = True
        self.view.last_pointer = (x, y)

    def move(self, x: float, y: float) -> bool:
        """Apply a drag delta. Returns True if the rotation changed."""
        if not self.view.dragging or self.view.last_pointer is None:
            return False

        last_x, last_y = self.view.last_pointer
        dx = x - last_x
        dy = y - last_y
        self.view.last_pointer = (x, y)
        if dx == 0 and dy == 0:
            return False

        self.view.rotation = Rotation(
            self.view.rotation.x - dy * self.drag_sensitivity,
            self.view.rotation.y + dx * self.drag_sensitivity,
        )
        self._changed()
        return True

    def release(self) -> None:
        self.view.dragging = False
        self.view.last_pointer = None

    def leave(self) -> None:
        self.release()

    # --- wheel ---

    def wheel(self, delta_y: float) -> bool:
        """
        Zoom by `zoom - delta_y * sensitivity`, clamped.

        `delta_y` follows the browser convention: positive scrolls toward the
        user and zooms out.
        """
        new_zoom = clamp_zoom(self.view.zoom - delta_y * self.wheel_sensitivity)
        if new_zoom == self.view.zoom:
            return False
        self.view.zoom = new_zoom
        self._changed()
        return True

    def reset_view(self) -> None:
        self.view.reset()
        logger.debug("View reset to initial rotation and zoom.")
        self._changed()

    def _changed(self) -> None:
        if self._on_change is not None:
            self._on_change()
