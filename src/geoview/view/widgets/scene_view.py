"""
Interactive 3D Subsurface View
==============================
QWidget that shows the detected objects and lets the user orbit and zoom.

Drag with the left button to rotate, scroll to zoom. Every change requests a
single coalesced redraw; each redraw repaints the full scene.
"""
from __future__ import annotations

import logging
from typing import Optional, Sequence

from PySide6.QtCore import QTimer, Qt, Signal
from PySide6.QtGui import QColor, QMouseEvent, QPainter, QPaintEvent, QWheelEvent
from PySide6.QtWidgets import QSizePolicy, QWidget

from geoview.controller.interaction import InteractionController, RedrawScheduler
from geoview.model.scene import SceneObject
from geoview.model.view_state import ViewState
from geoview.render.renderer import RenderOptions, RenderStats, SceneRenderer
from geoview.view.widgets.painter_surface import PainterSurface

logger = logging.getLogger(__name__)

BACKGROUND_COLOR = "#1A1A1A"
EMPTY_TEXT_COLOR = "#9CA3AF"


class SceneView(QWidget):
    view_changed = Signal()

    def __init__(self, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.setMinimumSize(320, 240)
        self.setSizePolicy(QSizePolicy.Policy.Expanding, QSizePolicy.Policy.Expanding)
        self.setCursor(Qt.CursorShape.OpenHandCursor)

        self.view_state = ViewState()
        self.options = RenderOptions(show_grid=True, background=BACKGROUND_COLOR)
        self.renderer = SceneRenderer()
        self.last_stats: Optional[RenderStats] = None

        self._objects: list[SceneObject] = []
        self._surface = PainterSurface(self.font())

        self._scheduler = RedrawScheduler(redraw=self._redraw, post=lambda fn: QTimer.singleShot(0, fn))
        self.controller = InteractionController(self.view_state, on_change=self._scheduler.request)

    # ------------------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------------------

    @property
    def objects(self) -> list[SceneObject]:
        return list(self._objects)

    def set_objects(self, objects: Sequence[SceneObject]) -> None:
        self._objects = list(objects)
        logger.info(f"Scene updated with {len(self._objects)} objects.")
        self._scheduler.request()

    def set_options(
        self,
        show_grid: Optional[bool] = None,
        show_labels: Optional[bool] = None,
        max_depth: Optional[float] = None,
    ) -> None:
        if show_grid is not None:
            self.options.show_grid = show_grid
        if show_labels is not None:
            self.options.show_labels = show_labels
        if max_depth is not None:
            self.options.max_depth = max_depth
        self._scheduler.request()

    def reset_view(self) -> None:
        self.controller.reset_view()

    # ------------------------------------------------------------------------------
    # Painting
    # ------------------------------------------------------------------------------

    def _redraw(self) -> None:
        self.update()
        self.view_changed.emit()

    def paintEvent(self, event: QPaintEvent) -> None:
        self._surface.discard()
        self.last_stats = self.renderer.render(
            self._surface,
            self._objects,
            self.view_state,
            self.width(),
            self.height(),
            self.devicePixelRatioF(),
            self.options,
        )
        frame = self._surface.finish()

        painter = QPainter(self)
        painter.fillRect(self.rect(), QColor(BACKGROUND_COLOR))
        if frame is not None:
            painter.drawImage(0, 0, frame)
        if not self._objects:
            painter.setPen(QColor(EMPTY_TEXT_COLOR))
            painter.drawText(self.rect(), Qt.AlignmentFlag.AlignCenter, "No objects to display.")
        painter.end()

    # ------------------------------------------------------------------------------
    # Input
    # ------------------------------------------------------------------------------

    def mousePressEvent(self, event: QMouseEvent) -> None:
        if event.button() != Qt.MouseButton.LeftButton:
            return super().mousePressEvent(event)
        pos = event.position()
        self.controller.press(pos.x(), pos.y())
        self.setCursor(Qt.CursorShape.ClosedHandCursor)

    def mouseMoveEvent(self, event: QMouseEvent) -> None:
        pos = event.position()
        self.controller.move(pos.x(), pos.y())

    def mouseReleaseEvent(self, event: QMouseEvent) -> None:
        # Qt's implicit grab delivers the release even outside the widget.
        self.controller.release()
        self.setCursor(Qt.CursorShape.OpenHandCursor)

    def leaveEvent(self, event) -> None:
        self.controller.leave()
        self.setCursor(Qt.CursorShape.OpenHandCursor)
        super().leaveEvent(event)

    def wheelEvent(self, event: QWheelEvent) -> None:
        # angleDelta is positive when scrolling away from the user
        self.controller.wheel(-event.angleDelta().y())
        event.accept()
