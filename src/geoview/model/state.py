"""
Session State (Data Model)
==========================
The central data structure for the running application.

Why is this file needed?
------------------------
1. State Management: it holds the selected image, the current interpretation
   and the displayed objects in one place.
2. Decoupling: views read from this object; controllers write to it.

Classes:
    SessionState: The main container class.
"""
from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import Optional, TYPE_CHECKING

from geoview import config

if TYPE_CHECKING:
    from geoview.controller.interpreter import AnalysisResult
    from geoview.model.history import AnalysisRecord
    from geoview.model.scene import SceneObject

logger = logging.getLogger(__name__)


@dataclass
class SessionState:
    image_path: Optional[str] = None
    result: Optional[AnalysisResult] = None
    record: Optional[AnalysisRecord] = None
    max_depth_m: float = config.DEFAULT_MAX_DEPTH_M

    objects: list[SceneObject] = field(default_factory=list)

    @property
    def description(self) -> str:
        if self.result is not None:
            return self.result.description
        if self.record is not None:
            return self.record.description
        return ""

    def set_result(self, result: AnalysisResult) -> None:
        self.result = result
        self.record = None
        self.objects = list(result.objects)

    def set_record(self, record: AnalysisRecord) -> None:
        self.record = record
        self.result = None
        self.image_path = record.image_path
        self.objects = list(record.objects)

    def reset(self) -> None:
        """Clear all data for a new session."""
        self.image_path = None
        self.result = None
        self.record = None
        self.objects = []
        self.max_depth_m = config.DEFAULT_MAX_DEPTH_M
        logger.info("Session state has been reset.")
