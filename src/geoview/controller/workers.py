"""
Background Workers (Threading)
==============================
QThread subclasses for long-running tasks.

Why is this file needed?
------------------------
1. Responsiveness: the interpretation request can take tens of seconds. Running
   it on the main thread would freeze the GUI.
2. Signals: results and errors travel back to the GUI thread through Qt
   signals, never by touching widgets from the worker.

Classes:
    InterpretWorker: Runs one GeminiInterpreter request.
"""
import logging
from typing import Optional

from PySide6.QtCore import QThread, Signal

from geoview.controller.interpreter import GeminiInterpreter

logger = logging.getLogger(__name__)


class InterpretWorker(QThread):
    result_ready = Signal(object)  # AnalysisResult
    error_occurred = Signal(str)

    def __init__(self, image_path: str, interpreter: Optional[GeminiInterpreter] = None) -> None:
        super().__init__()
        self.image_path = image_path
        self.interpreter = interpreter or GeminiInterpreter()

    def run(self) -> None:
        try:
            logger.info(f"Interpreting {self.image_path} in background thread...")
            result = self.interpreter.interpret_file(self.image_path)
            self.result_ready.emit(result)
        except Exception as e:
            logger.error(f"Error in InterpretWorker: {e}")
            self.error_occurred.emit(str(e))
