"""
Image Analysis Control Panel
"""
import logging
import os
from typing import Optional

from PySide6.QtWidgets import (
    QWidget, QVBoxLayout, QLabel, QPushButton, QDoubleSpinBox, QGroupBox, QFormLayout,
    QMessageBox, QFileDialog, QPlainTextEdit, QProgressBar
)
from PySide6.QtCore import Signal, Qt
from PySide6.QtGui import QPixmap

from geoview.controller.interpreter import AnalysisResult, GeminiInterpreter
from geoview.controller.workers import InterpretWorker
from geoview.model.history import AnalysisRecord, HistoryError, HistoryManager
from geoview.model.state import SessionState

logger = logging.getLogger(__name__)

IMAGE_FILTER = "Images (*.png *.jpg *.jpeg *.bmp *.gif *.webp)"
PREVIEW_HEIGHT = 160


class AnalysisControlPanel(QWidget):
    # Emitted when new objects are in the session state
    analysis_ready = Signal()
    # Emitted after a result was written to the history file
    history_changed = Signal()
    max_depth_changed = Signal(float)

    def __init__(
        self,
        session: SessionState,
        history: HistoryManager,
        interpreter: Optional[GeminiInterpreter] = None,
    ) -> None:
        super().__init__()
        self.session = session
        self.history = history
        self.interpreter = interpreter
        self.worker: Optional[InterpretWorker] = None

        layout = QVBoxLayout(self)

        # --- Image Group ---
        grp_image = QGroupBox("GPR Image")
        image_layout = QVBoxLayout(grp_image)

        self.btn_open = QPushButton("Select Image...")
        self.btn_open.clicked.connect(self.on_open_clicked)
        image_layout.addWidget(self.btn_open)

        self.lbl_preview = QLabel("No image selected.")
        self.lbl_preview.setAlignment(Qt.AlignCenter)
        self.lbl_preview.setMinimumHeight(PREVIEW_HEIGHT)
        self.lbl_preview.setStyleSheet("color: gray; border: 1px solid #444;")
        image_layout.addWidget(self.lbl_preview)

        self.lbl_filename = QLabel("")
        self.lbl_filename.setAlignment(Qt.AlignCenter)
        image_layout.addWidget(self.lbl_filename)

        layout.addWidget(grp_image)

        # --- Display Settings ---
        grp_display = QGroupBox("Display")
        form = QFormLayout(grp_display)

        self.spin_max_depth = QDoubleSpinBox()
        self.spin_max_depth.setRange(0.5, 50.0)
        self.spin_max_depth.setSingleStep(0.5)
        self.spin_max_depth.setDecimals(1)
        self.spin_max_depth.setSuffix(" m")
        self.spin_max_depth.setValue(self.session.max_depth_m)
        self.spin_max_depth.valueChanged.connect(self.on_max_depth_changed)
        form.addRow("Survey depth:", self.spin_max_depth)

        layout.addWidget(grp_display)

        # --- Actions ---
        self.btn_analyze = QPushButton("Analyze")
        self.btn_analyze.setMinimumHeight(40)
        self.btn_analyze.setEnabled(False)
        self.btn_analyze.clicked.connect(self.on_analyze_clicked)
        layout.addWidget(self.btn_analyze)

        self.progress = QProgressBar()
        self.progress.setRange(0, 0)  # busy indicator
        self.progress.setVisible(False)
        layout.addWidget(self.progress)

        self.lbl_status = QLabel("Status: Waiting for an image.")
        self.lbl_status.setAlignment(Qt.AlignCenter)
        self.lbl_status.setStyleSheet("color: gray;")
        layout.addWidget(self.lbl_status)

        # --- Interpretation ---
        grp_desc = QGroupBox("Interpretation")
        desc_layout = QVBoxLayout(grp_desc)
        self.txt_description = QPlainTextEdit()
        self.txt_description.setReadOnly(True)
        self.txt_description.setPlaceholderText("The interpretation will appear here.")
        desc_layout.addWidget(self.txt_description)
        layout.addWidget(grp_desc, stretch=1)

    # --- PROPERTIES ---

    @property
    def status_message(self) -> str:
        return self.lbl_status.text()

    @status_message.setter
    def status_message(self, text: str) -> None:
        self.lbl_status.setText(text)
        self.lbl_status.setStyleSheet("color: gray;")

    def _set_status_styled(self, text: str, color: str, bold: bool = False) -> None:
        self.lbl_status.setText(text)
        weight = "bold" if bold else "normal"
        self.lbl_status.setStyleSheet(f"color: {color}; font-weight: {weight};")

    # --- SLOTS ---

    def on_open_clicked(self) -> None:
        fname, _ = QFileDialog.getOpenFileName(self, "Select GPR Image", "", IMAGE_FILTER)
        if fname:
            self.set_image(fname)

    def set_image(self, path: str) -> None:
        self.session.image_path = path
        self.lbl_filename.setText(os.path.basename(path))
        self._show_preview(path)
        self.btn_analyze.setEnabled(True)
        self.status_message = "Status: Ready to analyze."

    def _show_preview(self, path: Optional[str]) -> None:
        pixmap = QPixmap(path) if path else QPixmap()
        if pixmap.isNull():
            self.lbl_preview.setPixmap(QPixmap())
            self.lbl_preview.setText("No preview available." if path else "No image selected.")
            return
        self.lbl_preview.setPixmap(
            pixmap.scaledToHeight(PREVIEW_HEIGHT, Qt.SmoothTransformation)
        )

    def on_max_depth_changed(self, value: float) -> None:
        self.session.max_depth_m = value
        self.max_depth_changed.emit(value)

    def on_analyze_clicked(self) -> None:
        if not self.session.image_path:
            return
        if self.worker is not None and self.worker.isRunning():
            return

        self.status_message = "Analyzing image..."
        self.btn_analyze.setEnabled(False)
        self.btn_open.setEnabled(False)
        self.progress.setVisible(True)

        self.worker = InterpretWorker(self.session.image_path, self.interpreter)
        self.worker.result_ready.connect(self.on_result_ready)
        self.worker.error_occurred.connect(self.on_error)
        self.worker.finished.connect(self.on_worker_finished)
        self.worker.start()

    def on_result_ready(self, result: AnalysisResult) -> None:
        self.show_result(result)

        record = AnalysisRecord(
            file_name=os.path.basename(self.session.image_path or "analysis"),
            description=result.description,
            objects=list(result.objects),
            image_path=self.session.image_path,
        )
        try:
            self.history.add(record)
            self.session.record = record
            self.history_changed.emit()
        except HistoryError as e:
            QMessageBox.warning(self, "History", f"The analysis could not be saved:\n{e}")

    def show_result(self, result: AnalysisResult) -> None:
        """Display an interpretation that did not come from the history."""
        self.session.set_result(result)
        self.txt_description.setPlainText(result.description)
        self._set_status_styled(f"Status: Done, {len(result.objects)} objects ✓", "green", bold=True)
        self.analysis_ready.emit()

    def on_error(self, message: str) -> None:
        self._set_status_styled("Analysis failed", "red")
        QMessageBox.critical(self, "Analysis Error", message)

    def on_worker_finished(self) -> None:
        self.progress.setVisible(False)
        self.btn_open.setEnabled(True)
        self.btn_analyze.setEnabled(bool(self.session.image_path))
        if self.worker is not None:
            # finished is emitted just before the thread exits
            self.worker.wait()
        self.worker = None

    def detach_worker(self) -> Optional[InterpretWorker]:
        """
        Stop listening to the running analysis. The thread itself keeps going
        until its request returns; its result is discarded.
        """
        worker = self.worker
        if worker is None or not worker.isRunning():
            return None
        worker.result_ready.disconnect(self.on_result_ready)
        worker.error_occurred.disconnect(self.on_error)
        self.status_message = "Cancelling analysis..."
        return worker

    def load_from_state(self) -> None:
        """Refresh widgets after the session state changed elsewhere."""
        path = self.session.image_path
        self.spin_max_depth.blockSignals(True)
        try:
            self.spin_max_depth.setValue(self.session.max_depth_m)
        finally:
            self.spin_max_depth.blockSignals(False)
        self.lbl_filename.setText(os.path.basename(path) if path else "")
        self._show_preview(path if path and os.path.exists(path) else None)
        self.btn_analyze.setEnabled(bool(path and os.path.exists(path)))
        self.txt_description.setPlainText(self.session.description)
        self.status_message = f"Status: {len(self.session.objects)} objects loaded."

    def reset_status(self) -> None:
        self.status_message = "Status: Waiting for an image."
