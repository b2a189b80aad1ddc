"""
Analysis History Panel
"""
import logging
from typing import Optional

from PySide6.QtWidgets import (
    QWidget, QVBoxLayout, QHBoxLayout, QLabel, QPushButton, QListWidget, QListWidgetItem,
    QMessageBox
)
from PySide6.QtCore import Signal, Qt

from geoview.model.history import AnalysisRecord, HistoryError, HistoryManager

logger = logging.getLogger(__name__)


class HistoryControlPanel(QWidget):
    record_selected = Signal(object)  # AnalysisRecord

    def __init__(self, history: HistoryManager) -> None:
        super().__init__()
        self.history = history
        self._records: dict[str, AnalysisRecord] = {}

        layout = QVBoxLayout(self)

        layout.addWidget(QLabel("Stored analyses (newest first):"))

        self.list_records = QListWidget()
        self.list_records.itemSelectionChanged.connect(self._update_buttons)
        self.list_records.itemDoubleClicked.connect(lambda _item: self.on_show_clicked())
        layout.addWidget(self.list_records, stretch=1)

        btn_row = QHBoxLayout()
        self.btn_show = QPushButton("Show 3D")
        self.btn_show.clicked.connect(self.on_show_clicked)
        btn_row.addWidget(self.btn_show)

        self.btn_delete = QPushButton("Delete")
        self.btn_delete.clicked.connect(self.on_delete_clicked)
        btn_row.addWidget(self.btn_delete)

        self.btn_refresh = QPushButton("Refresh")
        self.btn_refresh.clicked.connect(self.refresh)
        btn_row.addWidget(self.btn_refresh)
        layout.addLayout(btn_row)

        self.lbl_status = QLabel("")
        self.lbl_status.setAlignment(Qt.AlignCenter)
        self.lbl_status.setStyleSheet("color: gray;")
        layout.addWidget(self.lbl_status)

        self.refresh()

    def refresh(self) -> None:
        records = self.history.load()
        self._records = {r.id: r for r in records}

        self.list_records.clear()
        for record in records:
            stamp = record.created_at.astimezone().strftime("%Y-%m-%d %H:%M")
            item = QListWidgetItem(f"{stamp}  {record.file_name}  ({len(record.objects)} objects)")
            item.setData(Qt.UserRole, record.id)
            item.setToolTip(record.description)
            self.list_records.addItem(item)

        self.lbl_status.setText("No analyses stored yet." if not records else f"{len(records)} analyses")
        self._update_buttons()

    def selected_record(self) -> Optional[AnalysisRecord]:
        item = self.list_records.currentItem()
        if item is None:
            return None
        return self._records.get(item.data(Qt.UserRole))

    def _update_buttons(self) -> None:
        has_selection = self.list_records.currentItem() is not None
        self.btn_show.setEnabled(has_selection)
        self.btn_delete.setEnabled(has_selection)

    # --- SLOTS ---

    def on_show_clicked(self) -> None:
        record = self.selected_record()
        if record is not None:
            self.record_selected.emit(record)

    def on_delete_clicked(self) -> None:
        record = self.selected_record()
        if record is None:
            return

        reply = QMessageBox.question(
            self,
            "Delete analysis?",
            f"Delete the analysis of '{record.file_name}'?",
            QMessageBox.Yes | QMessageBox.No,
        )
        if reply != QMessageBox.Yes:
            return

        try:
            self.history.delete(record.id)
        except HistoryError as e:
            QMessageBox.critical(self, "History", str(e))
        self.refresh()
