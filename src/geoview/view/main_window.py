"""
Main Application Window
=======================
The primary GUI container that holds the Menu Bar, the control tabs and the
3D subsurface view.

Why is this file needed?
------------------------
1. Layout: It organizes the high-level visual structure of the application.
2. Routing: It connects global actions (like File -> Open Image) and panel
   signals to the scene view.
"""
import logging
import os
from typing import Optional

from PySide6.QtWidgets import (
    QMainWindow, QWidget, QVBoxLayout, QSplitter, QTabBar, QStackedWidget, QFileDialog, QMessageBox
)
from PySide6.QtCore import Qt
from PySide6.QtGui import QAction

from geoview import config
from geoview.controller.interpreter import InterpretationError, parse_answer
from geoview.controller.workers import InterpretWorker
from geoview.model.history import AnalysisRecord, HistoryManager
from geoview.model.state import SessionState
from geoview.view.tabs.tab_analysis import AnalysisControlPanel
from geoview.view.tabs.tab_history import HistoryControlPanel
from geoview.view.widgets.scene_view import SceneView

logger = logging.getLogger(__name__)

VISIBLE_APP_NAME = "GeoView"


class MainWindow(QMainWindow):
    def __init__(self, session: SessionState, history: HistoryManager) -> None:
        super().__init__()
        self.session = session
        self.history = history
        # Analysis thread still finishing after the user asked to quit
        self._closing_worker: Optional[InterpretWorker] = None

        self.update_window_title()
        self.resize(1400, 900)

        # --- MAIN CONTAINER ---
        main_widget = QWidget()
        self.setCentralWidget(main_widget)

        main_layout = QVBoxLayout(main_widget)
        main_layout.setContentsMargins(0, 0, 0, 0)
        main_layout.setSpacing(0)

        # --- 1. TOP TAB BAR ---
        self.tab_bar = QTabBar()
        self.tab_bar.setDrawBase(True)
        self.tab_bar.setExpanding(True)
        self.tab_bar.addTab("1. Analysis")
        self.tab_bar.addTab("2. History")
        self.tab_bar.setStyleSheet("""
                    QTabBar::tab { height: 35px; min-width: 100px; }
                    QTabBar::tab:selected { font-weight: bold; }
                """)
        main_layout.addWidget(self.tab_bar)

        # --- 2. SPLITTER (CONTENT AREA) ---
        splitter = QSplitter(Qt.Horizontal)
        main_layout.addWidget(splitter)

        # --- LEFT SIDE: Control Panels (Stacked) ---
        self.controls_stack = QStackedWidget()

        self.analysis_panel = AnalysisControlPanel(self.session, self.history)
        self.history_panel = HistoryControlPanel(self.history)

        # Order must match Tab Bar order
        self.controls_stack.addWidget(self.analysis_panel)
        self.controls_stack.addWidget(self.history_panel)
        splitter.addWidget(self.controls_stack)

        # --- RIGHT SIDE: 3D View ---
        self.scene_view = SceneView()
        self.scene_view.set_options(max_depth=self.session.max_depth_m)
        splitter.addWidget(self.scene_view)

        splitter.setSizes([380, 1020])

        # --- SIGNAL CONNECTIONS ---
        self.tab_bar.currentChanged.connect(self.controls_stack.setCurrentIndex)
        self.analysis_panel.analysis_ready.connect(self.update_visualization)
        self.analysis_panel.history_changed.connect(self.history_panel.refresh)
        self.analysis_panel.max_depth_changed.connect(self.on_max_depth_changed)
        self.history_panel.record_selected.connect(self.on_record_selected)

        # --- ACTIONS & MENUS ---
        self._create_actions()
        self._create_menus()

        self.update_visualization()

    def _create_actions(self) -> None:
        # File Actions
        self.act_new = QAction("New Session", self)
        self.act_new.setShortcut("Ctrl+N")
        self.act_new.triggered.connect(self.on_new_session)

        self.act_open_image = QAction("Open Image...", self)
        self.act_open_image.setShortcut("Ctrl+O")
        self.act_open_image.triggered.connect(self.on_open_image)

        self.act_load_json = QAction("Load Analysis JSON...", self)
        self.act_load_json.setShortcut("Ctrl+L")
        self.act_load_json.triggered.connect(self.on_load_analysis_json)

        self.act_open_sample = QAction("Open Sample Analysis", self)
        self.act_open_sample.triggered.connect(lambda: self.load_analysis_file(config.SAMPLE_ANALYSIS_PATH))

        self.act_exit = QAction("Exit", self)
        self.act_exit.triggered.connect(self.close)

        # View Actions
        self.act_reset_view = QAction("Reset View", self)
        self.act_reset_view.setShortcut("R")
        self.act_reset_view.triggered.connect(self.scene_view.reset_view)

        self.act_show_grid = QAction("Show Grid", self)
        self.act_show_grid.setCheckable(True)
        self.act_show_grid.setChecked(self.scene_view.options.show_grid)
        self.act_show_grid.toggled.connect(lambda on: self.scene_view.set_options(show_grid=on))

        self.act_show_labels = QAction("Show Labels", self)
        self.act_show_labels.setCheckable(True)
        self.act_show_labels.setChecked(self.scene_view.options.show_labels)
        self.act_show_labels.toggled.connect(lambda on: self.scene_view.set_options(show_labels=on))

    def _create_menus(self) -> None:
        menu_bar = self.menuBar()

        file_menu = menu_bar.addMenu("&File")
        file_menu.addAction(self.act_new)
        file_menu.addSeparator()
        file_menu.addAction(self.act_open_image)
        file_menu.addAction(self.act_load_json)
        file_menu.addAction(self.act_open_sample)
        file_menu.addSeparator()
        file_menu.addAction(self.act_exit)

        view_menu = menu_bar.addMenu("&View")
        view_menu.addAction(self.act_reset_view)
        view_menu.addSeparator()
        view_menu.addAction(self.act_show_grid)
        view_menu.addAction(self.act_show_labels)

    # --- HELPER METHODS ---
    def update_window_title(self) -> None:
        name = os.path.basename(self.session.image_path) if self.session.image_path else "No image"
        self.setWindowTitle(f"{VISIBLE_APP_NAME} - [{name}]")

    def update_visualization(self) -> None:
        self.scene_view.set_objects(self.session.objects)
        self.update_window_title()

    # --- SLOTS ---

    def on_new_session(self) -> None:
        worker = self.analysis_panel.worker
        if worker is not None and worker.isRunning():
            QMessageBox.information(self, "Analysis running", "Wait for the running analysis to finish.")
            return

        self.session.reset()
        self.analysis_panel.load_from_state()
        self.analysis_panel.reset_status()
        self.scene_view.set_options(max_depth=self.session.max_depth_m)
        self.scene_view.reset_view()
        self.update_visualization()

    def on_open_image(self) -> None:
        self.tab_bar.setCurrentIndex(0)
        self.analysis_panel.on_open_clicked()
        self.update_window_title()

    def on_load_analysis_json(self) -> None:
        """Show a previously saved interpretation answer without calling the service."""
        fname, _ = QFileDialog.getOpenFileName(
            self, "Load Analysis", config.ASSETS_PATH, "JSON Files (*.json)"
        )
        if fname:
            self.load_analysis_file(fname)

    def load_analysis_file(self, fname: str) -> None:
        try:
            with open(fname, "r", encoding="utf-8") as f:
                result = parse_answer(f.read())
        except (OSError, InterpretationError) as e:
            logger.error(f"Failed to load analysis '{fname}': {e}")
            QMessageBox.critical(self, "Error", f"Could not load the analysis:\n{e}")
            return

        logger.info(f"Loaded analysis from {fname} ({len(result.objects)} objects).")
        self.tab_bar.setCurrentIndex(0)
        self.analysis_panel.show_result(result)

    def on_record_selected(self, record: AnalysisRecord) -> None:
        self.session.set_record(record)
        self.analysis_panel.load_from_state()
        self.update_visualization()

    def on_max_depth_changed(self, value: float) -> None:
        self.scene_view.set_options(max_depth=value)

    def closeEvent(self, event, /) -> None:
        if self._closing_worker is not None:
            # Repeated close requests wait for the analysis thread
            event.ignore()
            return

        worker = self.analysis_panel.worker
        if worker is not None and worker.isRunning():
            reply = QMessageBox.question(
                self,
                "Analysis running",
                "An analysis is still running. Quit anyway?",
                QMessageBox.Yes | QMessageBox.No,
            )
            if reply != QMessageBox.Yes:
                event.ignore()
                return

            # The window closes once the request returns
            self._closing_worker = self.analysis_panel.detach_worker()
            if self._closing_worker is not None:
                self._closing_worker.finished.connect(self._on_closing_worker_finished)
                self.setEnabled(False)
                self.statusBar().showMessage("Waiting for the running analysis to stop...")
                event.ignore()
                return
        event.accept()

    def _on_closing_worker_finished(self) -> None:
        worker = self._closing_worker
        self._closing_worker = None
        if worker is not None:
            # finished is emitted just before the thread exits
            worker.wait()
        self.close()
