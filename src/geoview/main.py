"""
Application Initialization
==========================
This module constructs the MVC (Model-View-Controller) architecture and starts
the Qt Event Loop.

Why is this file needed?
------------------------
It acts as the "Dependency Injection" root. It:
1. Configures logging from the environment.
2. Instantiates the session state and the history store (Model).
3. Instantiates the Main Window (View) and hands it the Model.
"""
import logging
import sys

from geoview import config
from geoview.app import create_app
from geoview.logging_config import setup_logging
from geoview.model.history import HistoryManager
from geoview.model.state import SessionState
from geoview.view.main_window import MainWindow

logger = logging.getLogger(__name__)


def main() -> None:
    setup_logging(level=config.LOG_LEVEL, log_file=config.LOG_FILE)

    app = create_app()

    session = SessionState()
    history = HistoryManager()
    logger.info(f"History file: {history.path}")

    window = MainWindow(session, history)
    window.show()

    sys.exit(app.exec())


if __name__ == "__main__":
    main()
