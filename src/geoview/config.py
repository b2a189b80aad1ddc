"""
Configuration & Path Management
===============================
Central registry for file paths, service settings and global constants.

Why is this file needed?
------------------------
1. Abstraction: it prevents hardcoded paths and endpoints scattered
   throughout the code.
2. Environment: the interpretation service key and the history location come
   from environment variables, so nothing secret lives in the repository.
3. Deployment: it handles the logic required by PyInstaller (sys._MEIPASS) to
   find assets when the app is frozen into an executable.

Exports:
    ASSETS_PATH (str): Absolute path to the assets directory.
    SAMPLE_ANALYSIS_PATH (str): Bundled example answer for offline viewing.
    GEMINI_API_KEY (str): Key for the Gemini REST API ("" when unset).
    GEMINI_MODEL (str): Model name used for interpretation.
    GEMINI_BASE_URL (str): Base URL of the generative language API.
    REQUEST_TIMEOUT (float): HTTP timeout in seconds.
    HISTORY_PATH (str): JSON file holding past analyses.
    DEFAULT_MAX_DEPTH_M (float): Survey depth represented by the full y range.
    LOG_LEVEL (str): Level name for the geoview logger.
    LOG_FILE (str | None): Optional file that receives a copy of the log.
"""
import logging
import os
import sys
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


def get_resource_path(relative_path: str) -> str:
    """
    Get absolute path to resource, works for dev and for PyInstaller.
    """
    if hasattr(sys, '_MEIPASS'):
        base_path: str = getattr(sys, '_MEIPASS')
        return os.path.join(base_path, relative_path)

    # config.py is in src/geoview/
    project_root: Path = Path(__file__).parent.parent.parent
    return os.path.join(str(project_root), relative_path)


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning(f"Ignoring invalid {name}={raw!r}, using {default}.")
        return default


# Paths
ASSETS_PATH: str = get_resource_path("assets")
SAMPLE_ANALYSIS_PATH: str = os.path.join(ASSETS_PATH, "sample_analysis.json")
HISTORY_PATH: str = os.environ.get(
    "GEOVIEW_HISTORY",
    os.path.join(os.path.expanduser("~"), ".geoview", "history.json"),
)

# Interpretation service
GEMINI_API_KEY: str = os.environ.get("GEMINI_API_KEY", "")
GEMINI_MODEL: str = os.environ.get("GEOVIEW_GEMINI_MODEL", "gemini-1.5-flash")
GEMINI_BASE_URL: str = os.environ.get(
    "GEOVIEW_GEMINI_BASE_URL", "https://generativelanguage.googleapis.com/v1beta"
)
REQUEST_TIMEOUT: float = _env_float("GEOVIEW_REQUEST_TIMEOUT", 30.0)

# Scene
DEFAULT_MAX_DEPTH_M: float = _env_float("GEOVIEW_MAX_DEPTH", 5.0)
LOG_LEVEL: str = os.environ.get("GEOVIEW_LOG_LEVEL", "INFO").upper()
LOG_FILE: Optional[str] = os.environ.get("GEOVIEW_LOG_FILE") or None
