"""
Logging Configuration
Sets up the 'geoview' logger: console output, an optional log file and
redaction of API keys that end up in request error messages.
"""
import logging
import re
import sys
from typing import Optional, Union

# requests puts query parameters into its exception text, e.g. "...?key=AIza..."
_SECRET_PATTERN = re.compile(r"(key=)[^&\s'\"]+", re.IGNORECASE)
REDACTED = "***"


class RedactKeysFilter(logging.Filter):
    """Replaces the value of any ``key=`` query parameter in a record."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = _SECRET_PATTERN.sub(rf"\g<1>{REDACTED}", message)
        if redacted != message:
            record.msg = redacted
            record.args = None
        return True


def resolve_level(level: Union[int, str]) -> int:
    """Accepts logging constants or names such as "debug"; unknown names fall back to INFO."""
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.strip().upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def setup_logging(level: Union[int, str] = logging.INFO, log_file: Optional[str] = None) -> logging.Logger:
    """
    Configures the logger for the 'geoview' namespace.

    Args:
        level: Logging level (e.g. logging.DEBUG or "DEBUG" from GEOVIEW_LOG_LEVEL)
        log_file: Optional path to save logs to a file (GEOVIEW_LOG_FILE).

    Returns:
        The configured package logger.
    """
    level = resolve_level(level)

    # Get the logger for our package
    logger = logging.getLogger("geoview")
    logger.setLevel(level)

    # Check if handlers already exist to avoid duplicate logs when main() runs twice
    if logger.hasHandlers():
        logger.handlers.clear()

    # Format: Time - Module - Level - Message
    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%H:%M:%S'
    )
    redact = RedactKeysFilter()

    # 1. Console Handler (stdout)
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    console_handler.addFilter(redact)
    logger.addHandler(console_handler)

    # 2. File Handler (Optional), appended so earlier sessions survive a restart
    if log_file:
        try:
            file_handler = logging.FileHandler(log_file, mode='a', encoding='utf-8')
        except OSError as e:
            logger.warning(f"Cannot write log file '{log_file}': {e}")
        else:
            file_handler.setLevel(level)
            file_handler.setFormatter(formatter)
            file_handler.addFilter(redact)
            logger.addHandler(file_handler)

    logger.info(f"Logging initialized at {logging.getLevelName(level)}.")
    return logger
