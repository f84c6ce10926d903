"""
Logging setup
Console output plus a rotating log file, sized from settings
"""
import logging
import os
from logging.handlers import RotatingFileHandler
from app.core.config import settings

LOG_FORMAT = '%(asctime)s - %(levelname)s - %(name)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def setup_logging() -> logging.Logger:
    """
    Configure the root logger once.
    Safe to call repeatedly (handlers are replaced, not stacked).
    """
    level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    root = logging.getLogger()
    root.setLevel(level)

    # Remove existing handlers to avoid duplicates
    for handler in list(root.handlers):
        if getattr(handler, "_seminar_handler", False):
            root.removeHandler(handler)

    console = logging.StreamHandler()
    console.setFormatter(formatter)
    console._seminar_handler = True
    root.addHandler(console)

    if settings.LOG_FILE:
        log_dir = os.path.dirname(settings.LOG_FILE)
        try:
            if log_dir:
                os.makedirs(log_dir, exist_ok=True)
            file_handler = RotatingFileHandler(
                settings.LOG_FILE,
                maxBytes=settings.LOG_MAX_SIZE,
                backupCount=settings.LOG_BACKUP_COUNT
            )
        except OSError as e:
            root.warning(f"[LOGGING] Could not open log file {settings.LOG_FILE}: {e}")
        else:
            file_handler.setFormatter(formatter)
            file_handler._seminar_handler = True
            root.addHandler(file_handler)

    return root
