"""
Logging Setup
=============

Console output plus a rotating log file under DATA_DIR/logs.
"""

import logging
import logging.handlers
from pathlib import Path
from typing import Optional

from .config import DATA_DIR, LOG_LEVEL

LOG_FILE_NAME = 'rfid_print_service.log'
LOG_FORMAT = '%(asctime)s %(levelname)s %(name)s: %(message)s'


def setup_logging(level: str = LOG_LEVEL, data_dir: Optional[str] = None) -> Path:
    """Configure root logging; returns the log file path."""
    log_dir = Path(data_dir or DATA_DIR).expanduser() / 'logs'
    log_dir.mkdir(parents=True, exist_ok=True)
    log_path = log_dir / LOG_FILE_NAME

    fmt = logging.Formatter(LOG_FORMAT)
    root = logging.getLogger()
    root.setLevel(level)

    # Avoid duplicate handlers when called twice (tests, reloader)
    if not any(getattr(h, 'baseFilename', '') == str(log_path) for h in root.handlers):
        file_handler = logging.handlers.RotatingFileHandler(
            log_path, maxBytes=5_000_000, backupCount=3, encoding='utf-8'
        )
        file_handler.setFormatter(fmt)
        root.addHandler(file_handler)

    if not any(type(h) is logging.StreamHandler for h in root.handlers):
        console = logging.StreamHandler()
        console.setFormatter(fmt)
        root.addHandler(console)

    return log_path
