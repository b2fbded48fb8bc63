"""
Process-wide logging setup.

Console output uses a plain text format; when a log directory is configured a
rotating file receives one JSON object per record.
"""

import json
import logging
import os
import sys
from datetime import datetime
from logging.handlers import RotatingFileHandler
from typing import Optional

CONSOLE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_FILE_NAME = "radio_engine.log"

# Attributes every LogRecord carries; anything else came in through ``extra``
_RESERVED_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


class JsonFormatter(logging.Formatter):
    """Render log records as single-line JSON.

    Records carry timestamp, level, logger name and message, plus any fields
    passed through ``extra=`` and the formatted traceback when present.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS:
                log_data[key] = value

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


def setup_logging(
    level: int = logging.INFO,
    log_path: Optional[str] = None,
    max_bytes: int = 10 * 1024 * 1024,
    backup_count: int = 5,
    logger: Optional[logging.Logger] = None,
) -> logging.Logger:
    """Configure handlers on the root logger (or on ``logger`` when given).

    Args:
        level: Log level for the root logger and its handlers
        log_path: Directory for the JSON log file (console only if not provided)
        max_bytes: Size at which the log file rotates
        backup_count: Number of rotated files kept
        logger: Logger to configure instead of the root logger

    Returns:
        The configured logger
    """
    root = logger if logger is not None else logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    root.addHandler(console_handler)

    if log_path:
        try:
            os.makedirs(log_path, exist_ok=True)
            file_handler = RotatingFileHandler(
                os.path.join(log_path, LOG_FILE_NAME),
                maxBytes=max_bytes,
                backupCount=backup_count,
            )
            file_handler.setLevel(level)
            file_handler.setFormatter(JsonFormatter())
            root.addHandler(file_handler)
        except OSError as e:
            root.warning(f"Could not create log file: {e}. Logging to console only.")

    return root
