from __future__ import annotations

import json
import logging
import sys
from typing import Optional

ROOT_LOGGER = "gallerytrap"


class JsonFormatter(logging.Formatter):
    """One JSON object per line.

    Key-value context comes from ``extra={"context": {...}}`` on the log call
    and is merged into the top level of the record."""

    def format(self, record: logging.LogRecord) -> str:
        log = {
            "timestamp": record.created,
            "level": record.levelname,
            "logger": record.name,
            "event": record.getMessage(),
        }
        context = getattr(record, "context", None)
        if isinstance(context, dict):
            for key, value in context.items():
                log.setdefault(key, value)
        if record.exc_info:
            log["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(log, ensure_ascii=False, default=str)


def setup_logging(debug: bool = False, log_file: Optional[str] = None, stream=None) -> logging.Logger:
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(logging.DEBUG if debug else logging.INFO)
    logger.propagate = False
    logger.handlers.clear()

    formatter = JsonFormatter()

    console_handler = logging.StreamHandler(stream or sys.stderr)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger
