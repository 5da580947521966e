"""Logger setup helpers for JSONL log files.

Loggers in acp-policy-store log dicts rather than format strings:

    logger.info({"event": "policy_created", "policy_id": "p1"})

JsonlFormatter turns each record into one JSON line, adding an ISO 8601
"time" and the "level". Plain string messages are written under "message".
"""

from __future__ import annotations

__all__ = [
    "JsonlFormatter",
    "setup_jsonl_logger",
]

import json
import logging
from datetime import datetime, timezone
from pathlib import Path


class JsonlFormatter(logging.Formatter):
    """Format log records as single-line JSON objects."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, object] = {
            "time": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
        }
        if isinstance(record.msg, dict):
            entry.update(record.msg)
        else:
            entry["message"] = record.getMessage()
        if record.exc_info:
            entry["stacktrace"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def setup_jsonl_logger(name: str, log_path: Path, log_level: int = logging.INFO) -> logging.Logger:
    """Attach a JSONL file handler to a named logger.

    Calling it again for the same logger replaces the previous file handler,
    so reconfiguring never duplicates lines.

    Args:
        name: Logger name.
        log_path: File to append to. Parent directories are created.
        log_level: Minimum level written.

    Returns:
        The configured logger.
    """
    logger = logging.getLogger(name)
    logger.setLevel(log_level)

    for handler in list(logger.handlers):
        if isinstance(handler, logging.FileHandler):
            logger.removeHandler(handler)
            handler.close()

    log_path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(log_path, encoding="utf-8")
    handler.setFormatter(JsonlFormatter())
    logger.addHandler(handler)
    return logger
