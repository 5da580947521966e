"""System logger for operational events.

Logs are written to <log_dir>/acp_policy_store_logs/system/system.jsonl once
configure_system_logger() has been called. Until then events only reach
whatever handlers the host application installed on the root logger.
"""

from __future__ import annotations

__all__ = [
    "SYSTEM_LOGGER_NAME",
    "configure_system_logger",
    "get_system_log_path",
    "get_system_logger",
]

import logging
from pathlib import Path
from typing import Literal

from acp_policy_store.constants import LOGS_DIR_NAME, SYSTEM_LOG_FILE_NAME
from acp_policy_store.utils.logging.logger_setup import setup_jsonl_logger

SYSTEM_LOGGER_NAME = "acp-policy-store.system"

_logger = logging.getLogger(SYSTEM_LOGGER_NAME)
# Library default: stay silent unless the application configures logging
_logger.addHandler(logging.NullHandler())


def get_system_logger() -> logging.Logger:
    """Get the shared system logger."""
    return _logger


def get_system_log_path(log_dir: str | Path) -> Path:
    """Get the system.jsonl path under a base log directory."""
    return Path(log_dir).expanduser() / LOGS_DIR_NAME / "system" / SYSTEM_LOG_FILE_NAME


def configure_system_logger(log_dir: str | Path, log_level: Literal["DEBUG", "INFO"] = "INFO") -> logging.Logger:
    """Write system events to system.jsonl under log_dir.

    Args:
        log_dir: Base log directory (from LoggingConfig).
        log_level: "DEBUG" also records lookups and no-op deletes.

    Returns:
        The system logger.
    """
    level = logging.DEBUG if log_level == "DEBUG" else logging.INFO
    return setup_jsonl_logger(SYSTEM_LOGGER_NAME, get_system_log_path(log_dir), level)
