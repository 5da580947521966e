"""System (operational) logging."""

from acp_policy_store.telemetry.system.system_logger import (
    configure_system_logger,
    get_system_log_path,
    get_system_logger,
)

__all__ = [
    "configure_system_logger",
    "get_system_log_path",
    "get_system_logger",
]
