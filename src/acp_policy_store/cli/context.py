"""Shared CLI state: resolved config and repository construction."""

from __future__ import annotations

__all__ = [
    "CLIState",
    "pass_state",
]

from dataclasses import dataclass
from pathlib import Path

import click

from acp_policy_store.config import AppConfig
from acp_policy_store.repository import PolicyRepository
from acp_policy_store.storage.sqlite import SQLiteBackend
from acp_policy_store.telemetry.system.system_logger import configure_system_logger


@dataclass
class CLIState:
    """Config resolved from the global options of the cli group.

    Attributes:
        config: Loaded (or default) configuration.
        config_path: Config file the configuration came from or goes to.
    """

    config: AppConfig
    config_path: Path

    def backend(self) -> SQLiteBackend:
        """Create the SQLite backend, enabling file logging if configured."""
        if self.config.logging.log_dir:
            configure_system_logger(self.config.logging.log_dir, self.config.logging.log_level)
        return SQLiteBackend.from_config(self.config.database)

    def repository(self) -> PolicyRepository:
        return PolicyRepository(self.backend())


pass_state = click.make_pass_decorator(CLIState)
