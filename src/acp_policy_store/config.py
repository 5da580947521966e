"""Application configuration for acp-policy-store.

Defines configuration models for the database connection and logging.
Config is stored at the OS-appropriate location (via click.get_app_dir)
unless a path is given explicitly.

Example usage:
    # Load from config file
    config = AppConfig.load_from_files(config_path)

    # Save new configuration
    config.save_to_file(config_path)
"""

import json
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field

from acp_policy_store.constants import (
    CONFIG_FILE_NAME,
    DEFAULT_DB_PATH,
    DEFAULT_DB_TIMEOUT_SECONDS,
    MAX_DB_TIMEOUT_SECONDS,
    MIN_DB_TIMEOUT_SECONDS,
)
from acp_policy_store.utils.file_helpers import get_app_dir, load_validated_json, require_file_exists


def get_config_path() -> Path:
    """Get the default config file path."""
    return get_app_dir() / CONFIG_FILE_NAME


class DatabaseConfig(BaseModel):
    """Database connection settings.

    Attributes:
        path: SQLite database file.
        timeout_seconds: How long to wait for a locked database (0.1-300).
        case_insensitive_match: Ignore case when matching subjects against
            templates. Off by default: "users:Alice" and "users:alice" are
            different subjects.
    """

    path: str = DEFAULT_DB_PATH
    timeout_seconds: float = Field(
        default=DEFAULT_DB_TIMEOUT_SECONDS,
        ge=MIN_DB_TIMEOUT_SECONDS,
        le=MAX_DB_TIMEOUT_SECONDS,
    )
    case_insensitive_match: bool = False


class LoggingConfig(BaseModel):
    """Logging configuration settings.

    When log_dir is set, system events are written to:
        <log_dir>/
        └── acp_policy_store_logs/
            └── system/
                └── system.jsonl

    Attributes:
        log_dir: Base directory for logs, or None to not write log files.
        log_level: Logging level (DEBUG or INFO). DEBUG adds lookup events.
    """

    log_dir: str | None = None
    log_level: Literal["DEBUG", "INFO"] = "INFO"


class AppConfig(BaseModel):
    """Main application configuration for acp-policy-store.

    Attributes:
        database: Database connection settings.
        logging: Logging configuration.
    """

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    def save_to_file(self, config_path: Path) -> None:
        """Save configuration to JSON file.

        Creates parent directories if they don't exist.
        Sets secure permissions (0o700 directory, 0o600 file).

        Args:
            config_path: Path where the config should be saved.
        """
        config_path.parent.mkdir(parents=True, exist_ok=True)
        config_path.parent.chmod(0o700)

        with open(config_path, "w", encoding="utf-8") as f:
            json.dump(self.model_dump(), f, indent=2)

        config_path.chmod(0o600)

    @classmethod
    def load_from_files(cls, config_path: Path) -> "AppConfig":
        """Load configuration from JSON file.

        Args:
            config_path: Path to the config file.

        Returns:
            AppConfig instance with loaded configuration.

        Raises:
            FileNotFoundError: If config file doesn't exist.
            ValueError: If config file is invalid.
        """
        require_file_exists(
            config_path,
            file_type="configuration",
            hint="Run 'acp-policy-store config init' to create one.",
        )
        return load_validated_json(
            config_path,
            cls,
            file_type="config",
            recovery_hint="Edit the config file or run 'acp-policy-store config init --force'.",
            encoding="utf-8",
        )
