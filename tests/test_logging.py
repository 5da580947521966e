"""Tests for JSONL logging setup.

Tests use the AAA pattern (Arrange-Act-Assert) for clarity.
"""

import json
import logging
import sys
from pathlib import Path

import pytest

from acp_policy_store.telemetry.system import configure_system_logger, get_system_log_path, get_system_logger
from acp_policy_store.utils.logging import JsonlFormatter


@pytest.fixture
def system_logger():
    """Yield the system logger and drop any file handlers afterwards."""
    logger = get_system_logger()
    yield logger
    for handler in list(logger.handlers):
        if isinstance(handler, logging.FileHandler):
            logger.removeHandler(handler)
            handler.close()
    logger.setLevel(logging.NOTSET)


def _record(msg, level=logging.INFO, exc_info=None) -> logging.LogRecord:
    return logging.LogRecord("test", level, __file__, 1, msg, None, exc_info)


class TestJsonlFormatter:
    """Tests for JsonlFormatter."""

    def test_dict_message_is_merged(self):
        # Act
        line = JsonlFormatter().format(_record({"event": "policy_created", "policy_id": "p1"}))

        # Assert
        entry = json.loads(line)
        assert entry["event"] == "policy_created"
        assert entry["policy_id"] == "p1"
        assert entry["level"] == "INFO"
        assert "time" in entry

    def test_string_message_goes_under_message(self):
        # Act
        entry = json.loads(JsonlFormatter().format(_record("plain text", logging.WARNING)))

        # Assert
        assert entry["message"] == "plain text"
        assert entry["level"] == "WARNING"

    def test_exception_adds_stacktrace(self):
        # Arrange
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            exc_info = sys.exc_info()

        # Act
        entry = json.loads(JsonlFormatter().format(_record({"event": "x"}, logging.ERROR, exc_info)))

        # Assert
        assert "RuntimeError: boom" in entry["stacktrace"]

    def test_output_is_single_line(self):
        # Act
        line = JsonlFormatter().format(_record({"event": "x", "detail": "a\nb"}))

        # Assert
        assert "\n" not in line


class TestConfigureSystemLogger:
    """Tests for configure_system_logger."""

    def test_log_path_layout(self, tmp_path: Path):
        # Act
        path = get_system_log_path(tmp_path)

        # Assert
        assert path == tmp_path / "acp_policy_store_logs" / "system" / "system.jsonl"

    def test_writes_events_to_file(self, tmp_path: Path, system_logger: logging.Logger):
        # Arrange
        configure_system_logger(tmp_path)

        # Act
        system_logger.info({"event": "schemas_created"})
        for handler in system_logger.handlers:
            handler.flush()

        # Assert
        lines = get_system_log_path(tmp_path).read_text().splitlines()
        assert json.loads(lines[-1])["event"] == "schemas_created"

    def test_info_level_drops_debug_events(self, tmp_path: Path, system_logger: logging.Logger):
        # Arrange
        configure_system_logger(tmp_path, "INFO")

        # Act
        system_logger.debug({"event": "policies_resolved"})
        for handler in system_logger.handlers:
            handler.flush()

        # Assert
        assert get_system_log_path(tmp_path).read_text() == ""

    def test_reconfiguring_does_not_duplicate_handlers(self, tmp_path: Path, system_logger: logging.Logger):
        # Act
        configure_system_logger(tmp_path)
        configure_system_logger(tmp_path, "DEBUG")

        # Assert
        file_handlers = [h for h in system_logger.handlers if isinstance(h, logging.FileHandler)]
        assert len(file_handlers) == 1
        assert system_logger.level == logging.DEBUG
