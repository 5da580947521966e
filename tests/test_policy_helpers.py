"""Tests for policy file loading.

Tests use the AAA pattern (Arrange-Act-Assert) for clarity.
"""

import json
from pathlib import Path

import pytest

from acp_policy_store.exceptions import CompileError
from acp_policy_store.policy import PolicyRecord
from acp_policy_store.utils.policy import load_policy_records, validate_templates


def _write(path: Path, data) -> Path:
    path.write_text(json.dumps(data))
    return path


class TestLoadPolicyRecords:
    """Tests for load_policy_records."""

    def test_loads_single_object(self, tmp_path: Path):
        # Arrange
        path = _write(tmp_path / "p.json", {"id": "p1", "effect": "allow", "subjects": ["users:<.+>"]})

        # Act
        records = load_policy_records(path)

        # Assert
        assert records == [PolicyRecord(id="p1", effect="allow", subjects=["users:<.+>"])]

    def test_loads_list_in_file_order(self, tmp_path: Path):
        # Arrange
        path = _write(
            tmp_path / "p.json",
            [{"id": "b", "effect": "deny"}, {"id": "a", "effect": "allow"}],
        )

        # Act
        records = load_policy_records(path)

        # Assert
        assert [r.id for r in records] == ["b", "a"]

    def test_missing_file_raises(self, tmp_path: Path):
        # Act & Assert
        with pytest.raises(FileNotFoundError):
            load_policy_records(tmp_path / "missing.json")

    def test_invalid_json_raises(self, tmp_path: Path):
        # Arrange
        path = tmp_path / "p.json"
        path.write_text("[{")

        # Act & Assert
        with pytest.raises(ValueError, match="Invalid JSON"):
            load_policy_records(path)

    def test_errors_name_each_invalid_policy(self, tmp_path: Path):
        # Arrange
        path = _write(
            tmp_path / "p.json",
            [
                {"id": "ok", "effect": "allow"},
                {"id": "no-effect"},
                {"effect": "maybe"},
            ],
        )

        # Act
        with pytest.raises(ValueError) as exc_info:
            load_policy_records(path)

        # Assert
        message = str(exc_info.value)
        assert "Policy no-effect" in message
        assert "effect: Field required" in message
        assert "Policy #2" in message
        assert "Policy ok" not in message


class TestValidateTemplates:
    """Tests for validate_templates."""

    def test_counts_compiled_templates(self):
        # Arrange
        record = PolicyRecord(effect="allow", subjects=["users:<.+>"], resources=["a", "b"], permissions=["view"])

        # Act & Assert
        assert validate_templates(record) == 4

    def test_raises_on_bad_template(self):
        # Arrange
        record = PolicyRecord(effect="allow", resources=["articles:<[0-9]+"])

        # Act & Assert
        with pytest.raises(CompileError):
            validate_templates(record)
