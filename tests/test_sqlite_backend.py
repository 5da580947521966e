"""Tests for the SQLite backend and link tables.

Tests use the AAA pattern (Arrange-Act-Assert) for clarity.
"""

from __future__ import annotations

import sqlite3
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from acp_policy_store.config import DatabaseConfig
from acp_policy_store.constants import POLICY_TABLE, SUBJECT_TABLE
from acp_policy_store.exceptions import BackendError, CompileError
from acp_policy_store.storage.backend import NoRowsError
from acp_policy_store.storage.links import LinkEntry, LinkTable
from acp_policy_store.storage.sqlite import SQLiteBackend


def _insert_policy(tx, policy_id: str) -> None:
    tx.execute(f"INSERT INTO {POLICY_TABLE} (id, effect) VALUES (?, 'allow')", (policy_id,))


def _policy_exists(backend: SQLiteBackend, policy_id: str) -> bool:
    with backend.transaction(readonly=True) as tx:
        try:
            tx.fetch_one(f"SELECT id FROM {POLICY_TABLE} WHERE id = ?", (policy_id,))
        except NoRowsError:
            return False
    return True


# --- Schemas ---


class TestCreateSchemas:
    """Tests for schema provisioning."""

    def test_is_idempotent(self, backend: SQLiteBackend):
        # Act & Assert (fixture already created them once)
        backend.create_schemas()

    def test_creates_all_tables(self, backend: SQLiteBackend):
        # Act
        with backend.transaction(readonly=True) as tx:
            rows = tx.fetch_all("SELECT name FROM sqlite_master WHERE type = 'table'")

        # Assert
        assert {row[0] for row in rows} >= {
            "acp_policy",
            "acp_policy_subject",
            "acp_policy_permission",
            "acp_policy_resource",
        }

    def test_effect_is_constrained(self, backend: SQLiteBackend):
        # Act & Assert
        with pytest.raises(BackendError):
            with backend.transaction() as tx:
                tx.execute(f"INSERT INTO {POLICY_TABLE} (id, effect) VALUES ('x', 'maybe')")

    def test_creates_parent_directories(self, tmp_path: Path):
        # Arrange
        backend = SQLiteBackend(tmp_path / "nested" / "dir" / "policies.db")

        # Act
        backend.create_schemas()

        # Assert
        assert backend.path.exists()

    def test_from_config(self, tmp_path: Path):
        # Arrange
        config = DatabaseConfig(path=str(tmp_path / "p.db"), timeout_seconds=1.5)

        # Act
        backend = SQLiteBackend.from_config(config)

        # Assert
        assert backend.path == tmp_path / "p.db"


# --- Transactions ---


class TestTransaction:
    """Commit on normal exit, rollback on every other exit."""

    def test_commits_on_normal_exit(self, backend: SQLiteBackend):
        # Act
        with backend.transaction() as tx:
            _insert_policy(tx, "committed")

        # Assert
        assert _policy_exists(backend, "committed")

    def test_rolls_back_on_exception(self, backend: SQLiteBackend):
        # Act
        with pytest.raises(RuntimeError):
            with backend.transaction() as tx:
                _insert_policy(tx, "rolled-back")
                raise RuntimeError("boom")

        # Assert
        assert not _policy_exists(backend, "rolled-back")

    def test_rolls_back_on_keyboard_interrupt(self, backend: SQLiteBackend):
        # Act
        with pytest.raises(KeyboardInterrupt):
            with backend.transaction() as tx:
                _insert_policy(tx, "interrupted")
                raise KeyboardInterrupt

        # Assert
        assert not _policy_exists(backend, "interrupted")

    def test_uncommitted_rows_are_invisible_to_other_readers(self, backend: SQLiteBackend):
        # Act
        with backend.transaction() as tx:
            _insert_policy(tx, "pending")
            visible_to_other = _policy_exists(backend, "pending")

        # Assert
        assert visible_to_other is False
        assert _policy_exists(backend, "pending")

    def test_rollback_failure_is_surfaced_with_cause(self, tmp_path: Path):
        # Arrange
        conn = MagicMock()
        conn.in_transaction = True

        def execute(sql, *args):
            if sql == "ROLLBACK":
                raise sqlite3.OperationalError("disk I/O error")
            return MagicMock()

        conn.execute.side_effect = execute
        backend = SQLiteBackend(tmp_path / "p.db")

        # Act
        with patch.object(SQLiteBackend, "_connect", return_value=conn):
            with pytest.raises(BackendError) as exc_info:
                with backend.transaction():
                    raise ValueError("insert failed")

        # Assert
        error = exc_info.value
        assert "insert failed" in str(error)
        assert "rollback also failed" in str(error)
        assert isinstance(error.rollback_error, sqlite3.OperationalError)
        assert isinstance(error.__cause__, ValueError)
        conn.close.assert_called_once()

    def test_statement_errors_become_backend_errors(self, backend: SQLiteBackend):
        # Act & Assert
        with pytest.raises(BackendError) as exc_info:
            with backend.transaction(readonly=True) as tx:
                tx.fetch_all("SELECT * FROM no_such_table")
        assert isinstance(exc_info.value.__cause__, sqlite3.Error)

    def test_fetch_one_without_rows_raises_sentinel(self, backend: SQLiteBackend):
        # Act & Assert
        with pytest.raises(NoRowsError):
            with backend.transaction(readonly=True) as tx:
                tx.fetch_one(f"SELECT id FROM {POLICY_TABLE} WHERE id = 'missing'")

    def test_foreign_keys_are_enforced(self, backend: SQLiteBackend):
        # Act & Assert
        with pytest.raises(BackendError):
            with backend.transaction() as tx:
                LinkTable(SUBJECT_TABLE).insert(tx, LinkEntry("users:alice", r"^users:alice\Z", "no-policy"))


# --- Link Tables ---


class TestLinkTable:
    """Tests for LinkTable persistence and lookups."""

    def test_rejects_unknown_table(self):
        # Act & Assert
        with pytest.raises(ValueError, match="Unknown link table"):
            LinkTable("acp_policy; DROP TABLE acp_policy")

    def test_build_entry_compiles_template(self):
        # Act
        entry = LinkTable(SUBJECT_TABLE).build_entry("p1", "users:<[0-9]+>", "<", ">")

        # Assert
        assert entry == LinkEntry(template="users:<[0-9]+>", compiled=r"^users:([0-9]+)\Z", policy="p1")

    def test_build_entry_raises_compile_error(self):
        # Act & Assert
        with pytest.raises(CompileError):
            LinkTable(SUBJECT_TABLE).build_entry("p1", "users:<", "<", ">")

    def test_insert_and_read_back(self, backend: SQLiteBackend):
        # Arrange
        table = LinkTable(SUBJECT_TABLE)
        entry = table.build_entry("p1", "users:<.+>", "<", ">")

        # Act
        with backend.transaction() as tx:
            _insert_policy(tx, "p1")
            table.insert(tx, entry)
        with backend.transaction(readonly=True) as tx:
            templates = table.templates_for(tx, "p1")
            compiled = tx.fetch_all(f"SELECT compiled FROM {SUBJECT_TABLE} WHERE policy = ?", ("p1",))

        # Assert
        assert templates == ["users:<.+>"]
        assert compiled == [(entry.compiled,)]

    def test_duplicate_template_for_same_policy_is_rejected(self, backend: SQLiteBackend):
        # Arrange
        table = LinkTable(SUBJECT_TABLE)
        entry = table.build_entry("p1", "users:<.+>", "<", ">")

        # Act & Assert
        with pytest.raises(BackendError):
            with backend.transaction() as tx:
                _insert_policy(tx, "p1")
                table.insert(tx, entry)
                table.insert(tx, entry)

    def test_policies_matching_and_without_links(self, backend: SQLiteBackend):
        # Arrange
        table = LinkTable(SUBJECT_TABLE)
        with backend.transaction() as tx:
            _insert_policy(tx, "linked")
            _insert_policy(tx, "unlinked")
            table.insert(tx, table.build_entry("linked", "users:<[a-z]+>", "<", ">"))

        # Act
        with backend.transaction(readonly=True) as tx:
            matched = table.policies_matching(tx, "users:alice")
            unmatched = table.policies_matching(tx, "users:42")
            without = table.policies_without_links(tx)

        # Assert
        assert matched == ["linked"]
        assert unmatched == []
        assert without == ["unlinked"]
