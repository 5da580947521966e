"""Shared fixtures: a fresh SQLite policy database per test."""

from __future__ import annotations

from pathlib import Path

import pytest

from acp_policy_store.repository import PolicyRepository
from acp_policy_store.storage.sqlite import SQLiteBackend


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "policies.db"


@pytest.fixture
def backend(db_path: Path) -> SQLiteBackend:
    """SQLite backend with the policy tables created."""
    backend = SQLiteBackend(db_path)
    backend.create_schemas()
    return backend


@pytest.fixture
def repository(backend: SQLiteBackend) -> PolicyRepository:
    return PolicyRepository(backend)
