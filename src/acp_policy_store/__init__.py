"""acp-policy-store: persistence and subject matching for access-control policies.

Structure:
    policy.py          - PolicyRecord model
    templates/         - Template compiler (delimited templates -> anchored patterns)
    storage/           - Backend protocols, link tables, SQLite backend
    repository.py      - PolicyRepository (create, get, delete, find_by_subject)
    exceptions.py      - Error taxonomy
    config.py          - AppConfig (database, logging)

Example:
    backend = SQLiteBackend("policies.db")
    backend.create_schemas()
    repository = PolicyRepository(backend)
    repository.create(PolicyRecord(id="p1", effect="allow", subjects=["users:<.+>"]))
    repository.find_by_subject("users:alice")
"""

__version__ = "0.1.0"

from acp_policy_store.exceptions import (
    BackendError,
    CompileError,
    NotFoundError,
    PolicyStoreError,
    SerializationError,
)
from acp_policy_store.policy import PolicyRecord
from acp_policy_store.repository import PolicyRepository
from acp_policy_store.storage import LinkEntry, LinkTable, SQLiteBackend, StorageBackend, Transaction
from acp_policy_store.templates import compile_template

__all__ = [
    "__version__",
    # Errors
    "BackendError",
    "CompileError",
    "NotFoundError",
    "PolicyStoreError",
    "SerializationError",
    # Model
    "PolicyRecord",
    # Repository and storage
    "LinkEntry",
    "LinkTable",
    "PolicyRepository",
    "SQLiteBackend",
    "StorageBackend",
    "Transaction",
    # Templates
    "compile_template",
]
