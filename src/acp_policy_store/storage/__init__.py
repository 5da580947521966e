"""Storage layer for the policy store.

Structure:
    backend.py  - StorageBackend / Transaction protocols, NoRowsError sentinel
    links.py    - LinkTable: per-dimension template persistence
    sqlite.py   - SQLiteBackend: bundled SQLite implementation

The repository depends on the protocols only.
"""

from acp_policy_store.storage.backend import NoRowsError, Row, StorageBackend, Transaction
from acp_policy_store.storage.links import LinkEntry, LinkTable
from acp_policy_store.storage.sqlite import SCHEMAS, SQLiteBackend, SQLiteTransaction

__all__ = [
    # Protocols
    "NoRowsError",
    "Row",
    "StorageBackend",
    "Transaction",
    # Link tables
    "LinkEntry",
    "LinkTable",
    # SQLite
    "SCHEMAS",
    "SQLiteBackend",
    "SQLiteTransaction",
]
