"""SQLite storage backend.

Implements the StorageBackend protocol on top of the standard library
sqlite3 module.

Connection model:
- One connection per transaction; nothing is shared between threads
- Autocommit driver mode with explicit BEGIN / COMMIT / ROLLBACK
- BEGIN IMMEDIATE for writes (take the write lock up front),
  plain BEGIN for reads (consistent snapshot across several queries)
- WAL journal mode so readers never block on a writer
- foreign_keys=ON on every connection, required for ON DELETE CASCADE

The template_match(compiled, subject) SQL function is registered on every
connection and performs the full-string match used by subject lookups.
"""

from __future__ import annotations

__all__ = [
    "SCHEMAS",
    "SQLiteBackend",
    "SQLiteTransaction",
]

import sqlite3
from contextlib import closing, contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Any, Iterator, Sequence

from acp_policy_store.constants import (
    DEFAULT_DB_TIMEOUT_SECONDS,
    EMPTY_CONDITIONS,
    PERMISSION_TABLE,
    POLICY_TABLE,
    RESOURCE_TABLE,
    SUBJECT_TABLE,
)
from acp_policy_store.exceptions import BackendError
from acp_policy_store.storage.backend import NoRowsError, Row
from acp_policy_store.telemetry.system.system_logger import get_system_logger
from acp_policy_store.templates.compiler import matches

if TYPE_CHECKING:
    from acp_policy_store.config import DatabaseConfig


def _link_table_schema(table: str) -> str:
    return f"""CREATE TABLE IF NOT EXISTS {table} (
        compiled TEXT NOT NULL,
        template TEXT NOT NULL,
        policy   TEXT NOT NULL REFERENCES {POLICY_TABLE} (id) ON DELETE CASCADE,
        PRIMARY KEY (template, policy)
    )"""


SCHEMAS: tuple[str, ...] = (
    f"""CREATE TABLE IF NOT EXISTS {POLICY_TABLE} (
        id          TEXT NOT NULL PRIMARY KEY,
        description TEXT NOT NULL DEFAULT '',
        created_at  TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ', 'now')),
        effect      TEXT NOT NULL CHECK (effect IN ('allow', 'deny')),
        conditions  TEXT NOT NULL DEFAULT '{EMPTY_CONDITIONS}'
    )""",
    _link_table_schema(SUBJECT_TABLE),
    _link_table_schema(PERMISSION_TABLE),
    _link_table_schema(RESOURCE_TABLE),
    # Link rows are fetched and cascade-deleted by policy id
    *(
        f"CREATE INDEX IF NOT EXISTS idx_{table}_policy ON {table} (policy)"
        for table in (SUBJECT_TABLE, PERMISSION_TABLE, RESOURCE_TABLE)
    ),
)

_logger = get_system_logger()


class SQLiteTransaction:
    """Statement execution inside one open SQLite transaction."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def execute(self, sql: str, params: Sequence[Any] = ()) -> int:
        try:
            with closing(self._conn.execute(sql, params)) as cursor:
                return cursor.rowcount
        except sqlite3.Error as e:
            raise BackendError(f"{type(e).__name__}: {e}") from e

    def fetch_one(self, sql: str, params: Sequence[Any] = ()) -> Row:
        try:
            with closing(self._conn.execute(sql, params)) as cursor:
                row = cursor.fetchone()
        except sqlite3.Error as e:
            raise BackendError(f"{type(e).__name__}: {e}") from e
        if row is None:
            raise NoRowsError(sql)
        return tuple(row)

    def fetch_all(self, sql: str, params: Sequence[Any] = ()) -> list[Row]:
        try:
            with closing(self._conn.execute(sql, params)) as cursor:
                return [tuple(row) for row in cursor.fetchall()]
        except sqlite3.Error as e:
            raise BackendError(f"{type(e).__name__}: {e}") from e


class SQLiteBackend:
    """SQLite implementation of the StorageBackend protocol.

    Safe for concurrent use from multiple threads: the instance only holds
    immutable connection settings.

    Attributes:
        path: Database file path.
    """

    def __init__(
        self,
        path: str | Path,
        timeout_seconds: float = DEFAULT_DB_TIMEOUT_SECONDS,
        case_insensitive_match: bool = False,
    ) -> None:
        """Initialize the backend.

        Args:
            path: Database file. Parent directories are created on connect.
            timeout_seconds: How long to wait for a locked database.
            case_insensitive_match: Ignore case in template_match().
        """
        self.path = Path(path)
        self._timeout = timeout_seconds
        self._case_insensitive = case_insensitive_match

    @classmethod
    def from_config(cls, config: "DatabaseConfig") -> "SQLiteBackend":
        """Create a backend from the database section of AppConfig."""
        return cls(
            config.path,
            timeout_seconds=config.timeout_seconds,
            case_insensitive_match=config.case_insensitive_match,
        )

    def _template_match(self, compiled: str, subject: str) -> int:
        return int(matches(compiled, subject, case_insensitive=self._case_insensitive))

    def _connect(self) -> sqlite3.Connection:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(str(self.path), timeout=self._timeout, isolation_level=None)
        except (OSError, sqlite3.Error) as e:
            raise BackendError(f"Cannot open database {self.path}: {e}") from e

        try:
            conn.execute("PRAGMA foreign_keys = ON")
            conn.execute("PRAGMA journal_mode = WAL")
            conn.create_function("template_match", 2, self._template_match, deterministic=True)
        except sqlite3.Error as e:
            conn.close()
            raise BackendError(f"Cannot configure database {self.path}: {e}") from e
        return conn

    @contextmanager
    def transaction(self, readonly: bool = False) -> Iterator[SQLiteTransaction]:
        """Open a scoped transaction.

        Commits when the block exits normally. Any other exit rolls back,
        including KeyboardInterrupt and generator close.

        Args:
            readonly: Start a deferred (read) transaction instead of taking
                the write lock immediately.

        Yields:
            SQLiteTransaction bound to the open transaction.

        Raises:
            BackendError: If begin or commit fails, or if rollback fails
                (the message then names both failures).
        """
        conn = self._connect()
        try:
            try:
                conn.execute("BEGIN" if readonly else "BEGIN IMMEDIATE")
            except sqlite3.Error as e:
                raise BackendError(f"Cannot begin transaction: {e}") from e

            try:
                yield SQLiteTransaction(conn)
            except BaseException as e:
                self._rollback(conn, e)
                raise

            try:
                conn.execute("COMMIT")
            except sqlite3.Error as e:
                self._rollback(conn, e)
                raise BackendError(f"Commit failed: {e}") from e
        finally:
            conn.close()

    def _rollback(self, conn: sqlite3.Connection, cause: BaseException) -> None:
        """Roll back after a failure, surfacing a rollback failure with the cause."""
        if not conn.in_transaction:
            # SQLite already rolled back (e.g. after SQLITE_FULL)
            return
        try:
            conn.execute("ROLLBACK")
        except sqlite3.Error as rb:
            _logger.error(
                {
                    "event": "transaction_rollback_failed",
                    "database": str(self.path),
                    "error_type": type(cause).__name__,
                    "error": str(cause),
                    "rollback_error": str(rb),
                }
            )
            raise BackendError(f"{type(cause).__name__}: {cause}", rollback_error=rb) from cause

    def create_schemas(self) -> None:
        """Create the policy tables if they do not exist.

        Raises:
            BackendError: If any statement fails. Nothing is created then.
        """
        with self.transaction() as tx:
            for statement in SCHEMAS:
                try:
                    tx.execute(statement)
                except BackendError as e:
                    _logger.error(
                        {
                            "event": "schema_creation_failed",
                            "database": str(self.path),
                            "statement": statement,
                            "error": str(e),
                        }
                    )
                    raise
        _logger.info({"event": "schemas_created", "database": str(self.path)})

