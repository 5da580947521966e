"""Storage backend protocol consumed by the policy repository.

The repository is written against these protocols only. Any relational
store can be plugged in as long as it provides:

- transaction(): scoped transaction, committed on normal exit and rolled
  back on ANY other exit (exception, KeyboardInterrupt, cancellation)
- execute(): single statement, returns the affected row count
- fetch_one(): first row, raising NoRowsError when there is none
- fetch_all(): every row, an empty list when there are none
- template_match(compiled, subject): SQL function performing a full-string
  match of a persisted pattern against a candidate string

Backends raise BackendError for every failure except "no rows".
"""

from __future__ import annotations

__all__ = [
    "NoRowsError",
    "Row",
    "StorageBackend",
    "Transaction",
]

from contextlib import AbstractContextManager
from typing import Any, Protocol, Sequence

Row = tuple[Any, ...]


class NoRowsError(Exception):
    """Sentinel raised by fetch_one() when a query returns no rows.

    Distinct from BackendError so the repository can report "does not exist"
    separately from "backend failure".
    """


class Transaction(Protocol):
    def execute(self, sql: str, params: Sequence[Any] = ()) -> int:
        ...

    def fetch_one(self, sql: str, params: Sequence[Any] = ()) -> Row:
        ...

    def fetch_all(self, sql: str, params: Sequence[Any] = ()) -> list[Row]:
        ...


class StorageBackend(Protocol):
    def transaction(self, readonly: bool = False) -> AbstractContextManager[Transaction]:
        ...
