"""Link tables - per-dimension template storage.

Each matchable dimension (subjects, resources, permissions) is stored in its
own table with identical layout:

    (template, compiled, policy)   PRIMARY KEY (template, policy)

`compiled` is the anchored pattern derived from `template`. It is persisted
so lookups never recompile templates at query time.
"""

from __future__ import annotations

__all__ = [
    "LinkEntry",
    "LinkTable",
]

from dataclasses import dataclass

from acp_policy_store.constants import LINK_TABLES, POLICY_TABLE
from acp_policy_store.storage.backend import Transaction
from acp_policy_store.templates.compiler import compile_template


@dataclass(frozen=True)
class LinkEntry:
    """One stored template of a policy.

    Attributes:
        template: Template as written by the policy author.
        compiled: Anchored pattern derived from the template.
        policy: Id of the owning policy.
    """

    template: str
    compiled: str
    policy: str


class LinkTable:
    """Persistence for one dimension's templates.

    Stateless apart from the table name; the same class serves subjects,
    resources and permissions.
    """

    def __init__(self, table: str) -> None:
        if table not in LINK_TABLES:
            raise ValueError(f"Unknown link table: {table!r}")
        self.table = table

    def __repr__(self) -> str:
        return f"LinkTable({self.table!r})"

    def build_entry(self, policy_id: str, template: str, start: str, end: str) -> LinkEntry:
        """Compile a template into the entry that will be stored.

        Raises:
            CompileError: If the template cannot be compiled.
        """
        return LinkEntry(
            template=template,
            compiled=compile_template(template, start, end).pattern,
            policy=policy_id,
        )

    def insert(self, tx: Transaction, entry: LinkEntry) -> None:
        tx.execute(
            f"INSERT INTO {self.table} (policy, template, compiled) VALUES (?, ?, ?)",
            (entry.policy, entry.template, entry.compiled),
        )

    def templates_for(self, tx: Transaction, policy_id: str) -> list[str]:
        """Get the raw templates a policy declares in this dimension."""
        rows = tx.fetch_all(f"SELECT template FROM {self.table} WHERE policy = ?", (policy_id,))
        return [row[0] for row in rows]

    def policies_matching(self, tx: Transaction, value: str) -> list[str]:
        """Get ids of policies with at least one pattern matching the whole value.

        No match is an empty list, never an error.
        """
        rows = tx.fetch_all(
            f"SELECT DISTINCT policy FROM {self.table} WHERE template_match(compiled, ?)",
            (value,),
        )
        return [row[0] for row in rows]

    def policies_without_links(self, tx: Transaction) -> list[str]:
        """Get ids of policies with no entries in this dimension.

        For the subject table these are the global policies.
        """
        rows = tx.fetch_all(
            f"SELECT p.id FROM {POLICY_TABLE} p "
            f"LEFT JOIN {self.table} l ON p.id = l.policy "
            "WHERE l.policy IS NULL"
        )
        return [row[0] for row in rows]
