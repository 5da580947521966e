"""Policy repository - transactional storage and subject lookup.

Operations:
- create(policy): policy row + compiled templates of all three dimensions,
  written in ONE transaction (all or nothing)
- get(id): full record, or NotFoundError
- delete(id): idempotent; link rows go with the policy (ON DELETE CASCADE)
- find_by_subject(subject): policies whose subject templates match the
  subject, plus every global policy (no subject templates at all)

Observable states of a policy are "absent" and "committed" only. Readers
never see a policy row without its link rows or the other way round.

The repository keeps no mutable state. All atomicity comes from the
backend's transaction and it is safe to share one instance between threads.
Nothing is retried - retry policy belongs to the caller.
"""

from __future__ import annotations

__all__ = ["PolicyRepository"]

import json
from typing import Any

from pydantic import ValidationError

from acp_policy_store.constants import (
    PERMISSION_TABLE,
    POLICY_TABLE,
    RESOURCE_TABLE,
    SUBJECT_TABLE,
)
from acp_policy_store.exceptions import NotFoundError, SerializationError
from acp_policy_store.policy import Dimension, PolicyRecord
from acp_policy_store.storage.backend import NoRowsError, StorageBackend, Transaction
from acp_policy_store.storage.links import LinkTable
from acp_policy_store.telemetry.system.system_logger import get_system_logger

logger = get_system_logger()


def _encode_conditions(conditions: list[dict[str, Any]] | dict[str, Any]) -> str:
    """Serialize conditions for storage, keeping their shape ({} stays {})."""
    try:
        return json.dumps(conditions)
    except (TypeError, ValueError) as e:
        raise SerializationError(f"Cannot serialize conditions: {e}") from e


def _decode_conditions(policy_id: str, raw: str | None) -> list[dict[str, Any]] | dict[str, Any]:
    if raw is None:
        return []
    try:
        conditions = json.loads(raw)
    except (TypeError, ValueError) as e:
        raise SerializationError(f"Cannot deserialize conditions of policy {policy_id!r}: {e}") from e
    if not isinstance(conditions, (list, dict)):
        raise SerializationError(
            f"Conditions of policy {policy_id!r} must be a JSON array or object, "
            f"got {type(conditions).__name__}"
        )
    return conditions


class PolicyRepository:
    """Stores policies and resolves which policies apply to a subject.

    Attributes:
        backend: Storage backend providing transactions.
    """

    def __init__(self, backend: StorageBackend) -> None:
        self.backend = backend
        self._subjects = LinkTable(SUBJECT_TABLE)
        # Insertion and hydration order of the dimensions
        self._links: tuple[tuple[Dimension, LinkTable], ...] = (
            ("subjects", self._subjects),
            ("permissions", LinkTable(PERMISSION_TABLE)),
            ("resources", LinkTable(RESOURCE_TABLE)),
        )

    def create(self, policy: PolicyRecord) -> None:
        """Store a policy with all of its templates atomically.

        Every template is compiled with the policy's delimiters. The first
        failure (serialization, policy row, any template) rolls back the
        whole transaction, so no part of the policy is ever persisted.

        Args:
            policy: Policy to store.

        Raises:
            SerializationError: If conditions cannot be serialized.
            CompileError: If any template cannot be compiled.
            BackendError: If any write fails, including a duplicate id.
        """
        try:
            conditions = _encode_conditions(policy.conditions)
            with self.backend.transaction() as tx:
                tx.execute(
                    f"INSERT INTO {POLICY_TABLE} (id, description, effect, conditions) VALUES (?, ?, ?, ?)",
                    (policy.id, policy.description, policy.effect, conditions),
                )
                for dimension, table in self._links:
                    # Sorted so the first failing template is deterministic
                    for template in sorted(policy.templates(dimension)):
                        entry = table.build_entry(
                            policy.id,
                            template,
                            policy.start_delimiter,
                            policy.end_delimiter,
                        )
                        table.insert(tx, entry)
        except Exception as e:
            logger.error(
                {
                    "event": "policy_create_failed",
                    "policy_id": policy.id,
                    "error_type": type(e).__name__,
                    "error": str(e),
                }
            )
            raise

        logger.info(
            {
                "event": "policy_created",
                "policy_id": policy.id,
                "effect": policy.effect,
                "subjects_count": len(policy.subjects),
                "resources_count": len(policy.resources),
                "permissions_count": len(policy.permissions),
            }
        )

    def get(self, policy_id: str) -> PolicyRecord:
        """Get a policy with all of its templates.

        Args:
            policy_id: Id of the policy.

        Returns:
            The complete PolicyRecord (default delimiters, since delimiters
            are not persisted).

        Raises:
            NotFoundError: If no policy has this id.
            SerializationError: If stored conditions cannot be decoded.
            BackendError: If any query fails.
        """
        with self.backend.transaction(readonly=True) as tx:
            return self._hydrate(tx, policy_id)

    def delete(self, policy_id: str) -> None:
        """Delete a policy and, by cascade, all of its templates.

        Deleting an id that does not exist is not an error.

        Raises:
            BackendError: If the delete fails.
        """
        with self.backend.transaction() as tx:
            deleted = tx.execute(f"DELETE FROM {POLICY_TABLE} WHERE id = ?", (policy_id,))

        if deleted:
            logger.info({"event": "policy_deleted", "policy_id": policy_id})
        else:
            logger.debug({"event": "policy_delete_noop", "policy_id": policy_id})

    def find_by_subject(self, subject: str) -> list[PolicyRecord]:
        """Find every policy that applies to a subject.

        Result = policies with a subject template matching the WHOLE subject
                 UNION policies without any subject template (global).

        Both lookups and the hydration run in one read transaction, so the
        result is a consistent snapshot.

        Args:
            subject: Subject string, e.g. "users:alice".

        Returns:
            Matching policies in no particular order. Empty if none apply.

        Raises:
            SerializationError: If stored conditions cannot be decoded.
            BackendError: If any query fails.
        """
        with self.backend.transaction(readonly=True) as tx:
            try:
                matched = self._subjects.policies_matching(tx, subject)
            except NoRowsError:
                matched = []
            global_ids = self._subjects.policies_without_links(tx)
            policy_ids = list(dict.fromkeys([*matched, *global_ids]))
            policies = [self._hydrate(tx, policy_id) for policy_id in policy_ids]

        logger.debug(
            {
                "event": "policies_resolved",
                "subject": subject,
                "matched_count": len(matched),
                "global_count": len(global_ids),
            }
        )
        return policies

    def _hydrate(self, tx: Transaction, policy_id: str) -> PolicyRecord:
        """Read one policy row and its templates into a PolicyRecord."""
        try:
            row = tx.fetch_one(
                f"SELECT id, description, effect, conditions FROM {POLICY_TABLE} WHERE id = ?",
                (policy_id,),
            )
        except NoRowsError:
            raise NotFoundError(policy_id) from None

        stored_id, description, effect, raw_conditions = row
        fields: dict[str, Any] = {
            "id": stored_id,
            "description": description,
            "effect": effect,
            "conditions": _decode_conditions(stored_id, raw_conditions),
        }
        for dimension, table in self._links:
            fields[dimension] = table.templates_for(tx, stored_id)

        try:
            return PolicyRecord.model_validate(fields)
        except ValidationError as e:
            raise SerializationError(f"Stored policy {stored_id!r} is invalid: {e}") from e
