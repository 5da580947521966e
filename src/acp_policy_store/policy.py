"""Policy model for the policy store.

Policy structure:
    PolicyRecord
    ├── id: Opaque unique identifier (UUID string by default)
    ├── description: Free text
    ├── effect: "allow" | "deny"
    ├── conditions: Opaque condition descriptors (stored as JSON)
    ├── subjects: Templates matched against the requesting subject
    ├── resources: Templates matched against the target resource
    ├── permissions: Templates matched against the requested action
    └── start_delimiter / end_delimiter: Used only when compiling templates

Design principles:
1. Effect is mandatory - a policy is never implicitly allow or deny
2. Template sets are sets: order is not significant, duplicates are rejected
3. No subjects means the policy is GLOBAL and applies to every subject
4. Records are immutable - change a policy by deleting and recreating it
"""

from __future__ import annotations

__all__ = [
    "Dimension",
    "PolicyRecord",
]

import uuid
from collections import Counter
from typing import Any, Literal, Self

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator, model_validator

from acp_policy_store.constants import DEFAULT_END_DELIMITER, DEFAULT_START_DELIMITER

Dimension = Literal["subjects", "resources", "permissions"]


def _new_policy_id() -> str:
    return str(uuid.uuid4())


class PolicyRecord(BaseModel):
    """A stored access-control policy.

    Attributes:
        id: Unique identifier, immutable once created.
        description: Human-readable description (default: empty).
        effect: Verdict the policy contributes when it applies.
        conditions: Condition descriptors, evaluated elsewhere. Either a list
            of objects or a keyed object; empty list when absent.
        subjects: Subject templates, e.g. "users:<.+>". Empty = global policy.
        resources: Resource templates, e.g. "articles:<[0-9]+>".
        permissions: Action templates, e.g. "view".
        start_delimiter: Opening delimiter of template fragments.
        end_delimiter: Closing delimiter of template fragments.
    """

    id: str = Field(default_factory=_new_policy_id, min_length=1)
    description: str = ""
    effect: Literal["allow", "deny"]
    conditions: list[dict[str, Any]] | dict[str, Any] = Field(default_factory=list)
    subjects: frozenset[str] = frozenset()
    resources: frozenset[str] = frozenset()
    permissions: frozenset[str] = frozenset()
    start_delimiter: str = Field(default=DEFAULT_START_DELIMITER, min_length=1, max_length=1)
    end_delimiter: str = Field(default=DEFAULT_END_DELIMITER, min_length=1, max_length=1)

    model_config = ConfigDict(frozen=True)

    @field_validator("description", mode="before")
    @classmethod
    def _none_description_is_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("conditions", mode="before")
    @classmethod
    def _none_conditions_is_empty(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("subjects", "resources", "permissions", mode="before")
    @classmethod
    def reject_duplicate_templates(cls, value: Any) -> Any:
        """Reject a template declared twice in the same dimension.

        A bare string is rejected too, since it would otherwise be read as
        a set of single characters.
        """
        if value is None:
            return frozenset()
        if isinstance(value, str):
            raise ValueError("must be a list of templates, not a single string")
        if isinstance(value, (list, tuple)):
            duplicates = sorted(t for t, n in Counter(value).items() if n > 1)
            if duplicates:
                raise ValueError(f"duplicate templates: {', '.join(duplicates)}")
        return value

    @model_validator(mode="after")
    def delimiters_differ(self) -> Self:
        """Validate that start and end delimiters are different characters."""
        if self.start_delimiter == self.end_delimiter:
            raise ValueError("start_delimiter and end_delimiter must differ")
        return self

    @field_serializer("subjects", "resources", "permissions")
    def _sorted_templates(self, templates: frozenset[str]) -> list[str]:
        return sorted(templates)

    @property
    def is_global(self) -> bool:
        """True if the policy applies to every subject."""
        return not self.subjects

    def templates(self, dimension: Dimension) -> frozenset[str]:
        """Get the templates of one dimension."""
        return getattr(self, dimension)
