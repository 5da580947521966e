"""Exception hierarchy for acp-policy-store.

Every public repository operation either returns a complete result or raises
one of these:

    PolicyStoreError
    ├── NotFoundError        lookup found no row
    ├── CompileError         malformed template, delimiters or regex fragment
    ├── SerializationError   conditions could not be encoded or decoded
    └── BackendError         any other storage failure (incl. rollback failures)

Backend adapters translate driver exceptions into BackendError and chain the
original as __cause__. The repository propagates them unmodified.
"""

from __future__ import annotations

__all__ = [
    "BackendError",
    "CompileError",
    "NotFoundError",
    "PolicyStoreError",
    "SerializationError",
]


class PolicyStoreError(Exception):
    """Base class for all acp-policy-store errors."""


class NotFoundError(PolicyStoreError):
    """Raised when a policy does not exist."""

    def __init__(self, policy_id: str) -> None:
        self.policy_id = policy_id
        super().__init__(f"Policy not found: {policy_id!r}")


class CompileError(PolicyStoreError, ValueError):
    """Raised when a template cannot be compiled into a pattern.

    Attributes:
        template: The template that failed to compile.
        reason: Short description of what is wrong with it.
    """

    def __init__(self, template: str, reason: str) -> None:
        self.template = template
        self.reason = reason
        super().__init__(f"Cannot compile template {template!r}: {reason}")


class SerializationError(PolicyStoreError):
    """Raised when policy conditions cannot be encoded or decoded."""


class BackendError(PolicyStoreError):
    """Raised for storage failures other than "no rows".

    Attributes:
        rollback_error: Set when rolling back after the failure also failed.
            Both failures are named in the message.
    """

    def __init__(self, message: str, rollback_error: BaseException | None = None) -> None:
        self.rollback_error = rollback_error
        if rollback_error is not None:
            message = f"{message} (rollback also failed: {type(rollback_error).__name__}: {rollback_error})"
        super().__init__(message)
