"""Policy file helpers."""

from acp_policy_store.utils.policy.policy_helpers import load_policy_records, validate_templates

__all__ = [
    "load_policy_records",
    "validate_templates",
]
