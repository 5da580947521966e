"""Template compilation for subject, resource and permission matching."""

from acp_policy_store.templates.compiler import compile_template, delimiter_indices, matches

__all__ = [
    "compile_template",
    "delimiter_indices",
    "matches",
]
