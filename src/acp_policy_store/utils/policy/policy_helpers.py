"""Policy file loader - read policies from JSON files.

A policy file holds either one policy object or a list of them:

    [
      {
        "id": "p1",
        "effect": "allow",
        "subjects": ["users:<.+>"],
        "resources": ["articles:1"],
        "permissions": ["view"]
      }
    ]

Features:
- Detailed validation error messages (per policy, per field)
- Template validation without touching the database
"""

from __future__ import annotations

import json
from pathlib import Path

from pydantic import ValidationError

from acp_policy_store.policy import PolicyRecord
from acp_policy_store.templates.compiler import compile_template
from acp_policy_store.utils.file_helpers import format_validation_errors, require_file_exists

__all__ = [
    "load_policy_records",
    "validate_templates",
]


def load_policy_records(path: Path) -> list[PolicyRecord]:
    """Load policies from a JSON file.

    Args:
        path: Path to a JSON file with one policy object or a list of them.

    Returns:
        Policies in file order.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the file contains invalid JSON or an invalid policy.
    """
    require_file_exists(path, file_type="policy")

    try:
        with path.open(encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in policy file {path}: {e}") from e
    except OSError as e:
        raise ValueError(f"Could not read policy file {path}: {e}") from e

    items = data if isinstance(data, list) else [data]

    records: list[PolicyRecord] = []
    errors: list[str] = []
    for idx, item in enumerate(items):
        try:
            records.append(PolicyRecord.model_validate(item))
        except ValidationError as e:
            label = item.get("id") if isinstance(item, dict) and item.get("id") else f"#{idx}"
            errors.append(f"Policy {label}:\n{format_validation_errors(e)}")

    if errors:
        raise ValueError(f"Invalid policy file {path}:\n" + "\n".join(errors))

    return records


def validate_templates(policy: PolicyRecord) -> int:
    """Compile every template of a policy.

    Args:
        policy: Policy to check.

    Returns:
        Number of templates compiled.

    Raises:
        CompileError: On the first template that does not compile.
    """
    count = 0
    for dimension in ("subjects", "resources", "permissions"):
        for template in sorted(policy.templates(dimension)):
            compile_template(template, policy.start_delimiter, policy.end_delimiter)
            count += 1
    return count
