"""File helpers shared by config and policy file loading."""

from __future__ import annotations

__all__ = [
    "format_validation_errors",
    "get_app_dir",
    "load_validated_json",
    "require_file_exists",
]

import json
from pathlib import Path
from typing import TypeVar

import click
from pydantic import BaseModel, ValidationError

from acp_policy_store.constants import APP_NAME

ModelT = TypeVar("ModelT", bound=BaseModel)


def get_app_dir() -> Path:
    """Get the OS-appropriate config directory.

    - macOS: ~/Library/Application Support/acp-policy-store
    - Linux: ~/.config/acp-policy-store (XDG compliant)
    - Windows: C:\\Users\\<user>\\AppData\\Roaming\\acp-policy-store

    Returns:
        Path to the config directory.
    """
    return Path(click.get_app_dir(APP_NAME))


def require_file_exists(path: Path, file_type: str = "file", hint: str = "") -> None:
    """Raise FileNotFoundError with a helpful message if path is missing."""
    if not path.exists():
        message = f"{file_type.capitalize()} file not found at {path}."
        if hint:
            message += f"\n{hint}"
        raise FileNotFoundError(message)


def format_validation_errors(error: ValidationError) -> str:
    """Format pydantic errors as one "  - loc: msg" line each."""
    lines = []
    for item in error.errors():
        loc = ".".join(str(x) for x in item["loc"]) or "<root>"
        lines.append(f"  - {loc}: {item['msg']}")
    return "\n".join(lines)


def load_validated_json(
    path: Path,
    model: type[ModelT],
    file_type: str,
    recovery_hint: str = "",
    encoding: str = "utf-8",
) -> ModelT:
    """Load a JSON file and validate it against a pydantic model.

    Args:
        path: File to load.
        model: Model class to validate against.
        file_type: Name used in error messages (e.g. "config").
        recovery_hint: Appended to validation error messages.
        encoding: File encoding.

    Returns:
        Validated model instance.

    Raises:
        ValueError: If the file is not valid JSON or fails validation.
    """
    try:
        with path.open(encoding=encoding) as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in {file_type} file {path}: {e}") from e
    except OSError as e:
        raise ValueError(f"Could not read {file_type} file {path}: {e}") from e

    try:
        return model.model_validate(data)
    except ValidationError as e:
        message = f"Invalid {file_type} in {path}:\n" + format_validation_errors(e)
        if recovery_hint:
            message += f"\n\n{recovery_hint}"
        raise ValueError(message) from e
