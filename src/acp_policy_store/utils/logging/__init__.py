"""Logging setup helpers."""

from acp_policy_store.utils.logging.logger_setup import JsonlFormatter, setup_jsonl_logger

__all__ = [
    "JsonlFormatter",
    "setup_jsonl_logger",
]
