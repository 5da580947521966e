"""Shared utilities: file helpers, logging setup, policy file loading."""
