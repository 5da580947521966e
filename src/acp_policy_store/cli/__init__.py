"""Command-line interface for acp-policy-store.

Provides commands for provisioning the database, managing policies and
managing configuration.
"""

from .main import cli, main

__all__ = ["cli", "main"]
