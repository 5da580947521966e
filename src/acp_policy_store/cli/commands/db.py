"""Database commands for acp-policy-store CLI."""

import sys

import click

from acp_policy_store.exceptions import BackendError

from ..context import CLIState, pass_state


@click.command("init-db")
@pass_state
def init_db(state: CLIState) -> None:
    """Create the policy tables (safe to run repeatedly)."""
    backend = state.backend()
    try:
        backend.create_schemas()
    except BackendError as e:
        click.echo(f"✗ {e}", err=True)
        sys.exit(1)

    click.echo(f"✓ Policy tables ready in {backend.path}")
