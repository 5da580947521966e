"""Main CLI entry point for acp-policy-store.

Defines the CLI group and registers all subcommands.

Commands:
    init-db  - Create the policy tables
    policy   - Policy management commands
        validate - Validate a policy file
        add      - Store the policies of a policy file
        get      - Show a stored policy
        find     - Show the policies that apply to a subject
        delete   - Delete a stored policy
    config   - Configuration management commands
        init - Write a config file
        show - Display effective configuration
        path - Show config file path

Usage:
    acp-policy-store -h, --help                 Show help message
    acp-policy-store -v, --version              Show version
    acp-policy-store init-db                    Create tables
    acp-policy-store policy add policies.json   Store policies
    acp-policy-store policy find users:alice    Resolve policies for a subject

Subcommand help:
    acp-policy-store COMMAND -h      Show help for a specific command
"""

import sys
from pathlib import Path

import click

from acp_policy_store import __version__
from acp_policy_store.config import AppConfig, get_config_path

from .commands.config import config
from .commands.db import init_db
from .commands.policy import policy
from .context import CLIState


def _load_config(ctx: click.Context, config_path: Path | None) -> tuple[AppConfig, Path]:
    """Load the config file, falling back to defaults when none exists.

    An explicitly given config file must exist. The config commands tolerate
    a broken config file so it can be rewritten with `config init --force`.
    """
    path = config_path or get_config_path()
    if config_path is None and not path.exists():
        return AppConfig(), path

    try:
        return AppConfig.load_from_files(path), path
    except (FileNotFoundError, ValueError) as e:
        if ctx.invoked_subcommand == "config":
            return AppConfig(), path
        click.echo(f"✗ {e}", err=True)
        sys.exit(1)


@click.group(
    invoke_without_command=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)
@click.option("--version", "-v", is_flag=True, help="Show version")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Path to config file (default: OS config location)",
)
@click.option("--database", "database_path", help="SQLite database file (overrides config)")
@click.pass_context
def cli(ctx: click.Context, version: bool, config_path: Path | None, database_path: str | None) -> None:
    """acp-policy-store: storage and subject matching for access-control policies."""
    if version:
        click.echo(f"acp-policy-store {__version__}")
        sys.exit(0)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())
        return

    app_config, resolved_path = _load_config(ctx, config_path)
    if database_path:
        app_config = app_config.model_copy(
            update={"database": app_config.database.model_copy(update={"path": database_path})}
        )
    ctx.obj = CLIState(config=app_config, config_path=resolved_path)


# Register commands
cli.add_command(init_db)
cli.add_command(policy)
cli.add_command(config)


def main() -> None:
    """CLI entry point."""
    cli()
