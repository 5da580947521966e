"""Config command group for acp-policy-store CLI.

Provides configuration management subcommands.
"""

import json
import sys

import click

from acp_policy_store.config import AppConfig, DatabaseConfig, LoggingConfig

from ..context import CLIState, pass_state


@click.group()
def config() -> None:
    """Configuration management commands."""
    pass


@config.command("path")
@pass_state
def config_path_cmd(state: CLIState) -> None:
    """Show config file path."""
    click.echo(str(state.config_path))

    if not state.config_path.exists():
        click.echo("(file does not exist - run 'acp-policy-store config init' to create)", err=True)


@config.command("show")
@pass_state
def config_show(state: CLIState) -> None:
    """Display the effective configuration."""
    click.echo(json.dumps(state.config.model_dump(), indent=2))


@config.command("init")
@click.option("--database", "database_path", help="SQLite database file")
@click.option("--log-dir", help="Base directory for log files")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO"]),
    default="INFO",
    show_default=True,
    help="Logging level",
)
@click.option("--force", "-f", is_flag=True, help="Overwrite an existing config file")
@pass_state
def config_init(
    state: CLIState,
    database_path: str | None,
    log_dir: str | None,
    log_level: str,
    force: bool,
) -> None:
    """Write a config file with the given settings."""
    if state.config_path.exists() and not force:
        click.echo(f"✗ Config file already exists: {state.config_path} (use --force to overwrite)", err=True)
        sys.exit(1)

    database = DatabaseConfig(path=database_path) if database_path else DatabaseConfig()
    new_config = AppConfig(
        database=database,
        logging=LoggingConfig(log_dir=log_dir, log_level=log_level),
    )
    new_config.save_to_file(state.config_path)
    click.echo(f"✓ Config written to {state.config_path}")
