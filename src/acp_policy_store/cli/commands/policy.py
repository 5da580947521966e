"""Policy command group for acp-policy-store CLI.

Provides policy management subcommands.
"""

import json
import sys
from pathlib import Path

import click

from acp_policy_store.exceptions import PolicyStoreError
from acp_policy_store.policy import PolicyRecord
from acp_policy_store.utils.policy import load_policy_records, validate_templates

from ..context import CLIState, pass_state


def _to_json(record: PolicyRecord) -> dict:
    # Delimiters are compile-time only and never read back from storage
    return record.model_dump(mode="json", exclude={"start_delimiter", "end_delimiter"})


@click.group()
def policy() -> None:
    """Policy management commands."""
    pass


@policy.command("validate")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def policy_validate(path: Path) -> None:
    """Validate a policy file without storing it.

    Checks the policy file for:
    - Valid JSON syntax
    - Schema validation (effect, duplicate templates, delimiters)
    - Every template compiles with the policy's delimiters

    Exit codes:
        0: Policies are valid
        1: File is invalid
    """
    try:
        records = load_policy_records(path)
        template_count = sum(validate_templates(record) for record in records)
    except (FileNotFoundError, ValueError) as e:
        click.echo(f"✗ {e}", err=True)
        sys.exit(1)

    click.echo(f"✓ Policy file valid: {path}")
    click.echo(f"  {len(records)} polic{'ies' if len(records) != 1 else 'y'} defined")
    click.echo(f"  {template_count} template{'s' if template_count != 1 else ''} compiled")


@policy.command("add")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@pass_state
def policy_add(state: CLIState, path: Path) -> None:
    """Store every policy in a policy file.

    Each policy is stored in its own transaction. Policies before a failing
    one stay stored.
    """
    try:
        records = load_policy_records(path)
    except (FileNotFoundError, ValueError) as e:
        click.echo(f"✗ {e}", err=True)
        sys.exit(1)

    repository = state.repository()
    for record in records:
        try:
            repository.create(record)
        except PolicyStoreError as e:
            click.echo(f"✗ Policy {record.id}: {e}", err=True)
            sys.exit(1)
        click.echo(f"✓ Created policy {record.id}")


@policy.command("get")
@click.argument("policy_id")
@pass_state
def policy_get(state: CLIState, policy_id: str) -> None:
    """Show a stored policy as JSON."""
    try:
        record = state.repository().get(policy_id)
    except PolicyStoreError as e:
        click.echo(f"✗ {e}", err=True)
        sys.exit(1)

    click.echo(json.dumps(_to_json(record), indent=2))


@policy.command("find")
@click.argument("subject")
@pass_state
def policy_find(state: CLIState, subject: str) -> None:
    """Show every policy that applies to SUBJECT as a JSON list.

    Includes global policies (policies without subject templates).
    """
    try:
        records = state.repository().find_by_subject(subject)
    except PolicyStoreError as e:
        click.echo(f"✗ {e}", err=True)
        sys.exit(1)

    records.sort(key=lambda r: r.id)
    click.echo(json.dumps([_to_json(r) for r in records], indent=2))


@policy.command("delete")
@click.argument("policy_id")
@pass_state
def policy_delete(state: CLIState, policy_id: str) -> None:
    """Delete a stored policy (no error if it does not exist)."""
    try:
        state.repository().delete(policy_id)
    except PolicyStoreError as e:
        click.echo(f"✗ {e}", err=True)
        sys.exit(1)

    click.echo(f"✓ Deleted policy {policy_id}")
