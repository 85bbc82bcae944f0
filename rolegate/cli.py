"""Command line interface for checking a principal's permissions."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError

from rolegate import ContextState, PolicyDocument, PrincipalContext, get_role_source
from rolegate.config import load_config
from rolegate.exceptions import FetchFailure
from rolegate.policy.endpoints import resolve_endpoint
from rolegate.sources import BaseRoleSource, load_records

app = typer.Typer(help="CLI for rolegate permission checks")

RecordsOption = typer.Option(
    None, "--records", help="JSON file with role records instead of the configured source"
)


@app.callback()
def main(
    log_level: Optional[str] = typer.Option(None, help="Override the configured log level"),
) -> None:
    """Rolegate CLI entry point."""
    config = load_config()
    logging.basicConfig(level=(log_level or config.log_level).upper())


def _open_source(user: str, org: str, records: Optional[Path]) -> BaseRoleSource:
    if records is None:
        return get_role_source()
    try:
        payload = json.loads(records.read_text())
    except (OSError, ValueError) as e:
        typer.secho(f"Cannot read records file: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=2)
    try:
        return load_records(payload, user, org)
    except (FetchFailure, ValidationError) as e:
        typer.secho(f"Invalid records file: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=2)


async def _load(source: BaseRoleSource, user: str, org: str) -> PrincipalContext:
    context = PrincipalContext(source)
    try:
        await context.set_context(user, org)
    finally:
        await source.disconnect()
    return context


def _load_context(user: str, org: str, records: Optional[Path]) -> PrincipalContext:
    source = _open_source(user, org, records)
    context = asyncio.run(_load(source, user, org))

    for failure in context.failures:
        typer.secho(
            f"Ignoring role {failure.role_id}: {failure.reason}",
            fg=typer.colors.YELLOW,
            err=True,
        )
    if context.state is ContextState.FAILED:
        typer.secho(f"Failed to load roles: {context.error}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=2)
    return context


def _verdict(granted: bool) -> None:
    if granted:
        typer.secho("allowed", fg=typer.colors.GREEN)
        return
    typer.secho("denied", fg=typer.colors.RED)
    raise typer.Exit(code=1)


@app.command("check")
def check(
    user: str,
    org: str,
    action: str,
    resource: str,
    records: Optional[Path] = RecordsOption,
) -> None:
    """
    Check whether USER in ORG may perform ACTION on RESOURCE.

    Prints "allowed" (exit code 0) or "denied" (exit code 1). Exit code 2
    means the roles could not be loaded.

    Example:
        rolegate check u-1 org-1 view task --records roles.json
    """
    context = _load_context(user, org, records)
    _verdict(context.allowed(action, resource))


@app.command("endpoint")
def endpoint(
    user: str,
    org: str,
    endpoint: str,
    records: Optional[Path] = RecordsOption,
) -> None:
    """
    Check an API endpoint such as "GET /tasks" for USER in ORG.

    Example:
        rolegate endpoint u-1 org-1 "DELETE /tasks/42"
    """
    rule = resolve_endpoint(endpoint)
    if rule is None:
        typer.echo(f"No permission mapping for endpoint: {endpoint}", err=True)
    else:
        typer.echo(f"{endpoint} requires {rule.action} on {rule.resource}", err=True)
    context = _load_context(user, org, records)
    _verdict(context.allowed_endpoint(endpoint))


@app.command("effective")
def effective(
    user: str,
    org: str,
    records: Optional[Path] = RecordsOption,
) -> None:
    """Print the effective policy of USER in ORG as JSON."""
    context = _load_context(user, org, records)
    policy = context.policy or PolicyDocument.empty()
    typer.echo(json.dumps(policy.to_dict(), indent=2, sort_keys=True))


if __name__ == "__main__":
    app()
