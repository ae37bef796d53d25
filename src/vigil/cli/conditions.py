"""CLI commands for stream alert conditions."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import typer
import yaml

from vigil.cli._errors import get_manager, handle_error, require_manager
from vigil.conditions import default_registry

app = typer.Typer(help="Create, update, list and delete stream alert conditions.")

_PARAM_HELP = "Condition parameter as key=value (repeatable). Values are parsed as YAML scalars."


def _parse_params(pairs: list[str] | None, params_file: Path | None) -> dict[str, Any]:
    params: dict[str, Any] = {}
    if params_file is not None:
        if not params_file.exists():
            handle_error(f"Parameters file not found: {params_file}")
        loaded = yaml.safe_load(params_file.read_text()) or {}
        if not isinstance(loaded, dict):
            handle_error(f"Parameters file must contain a mapping: {params_file}")
        params.update(loaded)
    for pair in pairs or []:
        key, sep, raw = pair.partition("=")
        if not sep or not key:
            handle_error(f"Invalid --param {pair!r}: expected key=value")
        params[key.strip()] = yaml.safe_load(raw) if raw else ""
    return params


@app.command()
def types() -> None:
    """List the condition types that can be created."""
    registry = default_registry()
    for type_id in registry.available():
        descriptor = registry.resolve(type_id)
        required = ", ".join(descriptor.schema.get("required", []))
        typer.echo(f"{type_id:<18} {descriptor.name}  (required: {required})")


@app.command()
@require_manager
def create(
    stream_id: str = typer.Argument(..., help="Stream the condition belongs to"),
    type_id: str = typer.Option(..., "--type", help="Condition type id"),
    title: str = typer.Option(..., "--title", "-t", help="Condition title"),
    param: list[str] = typer.Option(None, "--param", "-p", help=_PARAM_HELP),
    params_file: Path = typer.Option(None, "--params-file", help="YAML file with parameters"),
) -> None:
    """Create an alert condition on a stream."""
    params = _parse_params(param, params_file)
    created = get_manager().create(stream_id, type_id, params, title)
    typer.echo(json.dumps({
        "alert_condition_id": created.condition.id,
        "location": created.locator.path,
    }))


@app.command()
@require_manager
def update(
    stream_id: str = typer.Argument(..., help="Stream the condition belongs to"),
    condition_id: str = typer.Argument(..., help="Alert condition id"),
    type_id: str = typer.Option(..., "--type", help="Condition type id"),
    title: str = typer.Option(..., "--title", "-t", help="Condition title"),
    param: list[str] = typer.Option(None, "--param", "-p", help=_PARAM_HELP),
    params_file: Path = typer.Option(None, "--params-file", help="YAML file with parameters"),
) -> None:
    """Replace an alert condition's title and parameters."""
    params = _parse_params(param, params_file)
    get_manager().update(stream_id, condition_id, type_id, params, title)
    typer.echo(f"Alert condition {condition_id} updated.")


@app.command("list")
@require_manager
def list_conditions(
    stream_id: str = typer.Argument(..., help="Stream id"),
    as_json: bool = typer.Option(False, "--json", help="Print summaries as JSON"),
) -> None:
    """List a stream's alert conditions."""
    summaries = get_manager().list(stream_id)
    if as_json:
        typer.echo(json.dumps({
            "conditions": [s.to_dict() for s in summaries],
            "total": len(summaries),
        }, indent=2))
        return
    if not summaries:
        typer.echo("No alert conditions found.")
        return

    typer.echo(f"{'ID':<34} {'Type':<16} {'Grace':<6} Title")
    typer.echo("-" * 72)
    for s in summaries:
        grace = "yes" if s.in_grace_period else "no"
        typer.echo(f"{s.id:<34} {s.type:<16} {grace:<6} {s.title}")


@app.command()
@require_manager
def show(
    stream_id: str = typer.Argument(..., help="Stream id"),
    condition_id: str = typer.Argument(..., help="Alert condition id"),
) -> None:
    """Print one alert condition as JSON."""
    condition = get_manager().get(stream_id, condition_id)
    typer.echo(json.dumps(condition.to_dict(), indent=2))


@app.command()
@require_manager
def delete(
    stream_id: str = typer.Argument(..., help="Stream id"),
    condition_id: str = typer.Argument(..., help="Alert condition id"),
) -> None:
    """Delete an alert condition."""
    get_manager().delete(stream_id, condition_id)
    typer.echo(f"Alert condition {condition_id} deleted.")
