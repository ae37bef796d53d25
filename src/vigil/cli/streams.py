"""CLI commands for the local stream catalog."""

from __future__ import annotations

import typer

from vigil.collaborators import Stream, YamlStreamLookup
from vigil.config import get_config

app = typer.Typer(help="Manage the local stream catalog (streams.yaml).")


def _catalog() -> YamlStreamLookup:
    return YamlStreamLookup(get_config().state_path / "streams.yaml")


@app.command()
def add(
    stream_id: str = typer.Argument(..., help="Stream id"),
    title: str = typer.Option("", "--title", "-t", help="Display title"),
    description: str = typer.Option("", "--description", help="Free-form description"),
) -> None:
    """Add (or replace) a stream in the catalog."""
    _catalog().add(Stream(id=stream_id, title=title, description=description))
    typer.echo(f"Stream {stream_id} saved.")


@app.command("list")
def list_streams() -> None:
    """List streams in the catalog."""
    streams = _catalog().all()
    if not streams:
        typer.echo("No streams found.")
        return
    for s in streams:
        typer.echo(f"{s.id:<24} {s.title}")
