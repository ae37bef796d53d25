"""vigil CLI -- typer-based command interface.

Commands:
    vigil streams add/list                              Local stream catalog
    vigil conditions types                              Available condition types
    vigil conditions create/update/list/show/delete     Stream alert conditions
"""

from __future__ import annotations

import typer

from vigil.cli import conditions, streams

app = typer.Typer(
    name="vigil",
    help="Manage alert conditions attached to log streams.",
    no_args_is_help=True,
)

app.add_typer(streams.app, name="streams")
app.add_typer(conditions.app, name="conditions")


@app.callback()
def _startup() -> None:
    from vigil.observability import configure

    configure()


def main() -> None:
    """Entry point for the vigil CLI."""
    app()
