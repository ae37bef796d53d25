"""CLI error handling and decorators."""

from __future__ import annotations

import functools
import getpass
from typing import Any, Callable

import typer

from vigil.collaborators import StaticIdentity
from vigil.conditions import AlertConditionManager, build_manager
from vigil.config import get_config
from vigil.errors import VigilError

# Module-level holder for the wired manager (set by require_manager)
_current_manager: AlertConditionManager | None = None


def get_manager() -> AlertConditionManager:
    """Get the manager set by the require_manager decorator."""
    if _current_manager is None:
        raise RuntimeError("get_manager() called outside a @require_manager command")
    return _current_manager


def require_manager(f: Callable) -> Callable:
    """Decorator that wires an AlertConditionManager before running a command.

    Any VigilError raised by the command is printed and turned into exit 1.
    """

    @functools.wraps(f)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        global _current_manager
        try:
            config = get_config()
        except ValueError as e:
            handle_error(str(e))
        _current_manager = build_manager(config, identity=StaticIdentity(getpass.getuser()))
        try:
            return f(*args, **kwargs)
        except VigilError as e:
            handle_error(e.message)

    return wrapper


def handle_error(msg: str) -> None:
    """Print an error message and exit."""
    typer.echo(f"Error: {msg}", err=True)
    raise typer.Exit(1)
