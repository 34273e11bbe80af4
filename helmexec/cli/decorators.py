"""
Click decorators for helmexec CLI commands.

- handle_helm_errors: Turns helmexec errors into messages and exit codes
"""

from __future__ import annotations

import functools
from collections.abc import Callable
from typing import Any, TypeVar

import click

from ..core.exceptions import ExitError, HelmexecException

F = TypeVar("F", bound=Callable[..., Any])


def handle_helm_errors(f: F) -> F:
    """Decorator mapping helmexec errors to process exit codes.

    A failed helm command exits with helm's own status, so scripts can
    branch on ``diff --detailed-exitcode`` just as they would with helm.
    Any other helmexec error exits 1. Spawn failures (OSError) exit 127.

    Usage:
        @click.command()
        @click.pass_obj
        @handle_helm_errors
        def status(ctx: HelmexecContext, release: str):
            ...
    """

    @functools.wraps(f)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return f(*args, **kwargs)
        except ExitError as e:
            click.echo(str(e), err=True)
            raise SystemExit(e.exit_code) from e
        except HelmexecException as e:
            click.echo(f"Error: {e}", err=True)
            raise SystemExit(e.exit_code) from e
        except OSError as e:
            click.echo(f"Error: {e}", err=True)
            raise SystemExit(127) from e

    return wrapper  # type: ignore[return-value]
