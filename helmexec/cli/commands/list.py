"""
Native Click implementation of the list command.

Usage: helmexec list FILTER [-- HELM_FLAGS...]
"""

from __future__ import annotations

import click

from ...core.models.execution import HelmContext
from ..context import HelmexecContext
from ..decorators import handle_helm_errors


@click.command("list", context_settings={"ignore_unknown_options": True})
@click.argument("filter")
@click.argument("flags", nargs=-1, type=click.UNPROCESSED)
@click.pass_obj
@handle_helm_errors
def list_releases(ctx: HelmexecContext, filter: str, flags: tuple[str, ...]) -> None:
    """List releases whose name matches FILTER (a regular expression).

    Prints nothing when no release matches.
    """
    ctx.helm.list_releases(HelmContext(), filter, *flags)
