"""
Native Click implementation of the status command.

Usage: helmexec status RELEASE [-- HELM_FLAGS...]
"""

from __future__ import annotations

import click

from ...core.models.execution import HelmContext
from ..context import HelmexecContext
from ..decorators import handle_helm_errors


@click.command("status", context_settings={"ignore_unknown_options": True})
@click.argument("release")
@click.argument("flags", nargs=-1, type=click.UNPROCESSED)
@click.pass_obj
@handle_helm_errors
def status(ctx: HelmexecContext, release: str, flags: tuple[str, ...]) -> None:
    """Show the status of RELEASE."""
    ctx.helm.release_status(HelmContext(), release, *flags)
