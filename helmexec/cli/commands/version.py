"""
Native Click implementation of the version command.

Usage: helmexec version
"""

from __future__ import annotations

import click

from ..context import HelmexecContext
from ..decorators import handle_helm_errors


@click.command("version")
@click.pass_obj
@handle_helm_errors
def version(ctx: HelmexecContext) -> None:
    """Show the version of the configured helm binary."""
    helm = ctx.helm
    click.echo(f"{helm.helm_binary}: {helm.get_version()}")
