"""
Native Click implementation of the template command.

Usage: helmexec template RELEASE CHART [-- HELM_FLAGS...]
"""

from __future__ import annotations

import click

from ..context import HelmexecContext
from ..decorators import handle_helm_errors


@click.command("template", context_settings={"ignore_unknown_options": True})
@click.argument("release")
@click.argument("chart")
@click.argument("flags", nargs=-1, type=click.UNPROCESSED)
@click.pass_obj
@handle_helm_errors
def template(ctx: HelmexecContext, release: str, chart: str, flags: tuple[str, ...]) -> None:
    """Render CHART as RELEASE.

    Manifests are printed to stdout unless an --output-dir flag is passed
    through to helm.
    """
    ctx.helm.template_release(release, chart, *flags)
