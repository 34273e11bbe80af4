"""
Native Click implementation of the diff command.

Usage: helmexec diff RELEASE CHART [--detailed-exitcode] [--suppress-diff] [-- HELM_FLAGS...]
"""

from __future__ import annotations

import click

from ...core.models.execution import HelmContext
from ..context import HelmexecContext
from ..decorators import handle_helm_errors


@click.command("diff", context_settings={"ignore_unknown_options": True})
@click.argument("release")
@click.argument("chart")
@click.argument("flags", nargs=-1, type=click.UNPROCESSED)
@click.option(
    "--detailed-exitcode",
    is_flag=True,
    help="Exit 2 when changes are pending, 0 when there are none.",
)
@click.option("--suppress-diff", is_flag=True, help="Compute the diff without printing it.")
@click.option("--history-max", type=int, default=0, show_default=True)
@click.pass_obj
@handle_helm_errors
def diff(
    ctx: HelmexecContext,
    release: str,
    chart: str,
    flags: tuple[str, ...],
    detailed_exitcode: bool,
    suppress_diff: bool,
    history_max: int,
) -> None:
    """Show what upgrading RELEASE to CHART would change.

    Requires the helm-diff plugin.

    \b
    Examples:
        helmexec diff web ./charts/web
        helmexec diff web ./charts/web --detailed-exitcode -- --values prod.yaml
    """
    helm_flags = list(flags)
    if detailed_exitcode:
        helm_flags.append("--detailed-exitcode")
    ctx.helm.diff_release(
        HelmContext(history_max=history_max),
        release,
        chart,
        suppress_diff,
        *helm_flags,
    )
