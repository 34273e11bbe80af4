"""
Native Click implementation of the decrypt command.

Usage: helmexec decrypt PATH
"""

from __future__ import annotations

from pathlib import Path

import click

from ...core.models.execution import HelmContext
from ..context import HelmexecContext
from ..decorators import handle_helm_errors


@click.command("decrypt")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--keep",
    is_flag=True,
    help="Keep the decrypted file and print its path instead of its content.",
)
@click.pass_obj
@handle_helm_errors
def decrypt(ctx: HelmexecContext, path: Path, keep: bool) -> None:
    """Decrypt a helm-secrets file.

    Requires the helm-secrets plugin.
    """
    decrypted = Path(ctx.helm.decrypt_secret(HelmContext(), str(path)))
    if keep:
        click.echo(str(decrypted))
        return
    try:
        click.echo(decrypted.read_text(), nl=False)
    finally:
        decrypted.unlink(missing_ok=True)
