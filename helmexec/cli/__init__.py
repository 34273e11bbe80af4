"""
Click-based CLI for helmexec.

This module provides the main Click command group and serves as the
entry point for the helmexec CLI.

Usage:
    from helmexec.cli import cli
    cli()  # Invokes the CLI
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
from typing import Any

import click

from ..core.exceptions import HelmexecException
from ..core.models.config import LogLevel
from .context import HelmexecContext

try:
    __version__ = version("helmexec")
except PackageNotFoundError:
    __version__ = "0.1.0"


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="helmexec")
@click.option("--helm-binary", default=None, help="Path to the helm executable.")
@click.option("--kube-context", default=None, help="Kubernetes context for every helm command.")
@click.option(
    "--log-level",
    type=click.Choice(["debug", "info", "warning", "error"], case_sensitive=False),
    default=None,
    help="Minimum level of log records written to stderr.",
)
@click.option(
    "--live-output/--no-live-output",
    default=None,
    help="Stream helm output as it is produced instead of after it exits.",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Config file (default: helmexec.toml or pyproject.toml [tool.helmexec]).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    helm_binary: str | None,
    kube_context: str | None,
    log_level: LogLevel | None,
    live_output: bool | None,
    config_path: Path | None,
) -> None:
    """helmexec - run helm the way helmfile does

    \b
    Releases:
        helmexec list FILTER            List releases matching FILTER
        helmexec status RELEASE         Show the status of a release
        helmexec diff RELEASE CHART     Show what an upgrade would change
        helmexec template RELEASE CHART Render a chart locally

    \b
    Other:
        helmexec version                Show the detected helm version
        helmexec decrypt PATH           Decrypt a helm-secrets file
    """
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())
        ctx.exit(0)

    helm: dict[str, Any] = {}
    if helm_binary is not None:
        helm["binary"] = helm_binary
    if kube_context is not None:
        helm["kube_context"] = kube_context
    if live_output is not None:
        helm["enable_live_output"] = live_output

    overrides: dict[str, Any] = {}
    if helm:
        overrides["helm"] = helm
    if log_level is not None:
        overrides["logging"] = {"level": log_level}

    try:
        ctx.obj = HelmexecContext.create(config_path=config_path, **overrides)
    except HelmexecException as e:
        raise click.ClickException(str(e)) from e


def register_commands() -> None:
    """Register all CLI commands with the main group."""
    from .commands import COMMANDS

    for cmd in COMMANDS:
        cli.add_command(cmd)


# Register commands at module load time
register_commands()


__all__ = [
    "HelmexecContext",
    "__version__",
    "cli",
    "register_commands",
]
