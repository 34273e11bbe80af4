"""
Click context extension for the helmexec CLI.

Provides HelmexecContext, which holds the loaded settings and builds the
HelmExec facade on first use, so commands that fail option parsing never
probe helm.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from ..core.bootstrap import bootstrap
from ..core.interfaces.logger import ILogger
from ..core.interfaces.runner import IRunner
from ..core.models.execution import HelmExecOptions
from ..core.settings import HelmexecSettings, load_settings
from ..services.helm.execer import HelmExec


@dataclass
class HelmexecContext:
    """Extended context passed through the Click command chain via ctx.obj.

    Attributes:
        settings: Settings merged from CLI options, environment and config file
        cwd: Current working directory
    """

    settings: HelmexecSettings
    cwd: Path
    _helm: HelmExec | None = field(default=None, repr=False)

    @classmethod
    def create(
        cls,
        config_path: Path | None = None,
        cwd: Path | None = None,
        **overrides: Any,
    ) -> HelmexecContext:
        """Create a HelmexecContext for the current environment.

        Args:
            config_path: Explicit config file (searched from ``cwd`` otherwise)
            cwd: Working directory override (defaults to Path.cwd())
            **overrides: Settings sections given on the command line

        Raises:
            ConfigValidationError: If a setting is invalid
        """
        if cwd is None:
            cwd = Path.cwd()
        settings = load_settings(config_path=config_path, start_dir=str(cwd), **overrides)
        return cls(settings=settings, cwd=cwd)

    @property
    def helm(self) -> HelmExec:
        """The helm facade, created (and helm's version detected) on first access."""
        if self._helm is None:
            container = bootstrap(self.settings)
            helm_settings = self.settings.helm
            self._helm = HelmExec(
                helm_settings.binary,
                HelmExecOptions(
                    enable_live_output=helm_settings.enable_live_output,
                    disable_force_update=helm_settings.disable_force_update,
                ),
                logger=container.resolve(ILogger),  # type: ignore[type-abstract]
                kube_context=helm_settings.kube_context,
                runner=container.resolve(IRunner),  # type: ignore[type-abstract]
            )
        return self._helm
