"""
helmexec - a process-execution layer for driving helm.

Runs helm (and az, for managed repositories) as child processes, captures
or streams their output, redacts secrets from failure reports and caches
decrypted secrets per file.

Usage:
    from helmexec import HelmExec, HelmContext

    helm = HelmExec("helm", kube_context="dev")
    helm.sync_release(HelmContext(history_max=10), "web", "./charts/web")
"""

from .core.exceptions import (
    CommandCancelledError,
    ExitError,
    HelmexecException,
    HelmVersionError,
    InvariantViolation,
)
from .core.models.execution import HelmContext, HelmExecOptions
from .core.models.version import Version
from .services.execution import ExecutionContext, ShellRunner, merge_env
from .services.helm import HelmExec, resolve_oci_chart

__all__ = [
    "CommandCancelledError",
    "ExecutionContext",
    "ExitError",
    "HelmContext",
    "HelmExec",
    "HelmExecOptions",
    "HelmVersionError",
    "HelmexecException",
    "InvariantViolation",
    "ShellRunner",
    "Version",
    "merge_env",
    "resolve_oci_chart",
]
