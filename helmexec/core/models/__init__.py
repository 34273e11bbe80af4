"""
Domain models for helmexec.

Pydantic models validate data parsed from helm output and configuration;
per-call execution values are plain dataclasses.
"""

from .base import HelmexecBaseModel, ImmutableModel
from .chart import ChartMaintainer, ChartMetadata
from .config import HelmConfig, LoggingConfig, LogLevel, RunnerConfig
from .execution import (
    CapturedOutput,
    HelmContext,
    HelmExecOptions,
    OutputLine,
    ProcessInvocation,
)
from .version import SEMVER_RE, Version

__all__ = [
    "SEMVER_RE",
    "CapturedOutput",
    "ChartMaintainer",
    "ChartMetadata",
    "HelmConfig",
    "HelmContext",
    "HelmExecOptions",
    "HelmexecBaseModel",
    "ImmutableModel",
    "LogLevel",
    "LoggingConfig",
    "OutputLine",
    "ProcessInvocation",
    "RunnerConfig",
    "Version",
]
