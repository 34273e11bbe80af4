"""
Core infrastructure for helmexec.

This module provides:
- ServiceContainer: DI container using dependency-injector
- Application bootstrap for initialization
- Protocol definitions for service interfaces
- Custom exception hierarchy
- Settings loading
"""

from .bootstrap import bootstrap, is_initialized, reset
from .container import ServiceContainer, get_container
from .exceptions import (
    CommandCancelledError,
    ConfigFileError,
    ConfigValidationError,
    ExitError,
    HelmexecConfigError,
    HelmexecException,
    HelmexecExecutionError,
    HelmexecValidationError,
    HelmVersionError,
    InvariantViolation,
    PluginNotFoundError,
)
from .settings import HelmexecSettings, load_settings

__all__ = [
    "CommandCancelledError",
    "ConfigFileError",
    "ConfigValidationError",
    "ExitError",
    "HelmVersionError",
    "HelmexecConfigError",
    "HelmexecException",
    "HelmexecExecutionError",
    "HelmexecSettings",
    "HelmexecValidationError",
    "InvariantViolation",
    "PluginNotFoundError",
    "ServiceContainer",
    "bootstrap",
    "get_container",
    "is_initialized",
    "load_settings",
    "reset",
]
