"""Helm and plugin version detection."""

from .semver import (
    find_semver,
    get_helm_version,
    get_plugin_version,
    parse_helm_version,
    plugins_directories,
)

__all__ = [
    "find_semver",
    "get_helm_version",
    "get_plugin_version",
    "parse_helm_version",
    "plugins_directories",
]
