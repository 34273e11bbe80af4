"""
Version detection for helm and its plugins.

Helm prints its version in several shapes depending on major version and
distribution ("v3.2.4+ge29ce2a", "Client: v2.16.1+ge13bc94",
"Client v3.7.1+7.el8+g8f33223"). The first semantic version found
anywhere in the text wins.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

import yaml

from ...core.exceptions import ExitError, HelmVersionError, PluginNotFoundError
from ...core.interfaces.runner import IRunner
from ...core.models.version import SEMVER_RE, Version

VERSION_ARGS = ["version", "--client", "--short"]


def find_semver(text: str) -> Version:
    """
    Locate the first semantic version in ``text``.

    Raises:
        HelmVersionError: If ``text`` is empty or holds no semantic version
    """
    if not text.strip():
        raise HelmVersionError("empty helm version", version_text=text)
    match = SEMVER_RE.search(text)
    if match is None:
        raise HelmVersionError(f"no semantic version found in {text.strip()!r}", version_text=text)
    return Version.from_match(match)


def parse_helm_version(output: bytes | str) -> Version:
    """Parse the output of ``helm version --client --short``."""
    if isinstance(output, bytes):
        output = output.decode(errors="replace")
    return find_semver(output)


def get_helm_version(helm_binary: str, runner: IRunner) -> Version:
    """
    Ask ``helm_binary`` for its client version.

    Raises:
        HelmVersionError: If the command fails or prints no version
    """
    try:
        out = runner.execute(helm_binary, list(VERSION_ARGS), None, False)
    except (ExitError, OSError) as e:
        raise HelmVersionError("error determining helm version", cause=e) from e
    return parse_helm_version(out or b"")


def default_plugins_directory() -> Path:
    """Helm's default plugin directory for the current platform."""
    if "HELM_DATA_HOME" in os.environ:
        return Path(os.environ["HELM_DATA_HOME"]) / "plugins"
    if sys.platform == "darwin":
        return Path.home() / "Library" / "helm" / "plugins"
    if sys.platform == "win32":
        base = os.environ.get("APPDATA") or str(Path.home())
        return Path(base) / "helm" / "plugins"
    base = os.environ.get("XDG_DATA_HOME") or str(Path.home() / ".local" / "share")
    return Path(base) / "helm" / "plugins"


def plugins_directories(plugins_dir: str | None = None) -> list[Path]:
    """
    Directories to search for plugins.

    ``plugins_dir`` (or ``$HELM_PLUGINS``) may list several directories
    separated by ``os.pathsep``.
    """
    value = plugins_dir if plugins_dir is not None else os.environ.get("HELM_PLUGINS", "")
    if not value:
        return [default_plugins_directory()]
    return [Path(entry) for entry in value.split(os.pathsep) if entry]


def get_plugin_version(name: str, plugins_dir: str | None = None) -> Version:
    """
    Version of the installed helm plugin called ``name``.

    Every ``<dir>/*/plugin.yaml`` is read and the first whose ``name``
    matches decides.

    Raises:
        PluginNotFoundError: If no installed plugin has that name
        HelmVersionError: If a plugin manifest is not valid YAML, or the
            plugin's version is not a semantic version
    """
    for directory in plugins_directories(plugins_dir):
        for manifest in sorted(directory.glob("*/plugin.yaml")):
            try:
                with open(manifest, encoding="utf-8") as f:
                    metadata = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise HelmVersionError(
                    f"unreadable plugin manifest {manifest}", cause=e
                ) from e
            if not isinstance(metadata, dict) or metadata.get("name") != name:
                continue
            raw = str(metadata.get("version", ""))
            try:
                return Version.parse(raw)
            except ValueError as e:
                raise HelmVersionError(
                    f"invalid version of plugin {name}", version_text=raw, cause=e
                ) from e
    raise PluginNotFoundError(f"plugin {name} not installed", plugin_name=name)
