"""
Pydantic Settings for helmexec configuration.

Provides settings loading from TOML files, environment variables, and defaults.
"""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Any

try:
    import tomllib
except ImportError:
    import tomli as tomllib

from pydantic import ValidationError, field_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from .exceptions import ConfigFileError, ConfigValidationError
from .models.config import HelmConfig, LoggingConfig, RunnerConfig

CONFIG_FILE_NAME = "helmexec.toml"


def _get_logger():
    from ..services.logging import NullLogger
    from .di import resolve_or_default
    from .interfaces.logger import ILogger

    return resolve_or_default(ILogger, NullLogger)


def find_config_file(start_dir: str | None = None) -> Path | None:
    """
    Find helmexec.toml by walking up from start_dir (or cwd).

    Returns:
        Path to config file, or None if not found.
    """
    start = Path(start_dir) if start_dir else Path.cwd()

    for parent in [start, *list(start.parents)]:
        config_path = parent / CONFIG_FILE_NAME
        if config_path.exists():
            return config_path

        # Also check for pyproject.toml with [tool.helmexec] section
        pyproject = parent / "pyproject.toml"
        if pyproject.exists():
            try:
                with open(pyproject, "rb") as f:
                    data = tomllib.load(f)
                if "tool" in data and "helmexec" in data["tool"]:
                    return pyproject
            except tomllib.TOMLDecodeError as e:
                _get_logger().debug("Failed to parse pyproject.toml at %s: %s", pyproject, e)
            except OSError as e:
                _get_logger().debug("Failed to read pyproject.toml at %s: %s", pyproject, e)

    return None


class TomlConfigSource(PydanticBaseSettingsSource):
    """Custom settings source that loads from TOML config files.

    A discovered file that cannot be read is skipped with a warning; an
    explicitly given one raises ConfigFileError.
    """

    def __init__(
        self,
        settings_cls: type[BaseSettings],
        config_path: Path | None = None,
        start_dir: str | None = None,
    ):
        super().__init__(settings_cls)
        self._config_path = config_path
        self._start_dir = start_dir
        self._data: dict[str, Any] | None = None
        self.config_file: str | None = None

    def _load_toml(self) -> dict[str, Any]:
        """Load and cache TOML data."""
        if self._data is not None:
            return self._data

        self._data = {}

        path = self._config_path
        if path is None:
            path = find_config_file(self._start_dir)

        if path is None:
            return self._data

        try:
            with open(path, "rb") as f:
                data = tomllib.load(f)

            if path.name == "pyproject.toml":
                data = data.get("tool", {}).get("helmexec", {})

            self._data = data
            self.config_file = str(path)

        except tomllib.TOMLDecodeError as e:
            if self._config_path is not None:
                raise ConfigFileError(
                    f"Failed to parse config file: {e}", file_path=str(path), cause=e
                ) from e
            _get_logger().warning("Failed to parse config file %s: %s", path, e)
        except OSError as e:
            if self._config_path is not None:
                raise ConfigFileError(
                    f"Failed to read config file: {e}", file_path=str(path), cause=e
                ) from e
            _get_logger().warning("Failed to read config file %s: %s", path, e)

        return self._data

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        """Get field value from TOML data."""
        data = self._load_toml()
        return data.get(field_name), field_name, False

    def __call__(self) -> dict[str, Any]:
        """Return all TOML data for settings initialization."""
        return self._load_toml()


class HelmexecSettings(BaseSettings):
    """helmexec configuration settings with TOML and environment variable support.

    Priority (highest to lowest):
    1. Explicit init values
    2. Environment variables (HELMFILE_<section>__<field>)
    3. TOML config file (helmexec.toml or pyproject.toml [tool.helmexec])
    4. Model defaults
    """

    model_config = {
        "env_prefix": "HELMFILE_",
        "env_nested_delimiter": "__",
        "extra": "ignore",
    }

    helm: HelmConfig = HelmConfig()
    runner: RunnerConfig = RunnerConfig()
    logging: LoggingConfig = LoggingConfig()

    # HELMFILE_DISABLE_RUNNER_UNIQUE_ID
    disable_runner_unique_id: bool = False

    @field_validator("disable_runner_unique_id", mode="before")
    @classmethod
    def any_value_disables(cls, v: Any) -> Any:
        """Any non-empty value turns correlation IDs off."""
        if isinstance(v, str):
            return v != ""
        return v

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Customize settings sources to add TOML loading.

        The TOML location cannot be passed through here, so load_settings()
        hands it over through module-level variables.
        """
        toml_source = TomlConfigSource(
            settings_cls,
            config_path=_current_config_path,
            start_dir=_current_start_dir,
        )
        return (
            init_settings,
            env_settings,
            toml_source,
        )


# Module-level variables for passing to settings_customise_sources,
# guarded by _load_lock for the whole load
_current_config_path: Path | None = None
_current_start_dir: str | None = None
_load_lock = threading.RLock()


def load_settings(
    config_path: Path | None = None,
    start_dir: str | None = None,
    **overrides: Any,
) -> HelmexecSettings:
    """Load helmexec settings from config file and environment.

    Args:
        config_path: Explicit path to config file
        start_dir: Directory to start searching from (if config_path not given)
        **overrides: Explicit values with the highest priority

    Returns:
        HelmexecSettings instance with all sources merged

    Raises:
        ConfigFileError: If an explicitly given config file cannot be read or parsed
        ConfigValidationError: If a configured value is invalid
    """
    global _current_config_path, _current_start_dir

    with _load_lock:
        _current_config_path = config_path
        _current_start_dir = start_dir

        try:
            return HelmexecSettings(**overrides)
        except ValidationError as e:
            first = e.errors()[0]
            key = ".".join(str(p) for p in first.get("loc", ()))
            raise ConfigValidationError(
                f"Invalid helmexec configuration: {first.get('msg')}",
                key=key or None,
                cause=e,
            ) from e
        finally:
            _current_config_path = None
            _current_start_dir = None
