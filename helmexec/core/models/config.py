"""
Configuration models.

Provides Pydantic models for helmexec configuration sections.
"""

from __future__ import annotations

from typing import Literal

from pydantic import ConfigDict, field_validator

from .base import HelmexecBaseModel

LogLevel = Literal["debug", "info", "warning", "error"]


class ConfigBaseModel(HelmexecBaseModel):
    """Base model for config sections with relaxed strict mode for TOML and env loading."""

    model_config = ConfigDict(
        strict=False,  # Allow coercion from TOML/env types
        validate_assignment=True,
        extra="ignore",  # Ignore unknown fields in config files
        populate_by_name=True,
        use_enum_values=True,
        revalidate_instances="never",
    )


class HelmConfig(ConfigBaseModel):
    """Helm binary configuration section."""

    binary: str = "helm"
    kube_context: str | None = None
    enable_live_output: bool = False
    disable_force_update: bool = False

    @field_validator("binary")
    @classmethod
    def validate_binary(cls, v: str) -> str:
        """Reject an empty helm binary."""
        if not v.strip():
            raise ValueError("helm binary must not be empty")
        return v

    @field_validator("kube_context", mode="before")
    @classmethod
    def empty_context_is_none(cls, v: str | None) -> str | None:
        """Treat an empty kube context as unset."""
        return v or None


class RunnerConfig(ConfigBaseModel):
    """Subprocess runner configuration section."""

    strip_args_values_on_exit_error: bool = True
    working_dir: str | None = None


class LoggingConfig(ConfigBaseModel):
    """Logging configuration section."""

    level: LogLevel = "info"
    console: bool = True
    file: str | None = None

    @field_validator("level", mode="before")
    @classmethod
    def normalize_level(cls, v: str) -> str:
        """Accept upper-case level names and the 'warn' alias."""
        if isinstance(v, str):
            v = v.lower()
            if v == "warn":
                return "warning"
        return v
