"""
Chart metadata model.

Mirrors the Chart.yaml fields printed by ``helm show chart``.
"""

from __future__ import annotations

from pydantic import ConfigDict, Field

from .base import HelmexecBaseModel


class ChartMaintainer(HelmexecBaseModel):
    model_config = ConfigDict(
        strict=False, extra="ignore", populate_by_name=True, coerce_numbers_to_str=True
    )

    name: str = ""
    email: str | None = None
    url: str | None = None


class ChartMetadata(HelmexecBaseModel):
    """Metadata of a helm chart."""

    model_config = ConfigDict(
        strict=False,
        extra="ignore",
        populate_by_name=True,
        coerce_numbers_to_str=True,
    )

    name: str = ""
    version: str = ""
    api_version: str | None = Field(default=None, alias="apiVersion")
    app_version: str | None = Field(default=None, alias="appVersion")
    description: str | None = None
    type: str | None = None
    kube_version: str | None = Field(default=None, alias="kubeVersion")
    home: str | None = None
    icon: str | None = None
    keywords: list[str] = Field(default_factory=list)
    sources: list[str] = Field(default_factory=list)
    maintainers: list[ChartMaintainer] = Field(default_factory=list)
    deprecated: bool = False
    annotations: dict[str, str] = Field(default_factory=dict)
