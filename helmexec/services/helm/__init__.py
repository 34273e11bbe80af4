"""The helm client facade."""

from .execer import HelmExec, resolve_oci_chart

__all__ = ["HelmExec", "resolve_oci_chart"]
