"""Service interfaces for helmexec."""

from .logger import ILogger
from .runner import IRunner

__all__ = ["ILogger", "IRunner"]
