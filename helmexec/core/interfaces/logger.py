"""
Logger interface for internal diagnostic output.

Subprocess output forwarded to the log goes through the same interface,
so a single ILogger implementation sees every record helmexec emits.
"""

from abc import ABC, abstractmethod
from typing import Any


class ILogger(ABC):
    """
    Interface for internal logging.

    Used for verb summaries, the per-invocation ``exec:`` line and
    forwarded subprocess output.
    """

    @abstractmethod
    def debug(self, message: str, *args: Any, **kwargs: Any) -> None:
        """Log a debug-level message."""
        pass

    @abstractmethod
    def info(self, message: str, *args: Any, **kwargs: Any) -> None:
        """Log an info-level message."""
        pass

    @abstractmethod
    def warning(self, message: str, *args: Any, **kwargs: Any) -> None:
        """Log a warning-level message."""
        pass

    @abstractmethod
    def error(self, message: str, *args: Any, **kwargs: Any) -> None:
        """Log an error-level message."""
        pass

    @abstractmethod
    def set_level(self, level: str) -> None:
        """
        Set the logging level.

        Args:
            level: One of 'debug', 'info', 'warning', 'error'
        """
        pass
