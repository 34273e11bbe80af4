"""
Logger implementations for helmexec.

HelmexecLogger wraps stdlib logging with handlers for stderr and an
optional rotating file. OutputLogPump funnels subprocess output lines from
any number of concurrent invocations to a single consumer thread, so the
order of lines within one invocation is preserved and only one thread ever
writes to the logger.
"""

from __future__ import annotations

import logging
import queue
import sys
import threading
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, ClassVar

from ..core.interfaces.logger import ILogger
from ..core.models.execution import OutputLine


class HelmexecLogger(ILogger):
    """
    Logger implementation using stdlib logging.

    Supports output to stderr and to a rotating log file.
    """

    MAX_FILE_SIZE = 10 * 1024 * 1024  # 10MB
    BACKUP_COUNT = 3

    LEVEL_MAP: ClassVar[dict[str, int]] = {
        "debug": logging.DEBUG,
        "info": logging.INFO,
        "warn": logging.WARNING,
        "warning": logging.WARNING,
        "error": logging.ERROR,
    }

    def __init__(
        self,
        name: str = "helmexec",
        level: str = "info",
        console_enabled: bool = True,
        log_file: str | Path | None = None,
        stream: Any = None,
    ) -> None:
        """
        Initialize logger.

        Args:
            name: Logger name
            level: Initial log level (debug, info, warning, error)
            console_enabled: Enable output to ``stream`` (stderr by default)
            log_file: Optional path of a rotating log file
            stream: Console stream override
        """
        self._logger = logging.getLogger(name)
        self._logger.setLevel(logging.DEBUG)  # Let handlers filter
        self._logger.handlers.clear()
        self._logger.propagate = False

        self._console_handler: logging.Handler | None = None
        self._file_handler: logging.Handler | None = None

        log_level = self.LEVEL_MAP.get(level.lower(), logging.INFO)

        if console_enabled:
            console = logging.StreamHandler(stream or sys.stderr)
            console.setLevel(log_level)
            # Console records are plain lines, like the helm output they carry
            console.setFormatter(logging.Formatter("%(message)s"))
            self._logger.addHandler(console)
            self._console_handler = console

        if log_file:
            self._setup_file_handler(Path(log_file), log_level)

    def _setup_file_handler(self, path: Path, level: int) -> None:
        """Set up rotating file handler."""
        path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = RotatingFileHandler(
            path,
            maxBytes=self.MAX_FILE_SIZE,
            backupCount=self.BACKUP_COUNT,
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(
            logging.Formatter(
                "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        self._logger.addHandler(file_handler)
        self._file_handler = file_handler

    def debug(self, message: str, *args: Any, **kwargs: Any) -> None:
        """Log a debug-level message."""
        self._logger.debug(message, *args, **kwargs)

    def info(self, message: str, *args: Any, **kwargs: Any) -> None:
        """Log an info-level message."""
        self._logger.info(message, *args, **kwargs)

    def warning(self, message: str, *args: Any, **kwargs: Any) -> None:
        """Log a warning-level message."""
        self._logger.warning(message, *args, **kwargs)

    def error(self, message: str, *args: Any, **kwargs: Any) -> None:
        """Log an error-level message."""
        self._logger.error(message, *args, **kwargs)

    def set_level(self, level: str) -> None:
        """Set log level for all handlers."""
        lvl = self.LEVEL_MAP.get(level.lower(), logging.INFO)
        if self._console_handler:
            self._console_handler.setLevel(lvl)
        if self._file_handler:
            self._file_handler.setLevel(lvl)


class NullLogger(ILogger):
    """No-op logger for testing or when logging is disabled."""

    def debug(self, message: str, *args: Any, **kwargs: Any) -> None:
        """No-op."""
        pass

    def info(self, message: str, *args: Any, **kwargs: Any) -> None:
        """No-op."""
        pass

    def warning(self, message: str, *args: Any, **kwargs: Any) -> None:
        """No-op."""
        pass

    def error(self, message: str, *args: Any, **kwargs: Any) -> None:
        """No-op."""
        pass

    def set_level(self, level: str) -> None:
        """No-op."""
        pass


class OutputLogPump:
    """
    Single consumer of subprocess output lines.

    Producers call ``emit()`` from reader threads; the pump thread writes
    each line to the logger at debug level, prefixed with the binary name
    and the invocation's correlation ID. ``barrier()`` blocks until every
    line emitted before it has been written.
    """

    _STOP = object()

    def __init__(self, logger: ILogger) -> None:
        self._logger = logger
        self._queue: queue.Queue[Any] = queue.Queue()
        self._thread: threading.Thread | None = None
        self._lock = threading.Lock()

    def _put(self, item: Any) -> None:
        # Each consumer drains its own queue; STOP goes to the current one only
        with self._lock:
            if self._thread is None:
                self._queue = queue.Queue()
                self._thread = threading.Thread(
                    target=self._consume, args=(self._queue,), name="helmexec-output-log", daemon=True
                )
                self._thread.start()
            self._queue.put(item)

    def emit(self, event: OutputLine) -> None:
        self._put(event)

    def barrier(self) -> None:
        """Wait until all previously emitted lines have been logged."""
        reached = threading.Event()
        self._put(reached)
        reached.wait()

    def close(self) -> None:
        """Drain pending lines and stop the consumer thread."""
        with self._lock:
            thread = self._thread
            self._thread = None
            if thread is not None:
                self._queue.put(self._STOP)
        if thread is not None:
            thread.join()

    def _consume(self, pending: queue.Queue[Any]) -> None:
        while True:
            item = pending.get()
            if item is self._STOP:
                return
            if isinstance(item, threading.Event):
                item.set()
                continue
            self._logger.debug("%s%s", item.prefix, item.line)
