"""
Cooperative cancellation for running commands.

An ExecutionContext is shared by the caller and the runner: the caller
cancels it (directly or through a timeout), the runner notices while
waiting for the child, interrupts the child once and then keeps waiting
for that same child to exit.
"""

from __future__ import annotations

import threading
import time


class ExecutionContext:
    """
    Cancellation signal with an optional deadline.

    Example:
        >>> ctx = ExecutionContext(timeout=30)
        >>> runner = ShellRunner(ctx=ctx)
        >>> ctx.cancel()  # from another thread
    """

    def __init__(self, timeout: float | None = None) -> None:
        self._cancelled = threading.Event()
        self._deadline = time.monotonic() + timeout if timeout is not None else None

    def cancel(self) -> None:
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        if self._cancelled.is_set():
            return True
        if self._deadline is not None and time.monotonic() >= self._deadline:
            self._cancelled.set()
            return True
        return False


def background() -> ExecutionContext:
    """A context that is never cancelled unless someone cancels it."""
    return ExecutionContext()
