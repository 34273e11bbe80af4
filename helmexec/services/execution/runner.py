"""
ShellRunner: the IRunner implementation that spawns real processes.

The runner is stateless per call. Its long-lived pieces (logger, output log
pump, cancellation context) are shared by every call, so one runner may be
used from many threads at once.
"""

from __future__ import annotations

import os
import sys
import threading
from collections.abc import Iterable, Mapping
from typing import BinaryIO, TextIO

from ...core.interfaces.logger import ILogger
from ...core.models.execution import ProcessInvocation
from ..logging import NullLogger, OutputLogPump
from .cancellation import ExecutionContext, background
from .capture import capture_output, live_output


def env_to_map(env: Iterable[str]) -> dict[str, str]:
    """
    Convert ``KEY=VALUE`` entries into a dict.

    Only the first ``=`` separates key from value. An entry without ``=``
    maps to the empty string.
    """
    result: dict[str, str] = {}
    for entry in env:
        key, _, value = entry.partition("=")
        result[key] = value
    return result


def merge_env(
    orig: Mapping[str, str] | Iterable[str],
    overlay: Mapping[str, str] | None,
) -> dict[str, str]:
    """
    Overlay ``overlay`` onto ``orig``; the overlay wins on conflicts.

    Example:
        >>> merge_env(["A=1", "B=c=d", "E=2"], {"B": "3", "F": "4"})
        {'A': '1', 'B': '3', 'E': '2', 'F': '4'}
    """
    merged = dict(orig) if isinstance(orig, Mapping) else env_to_map(orig)
    if overlay:
        merged.update(overlay)
    return merged


class ShellRunner:
    """
    Runs commands as child processes.

    Output is either captured (stdout returned, every line logged at debug
    level under a ``<binary>:<id>> `` prefix) or streamed live to a writer.

    Example:
        >>> runner = ShellRunner(dir="/tmp", logger=HelmexecLogger(level="debug"))
        >>> runner.execute("helm", ["version", "--short"], None, False)
        b'v3.14.0+g3fc9f4b\\n'
    """

    def __init__(
        self,
        dir: str | None = None,
        strip_args_values_on_exit_error: bool = True,
        logger: ILogger | None = None,
        ctx: ExecutionContext | None = None,
        live_writer: TextIO | None = None,
        disable_unique_ids: bool | None = None,
    ) -> None:
        """
        Initialize the runner.

        Args:
            dir: Working directory for every child (None: inherit)
            strip_args_values_on_exit_error: Redact secret-bearing values in ExitError text
            logger: Receives per-line output at debug level
            ctx: Cancellation context shared by all calls
            live_writer: Destination for live output (stdout when None)
            disable_unique_ids: Drop correlation IDs from log prefixes. When
                None, read ``HELMFILE_DISABLE_RUNNER_UNIQUE_ID`` through settings.
        """
        if disable_unique_ids is None:
            from ...core.settings import load_settings

            disable_unique_ids = load_settings().disable_runner_unique_id

        self.dir = dir
        self.strip_args_values_on_exit_error = strip_args_values_on_exit_error
        self.logger = logger or NullLogger()
        self.ctx = ctx or background()
        self._live_writer = live_writer
        self._disable_unique_ids = disable_unique_ids
        self._pump: OutputLogPump | None = None
        self._pump_lock = threading.Lock()

    @property
    def disable_unique_ids(self) -> bool:
        return self._disable_unique_ids

    @property
    def pump(self) -> OutputLogPump:
        with self._pump_lock:
            if self._pump is None:
                self._pump = OutputLogPump(self.logger)
            return self._pump

    def _invocation(
        self,
        cmd: str,
        args: list[str],
        env: Mapping[str, str] | None,
        *,
        live_output: bool = False,
        stdin: bytes | BinaryIO | None = None,
    ) -> ProcessInvocation:
        return ProcessInvocation(
            path=cmd,
            args=list(args),
            env=merge_env(os.environ, env),
            dir=self.dir,
            live_output=live_output,
            stdin=stdin,
        )

    def execute(
        self,
        cmd: str,
        args: list[str],
        env: Mapping[str, str] | None,
        enable_live_output: bool,
    ) -> bytes | None:
        """
        Run ``cmd`` with ``args`` and the process environment overlaid by ``env``.

        Returns:
            Captured stdout, or None in live-output mode

        Raises:
            OSError: If the process cannot be spawned
            ExitError: If the process exits non-zero
        """
        invocation = self._invocation(cmd, args, env, live_output=enable_live_output)
        if enable_live_output:
            # Resolved per call so redirected stdout (tests, CLI) is honored
            writer = self._live_writer or sys.stdout
            return live_output(self.ctx, invocation, self.strip_args_values_on_exit_error, writer)
        return capture_output(
            self.ctx,
            invocation,
            self.strip_args_values_on_exit_error,
            pump=self.pump,
            disable_unique_ids=self._disable_unique_ids,
        )

    def execute_stdin(
        self,
        cmd: str,
        args: list[str],
        env: Mapping[str, str] | None,
        stdin: bytes | BinaryIO | None,
    ) -> bytes:
        """Run ``cmd`` in buffered mode with ``stdin`` fed to the child."""
        invocation = self._invocation(cmd, args, env, stdin=stdin)
        return capture_output(
            self.ctx,
            invocation,
            self.strip_args_values_on_exit_error,
            pump=self.pump,
            disable_unique_ids=self._disable_unique_ids,
        )

    def close(self) -> None:
        """Flush pending log lines and stop the output log thread."""
        with self._pump_lock:
            pump, self._pump = self._pump, None
        if pump is not None:
            pump.close()

    def __enter__(self) -> ShellRunner:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()
