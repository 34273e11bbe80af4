"""
Protocol definitions for subprocess execution.

The facade only ever talks to an IRunner, which lets tests replace real
process spawning with a scripted runner.
"""

from collections.abc import Mapping
from typing import BinaryIO, Protocol, runtime_checkable


@runtime_checkable
class IRunner(Protocol):
    """Protocol for running external commands."""

    def execute(
        self,
        cmd: str,
        args: list[str],
        env: Mapping[str, str] | None,
        enable_live_output: bool,
    ) -> bytes | None:
        """
        Run a command and return its stdout.

        Returns the captured stdout bytes in buffered mode and None in
        live-output mode. Raises ExitError on a non-zero exit and the raw
        OSError when the process cannot be spawned.
        """
        ...

    def execute_stdin(
        self,
        cmd: str,
        args: list[str],
        env: Mapping[str, str] | None,
        stdin: bytes | BinaryIO | None,
    ) -> bytes:
        """Run a command in buffered mode, feeding it ``stdin``."""
        ...
