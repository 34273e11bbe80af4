"""
Execution domain types.

These are per-call values: they are created for one invocation and
discarded once the caller has consumed the result.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import BinaryIO, Literal, TextIO

from ..exceptions import InvariantViolation

StreamName = Literal["stdout", "stderr"]


@dataclass
class ProcessInvocation:
    """Everything needed to spawn one process."""

    path: str
    args: list[str]
    env: Mapping[str, str] = field(default_factory=dict)
    dir: str | None = None
    live_output: bool = False
    stdin: bytes | BinaryIO | None = None

    @property
    def argv(self) -> list[str]:
        """Full argument vector, binary included."""
        return [self.path, *self.args]

    @property
    def binary_name(self) -> str:
        return os.path.basename(self.path)


@dataclass
class CapturedOutput:
    """
    Output sinks of one buffered invocation.

    Each sink may be attached only once; attaching twice means two capture
    loops are racing for the same process.
    """

    _stdout: bytearray | None = None
    _stderr: bytearray | None = None
    combined: bytearray = field(default_factory=bytearray)

    def attach_stdout(self) -> bytearray:
        if self._stdout is not None:
            raise InvariantViolation("exec: stdout already set")
        self._stdout = bytearray()
        return self._stdout

    def attach_stderr(self) -> bytearray:
        if self._stderr is not None:
            raise InvariantViolation("exec: stderr already set")
        self._stderr = bytearray()
        return self._stderr

    @property
    def stdout(self) -> bytes:
        return bytes(self._stdout or b"")

    @property
    def stderr(self) -> bytes:
        return bytes(self._stderr or b"")


@dataclass(frozen=True)
class OutputLine:
    """A single line of subprocess output headed for the log."""

    binary: str
    correlation_id: str
    stream: StreamName
    line: str

    @property
    def prefix(self) -> str:
        if not self.correlation_id:
            return f"{self.binary}> "
        return f"{self.binary}:{self.correlation_id}> "


@dataclass(frozen=True)
class HelmExecOptions:
    """Facade-wide behavior switches."""

    enable_live_output: bool = False
    disable_force_update: bool = False


@dataclass
class HelmContext:
    """
    Caller-supplied options for a single release-scoped call.

    Attributes:
        history_max: Number of release revisions helm keeps (``--history-max``)
        writer: Where user-visible output goes (stdout when None)
        tillerless: Run helm 2 through the tillerless plugin
        tiller_namespace: Namespace passed to ``helm tiller run``
    """

    history_max: int = 0
    writer: TextIO | None = None
    tillerless: bool = False
    tiller_namespace: str = ""

    def tillerless_args(self, helm_binary: str, helm_major: int) -> list[str]:
        """Command prefix that routes the call through ``helm tiller run``."""
        if not self.tillerless or helm_major == 3:
            return []
        if self.tiller_namespace:
            return ["tiller", "run", self.tiller_namespace, "--", helm_binary]
        return ["tiller", "run", "--", helm_binary]

    def tillerless_env(self) -> dict[str, str]:
        """Environment overlay for tillerless mode."""
        if not self.tillerless:
            return {}
        env = {"HELM_TILLER_SILENT": "true"}
        kubeconfig = os.environ.get("KUBECONFIG", "")
        if kubeconfig:
            env["KUBECONFIG"] = kubeconfig if os.path.isabs(kubeconfig) else os.path.abspath(kubeconfig)
        return env
