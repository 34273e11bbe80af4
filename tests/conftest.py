"""
Shared pytest fixtures for helmexec tests.

This module provides:
- RecordingLogger: an ILogger that keeps every formatted record in order
- MockRunner: a scripted IRunner that answers the helm version probe
- isolated_environment: clears HELMFILE_* variables and the DI container
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

import pytest

from helmexec.core.bootstrap import reset
from helmexec.core.interfaces.logger import ILogger
from helmexec.core.models.version import Version
from helmexec.services.helm.execer import HelmExec

HELM_VERSION_OUTPUT = b"v3.2.4+ge29ce2a"


class RecordingLogger(ILogger):
    """Logger that records (level, message) pairs, formatted like stdlib logging."""

    def __init__(self) -> None:
        self.records: list[tuple[str, str]] = []

    def _record(self, level: str, message: str, args: tuple[Any, ...]) -> None:
        self.records.append((level, message % args if args else message))

    def debug(self, message: str, *args: Any, **kwargs: Any) -> None:
        self._record("debug", message, args)

    def info(self, message: str, *args: Any, **kwargs: Any) -> None:
        self._record("info", message, args)

    def warning(self, message: str, *args: Any, **kwargs: Any) -> None:
        self._record("warning", message, args)

    def error(self, message: str, *args: Any, **kwargs: Any) -> None:
        self._record("error", message, args)

    def set_level(self, level: str) -> None:
        pass

    @property
    def lines(self) -> list[str]:
        return [message for _, message in self.records]

    def at(self, level: str) -> list[str]:
        return [message for lvl, message in self.records if lvl == level]

    def clear(self) -> None:
        self.records.clear()


@dataclass
class RunnerCall:
    cmd: str
    args: list[str]
    env: dict[str, str] | None
    live_output: bool | None = None
    stdin: bytes | None = None


@dataclass
class MockRunner:
    """
    Scripted IRunner.

    Returns ``output`` (or raises ``error``) for every call, except that
    ``helm version --client --short`` answers with a helm 3.2.4 version
    string while no output is scripted.
    """

    output: bytes | None = b""
    error: BaseException | None = None
    calls: list[RunnerCall] = field(default_factory=list)

    def execute(
        self,
        cmd: str,
        args: list[str],
        env: Mapping[str, str] | None,
        enable_live_output: bool,
    ) -> bytes | None:
        if not self.output and args == ["version", "--client", "--short"]:
            return HELM_VERSION_OUTPUT
        self.calls.append(RunnerCall(cmd, list(args), dict(env) if env is not None else None, enable_live_output))
        if self.error is not None:
            raise self.error
        return self.output

    def execute_stdin(
        self,
        cmd: str,
        args: list[str],
        env: Mapping[str, str] | None,
        stdin: Any,
    ) -> bytes:
        self.calls.append(RunnerCall(cmd, list(args), dict(env) if env is not None else None, stdin=stdin))
        if self.error is not None:
            raise self.error
        return self.output or b""


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch):
    """Keep HELMFILE_* settings and DI registrations from leaking between tests."""
    for name in list(os.environ):
        if name.startswith("HELMFILE_"):
            monkeypatch.delenv(name)
    reset()
    yield
    reset()


@pytest.fixture
def logger() -> RecordingLogger:
    return RecordingLogger()


@pytest.fixture
def mock_runner() -> MockRunner:
    return MockRunner()


@pytest.fixture
def make_helm(logger, mock_runner):
    """Factory for a HelmExec wired to the recording logger and mock runner."""

    def _make(
        kube_context: str | None = "dev",
        version: str | None = None,
        **kwargs: Any,
    ) -> HelmExec:
        return HelmExec(
            "helm",
            logger=logger,
            kube_context=kube_context,
            runner=mock_runner,
            version=Version.parse(version) if version else None,
            **kwargs,
        )

    return _make
