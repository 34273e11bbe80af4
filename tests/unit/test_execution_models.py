"""
Unit tests for execution helpers and per-call models.

Tests verify:
- Environment merging and KEY=VALUE parsing
- Single attachment of capture sinks
- Tillerless command prefix and environment
- Cancellation context deadlines
"""

import os
import time

import pytest

from helmexec.core.exceptions import InvariantViolation
from helmexec.core.models.execution import CapturedOutput, HelmContext, OutputLine, ProcessInvocation
from helmexec.services.execution.cancellation import ExecutionContext, background
from helmexec.services.execution.capture import new_execution_id
from helmexec.services.execution.runner import env_to_map, merge_env


class TestMergeEnv:
    def test_overlay_wins(self):
        merged = merge_env(["A=1", "B=c=d", "E=2"], {"B": "3", "F": "4"})

        assert merged == {"A": "1", "B": "3", "E": "2", "F": "4"}

    def test_mapping_input_is_not_mutated(self):
        orig = {"A": "1"}

        merged = merge_env(orig, {"A": "2"})

        assert merged == {"A": "2"}
        assert orig == {"A": "1"}

    def test_no_overlay(self):
        assert merge_env(["A=1"], None) == {"A": "1"}

    def test_env_to_map_splits_on_first_equals(self):
        assert env_to_map(["B=c=d", "EMPTY=", "BARE"]) == {"B": "c=d", "EMPTY": "", "BARE": ""}


class TestCapturedOutput:
    def test_stdout_attaches_once(self):
        captured = CapturedOutput()
        captured.attach_stdout()

        with pytest.raises(InvariantViolation, match="exec: stdout already set"):
            captured.attach_stdout()

    def test_stderr_attaches_once(self):
        captured = CapturedOutput()
        captured.attach_stderr()

        with pytest.raises(InvariantViolation, match="exec: stderr already set"):
            captured.attach_stderr()

    def test_snapshots(self):
        captured = CapturedOutput()
        captured.attach_stdout().extend(b"out")

        assert captured.stdout == b"out"
        assert captured.stderr == b""


class TestProcessInvocation:
    def test_argv_includes_binary(self):
        invocation = ProcessInvocation(path="/usr/local/bin/helm", args=["version"])

        assert invocation.argv == ["/usr/local/bin/helm", "version"]
        assert invocation.binary_name == "helm"

    def test_output_line_prefix(self):
        assert OutputLine("helm", "abcd1234", "stdout", "x").prefix == "helm:abcd1234> "
        assert OutputLine("helm", "", "stdout", "x").prefix == "helm> "


class TestHelmContext:
    @pytest.mark.parametrize(
        ("kubeconfig", "expected"),
        [
            ("", {"HELM_TILLER_SILENT": "true"}),
            ("abc", {"HELM_TILLER_SILENT": "true", "KUBECONFIG": os.path.join(os.getcwd(), "abc")}),
            ("/path/to/kubeconfig", {"HELM_TILLER_SILENT": "true", "KUBECONFIG": "/path/to/kubeconfig"}),
        ],
    )
    def test_tillerless_env(self, monkeypatch, kubeconfig, expected):
        monkeypatch.setenv("KUBECONFIG", kubeconfig)

        assert HelmContext(tillerless=True).tillerless_env() == expected

    def test_no_tillerless_env(self):
        assert HelmContext().tillerless_env() == {}

    @pytest.mark.parametrize(
        ("ctx", "major", "expected"),
        [
            (HelmContext(tillerless=True), 2, ["tiller", "run", "--", "helm"]),
            (HelmContext(tillerless=True, tiller_namespace="ns"), 2, ["tiller", "run", "ns", "--", "helm"]),
            (HelmContext(tillerless=True), 3, []),
            (HelmContext(), 2, []),
        ],
    )
    def test_tillerless_args(self, ctx, major, expected):
        assert ctx.tillerless_args("helm", major) == expected


class TestExecutionContext:
    def test_background_is_not_cancelled(self):
        assert not background().cancelled

    def test_cancel(self):
        ctx = ExecutionContext()
        ctx.cancel()

        assert ctx.cancelled

    def test_deadline(self):
        ctx = ExecutionContext(timeout=0.01)
        time.sleep(0.05)

        assert ctx.cancelled

    def test_execution_ids_are_short_and_distinct(self):
        ids = {new_execution_id() for _ in range(100)}

        assert len(ids) == 100
        assert all(len(i) == 8 for i in ids)
