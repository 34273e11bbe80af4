"""
Integration tests for ShellRunner against real processes.

Tests verify:
- Buffered and live output modes
- Exit statuses, signals and cancellation
- Spawn failures surface as OSError
- Per-line output logging with and without correlation IDs
"""

import io
import os
import re
import sys
import threading
import time

import pytest

from helmexec.core.exceptions import CommandCancelledError, ExitError
from helmexec.services.execution.cancellation import ExecutionContext
from helmexec.services.execution.runner import ShellRunner

pytestmark = pytest.mark.skipif(sys.platform == "win32", reason="requires a POSIX shell")


@pytest.fixture
def runner(logger):
    shell_runner = ShellRunner(logger=logger, disable_unique_ids=False)
    yield shell_runner
    shell_runner.close()


class TestBufferedOutput:
    def test_stdout_is_returned(self, runner):
        assert runner.execute("echo", ["template"], None, False) == b"template\n"

    def test_env_overlay_reaches_child(self, runner):
        out = runner.execute("sh", ["-c", "echo $HELMEXEC_TEST_VALUE"], {"HELMEXEC_TEST_VALUE": "42"}, False)

        assert out == b"42\n"

    def test_parent_environment_is_inherited(self, runner, monkeypatch):
        monkeypatch.setenv("HELMEXEC_PARENT_VALUE", "inherited")

        assert runner.execute("sh", ["-c", "echo $HELMEXEC_PARENT_VALUE"], {}, False) == b"inherited\n"

    def test_working_directory(self, logger, tmp_path):
        with ShellRunner(dir=str(tmp_path), logger=logger, disable_unique_ids=True) as shell_runner:
            out = shell_runner.execute("pwd", [], None, False)

        assert os.path.realpath(out.decode().strip()) == os.path.realpath(str(tmp_path))

    def test_stdin_is_fed(self, runner):
        assert runner.execute_stdin("cat", [], None, b"from stdin") == b"from stdin"


class TestLiveOutput:
    def test_output_goes_to_writer(self, logger):
        writer = io.StringIO()
        shell_runner = ShellRunner(logger=logger, live_writer=writer, disable_unique_ids=True)

        assert shell_runner.execute("echo", ["template"], None, True) is None
        assert writer.getvalue() == "template\n"

    def test_stderr_is_merged_and_partial_line_kept(self, logger):
        writer = io.StringIO()
        shell_runner = ShellRunner(logger=logger, live_writer=writer, disable_unique_ids=True)

        shell_runner.execute("sh", ["-c", "echo out; echo err >&2; printf tail"], None, True)

        assert sorted(writer.getvalue().splitlines()[:2]) == ["err", "out"]
        assert writer.getvalue().endswith("tail\n")

    def test_failure_has_no_captured_output(self, logger):
        shell_runner = ShellRunner(logger=logger, live_writer=io.StringIO(), disable_unique_ids=True)

        with pytest.raises(ExitError) as exc_info:
            shell_runner.execute("sh", ["-c", "echo oops; exit 4"], None, True)
        assert exc_info.value.exit_status == 4
        assert exc_info.value.stdout is None
        assert exc_info.value.combined == ""


class TestFailures:
    def test_non_zero_exit(self, runner):
        with pytest.raises(ExitError) as exc_info:
            runner.execute("sh", ["-c", "echo partial; echo broken >&2; exit 2"], None, False)

        error = exc_info.value
        assert error.exit_status == 2
        assert error.error == "exit status 2"
        assert error.stdout == b"partial\n"
        assert error.stderr == "broken"
        assert sorted(error.combined.splitlines()) == ["broken", "partial"]
        assert error.args_vector == ["sh", "-c", "echo partial; echo broken >&2; exit 2"]

    def test_killed_by_signal(self, runner):
        with pytest.raises(ExitError) as exc_info:
            runner.execute("sh", ["-c", "kill -KILL $$"], None, False)

        assert exc_info.value.exit_status == -1
        assert exc_info.value.error == "signal: SIGKILL"
        assert exc_info.value.exit_code == 1

    def test_missing_binary(self, runner):
        with pytest.raises(FileNotFoundError):
            runner.execute("helmexec-no-such-binary", [], None, False)

    def test_secret_values_are_redacted(self, runner):
        with pytest.raises(ExitError) as exc_info:
            runner.execute("sh", ["-c", "exit 1", "--set", "password=hunter2"], None, False)

        assert "hunter2" not in str(exc_info.value)
        assert "*** STRIP ***" in str(exc_info.value)


class TestCancellation:
    @pytest.mark.parametrize("live", [False, True])
    def test_cancel_interrupts_child(self, logger, live):
        ctx = ExecutionContext()
        shell_runner = ShellRunner(logger=logger, ctx=ctx, live_writer=io.StringIO(), disable_unique_ids=True)
        timer = threading.Timer(0.2, ctx.cancel)
        timer.start()

        start = time.monotonic()
        with pytest.raises(CommandCancelledError) as exc_info:
            shell_runner.execute("sleep", ["30"], None, live)

        assert time.monotonic() - start < 10
        assert exc_info.value.error == "signal: SIGINT"
        shell_runner.close()

    @pytest.mark.parametrize("live", [False, True])
    def test_no_child_survives_cancellation(self, logger, tmp_path, live):
        pid_file = tmp_path / "child.pid"
        ctx = ExecutionContext()
        shell_runner = ShellRunner(logger=logger, ctx=ctx, live_writer=io.StringIO(), disable_unique_ids=True)
        timer = threading.Timer(0.3, ctx.cancel)
        timer.start()

        with pytest.raises(CommandCancelledError):
            shell_runner.execute("sh", ["-c", f"echo $$ > {pid_file}; exec sleep 30"], None, live)
        shell_runner.close()

        pid = int(pid_file.read_text().strip())
        with pytest.raises(ProcessLookupError):
            os.kill(pid, 0)

    def test_timeout(self, logger):
        shell_runner = ShellRunner(logger=logger, ctx=ExecutionContext(timeout=0.2), disable_unique_ids=True)

        with pytest.raises(CommandCancelledError):
            shell_runner.execute("sleep", ["30"], None, False)
        shell_runner.close()

    def test_uncancelled_context_leaves_child_alone(self, runner):
        assert runner.execute("sh", ["-c", "sleep 0.2; echo done"], None, False) == b"done\n"


class TestOutputLogging:
    def test_lines_carry_correlation_id(self, runner, logger):
        runner.execute("sh", ["-c", "echo one; echo two"], None, False)

        assert len(logger.lines) == 2
        match = re.fullmatch(r"sh:([0-9a-f]{8})> one", logger.lines[0])
        assert match
        assert logger.lines[1] == f"sh:{match.group(1)}> two"
        assert {level for level, _ in logger.records} == {"debug"}

    def test_each_call_gets_its_own_id(self, runner, logger):
        runner.execute("echo", ["a"], None, False)
        runner.execute("echo", ["b"], None, False)

        first, second = (line.split(">")[0] for line in logger.lines)
        assert first != second

    def test_ids_can_be_disabled(self, logger):
        with ShellRunner(logger=logger, disable_unique_ids=True) as shell_runner:
            shell_runner.execute("echo", ["template"], None, False)

        assert logger.lines == ["echo> template"]

    def test_setting_disables_ids(self, logger, monkeypatch):
        monkeypatch.setenv("HELMFILE_DISABLE_RUNNER_UNIQUE_ID", "1")

        with ShellRunner(logger=logger) as shell_runner:
            shell_runner.execute("echo", ["template"], None, False)

        assert logger.lines == ["echo> template"]

    def test_concurrent_calls_keep_their_lines_together(self, runner, logger):
        script = "for i in 1 2 3 4 5; do echo $i; done"
        threads = [
            threading.Thread(target=runner.execute, args=("sh", ["-c", script], None, False))
            for _ in range(4)
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        by_id: dict[str, list[str]] = {}
        for line in logger.lines:
            prefix, _, text = line.partition("> ")
            by_id.setdefault(prefix, []).append(text)
        assert len(by_id) == 4
        assert all(lines == ["1", "2", "3", "4", "5"] for lines in by_id.values())
