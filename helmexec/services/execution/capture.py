"""
Spawn-and-capture primitives.

capture_output() duplexes a child's stdout and stderr into three buffers
(stdout only, stderr only, combined) and into the output log.
live_output() streams the merged output line by line to a writer while the
child runs.

Both primitives wait for the child while watching an ExecutionContext. On
cancellation the child receives SIGINT once and is then waited for until it
exits, so no child is left unreaped and no reader thread outlives the call.
"""

from __future__ import annotations

import contextlib
import shutil
import signal
import subprocess
import threading
import uuid
from typing import IO, BinaryIO, TextIO

from ...core.exceptions import CommandCancelledError, ExitError
from ...core.models.execution import CapturedOutput, OutputLine, ProcessInvocation, StreamName
from ..logging import OutputLogPump
from .cancellation import ExecutionContext

WAIT_POLL_INTERVAL = 0.05


def new_execution_id() -> str:
    """Opaque token telling concurrent invocations of one binary apart in the log."""
    return uuid.uuid4().hex[:8]


def _spawn(invocation: ProcessInvocation, *, merge_stderr: bool) -> subprocess.Popen:
    # OSError (missing binary, no permission) propagates as-is
    return subprocess.Popen(
        invocation.argv,
        stdin=subprocess.PIPE if invocation.stdin is not None else subprocess.DEVNULL,
        stdout=subprocess.PIPE,
        stderr=subprocess.STDOUT if merge_stderr else subprocess.PIPE,
        cwd=invocation.dir,
        env=dict(invocation.env) if invocation.env else None,
    )


def _wait(proc: subprocess.Popen, ctx: ExecutionContext) -> bool:
    """
    Wait for ``proc`` to exit, interrupting it once if ``ctx`` is cancelled.

    Returns:
        Whether the child was interrupted
    """
    interrupted = False
    while True:
        try:
            proc.wait(timeout=WAIT_POLL_INTERVAL)
            return interrupted
        except subprocess.TimeoutExpired:
            if not interrupted and ctx.cancelled:
                proc.send_signal(signal.SIGINT)
                interrupted = True


def _feed_stdin(pipe: IO[bytes], source: bytes | BinaryIO) -> None:
    try:
        if isinstance(source, (bytes, bytearray)):
            pipe.write(source)
        else:
            shutil.copyfileobj(source, pipe)
    except BrokenPipeError:
        # child exited or closed stdin before reading everything
        pass
    finally:
        with contextlib.suppress(BrokenPipeError):
            pipe.close()


def _exit_error(
    invocation: ProcessInvocation,
    returncode: int,
    interrupted: bool,
    strip_args_values: bool,
    *,
    stdout: bytes | None = None,
    stderr: bytes = b"",
    combined: bytes = b"",
) -> ExitError:
    if returncode < 0:
        signum = -returncode
        try:
            error = f"signal: {signal.Signals(signum).name}"
        except ValueError:
            error = f"signal: {signum}"
        exit_status, terminated_by = -1, signum
    else:
        error = f"exit status {returncode}"
        exit_status, terminated_by = returncode, None

    error_cls = CommandCancelledError if interrupted else ExitError
    return error_cls(
        invocation.path,
        invocation.argv,
        exit_status,
        error,
        stderr.decode(errors="replace").strip(),
        combined.decode(errors="replace").strip(),
        strip_args_values,
        stdout=stdout,
        signal=terminated_by,
    )


def capture_output(
    ctx: ExecutionContext,
    invocation: ProcessInvocation,
    strip_args_values_on_exit_error: bool,
    pump: OutputLogPump | None = None,
    disable_unique_ids: bool = False,
) -> bytes:
    """
    Run ``invocation`` and return its stdout.

    Raises:
        OSError: If the process cannot be spawned
        ExitError: If the process exits non-zero
        CommandCancelledError: If it exits non-zero after cancellation
    """
    captured = CapturedOutput()
    stdout_sink = captured.attach_stdout()
    stderr_sink = captured.attach_stderr()
    combined_lock = threading.Lock()

    binary = invocation.binary_name
    correlation_id = "" if disable_unique_ids else new_execution_id()

    def drain(pipe: IO[bytes], stream: StreamName, sink: bytearray) -> None:
        with pipe:
            for chunk in iter(pipe.readline, b""):
                sink.extend(chunk)
                with combined_lock:
                    captured.combined.extend(chunk)
                if pump is not None:
                    line = chunk.decode(errors="replace").strip()
                    pump.emit(OutputLine(binary, correlation_id, stream, line))

    proc = _spawn(invocation, merge_stderr=False)
    threads = [
        threading.Thread(target=drain, args=(proc.stdout, "stdout", stdout_sink), daemon=True),
        threading.Thread(target=drain, args=(proc.stderr, "stderr", stderr_sink), daemon=True),
    ]
    if invocation.stdin is not None:
        threads.append(
            threading.Thread(target=_feed_stdin, args=(proc.stdin, invocation.stdin), daemon=True)
        )
    for thread in threads:
        thread.start()

    interrupted = _wait(proc, ctx)
    for thread in threads:
        thread.join()
    if pump is not None:
        pump.barrier()

    if proc.returncode != 0:
        raise _exit_error(
            invocation,
            proc.returncode,
            interrupted,
            strip_args_values_on_exit_error,
            stdout=captured.stdout,
            stderr=captured.stderr,
            combined=bytes(captured.combined),
        )
    return captured.stdout


def live_output(
    ctx: ExecutionContext,
    invocation: ProcessInvocation,
    strip_args_values_on_exit_error: bool,
    writer: TextIO,
) -> None:
    """
    Run ``invocation``, streaming its merged stdout/stderr to ``writer``.

    Returns None rather than empty bytes: the output was already delivered.
    The call returns only after the scanner thread has written the last
    line, so no trailing output is lost.

    Raises:
        OSError: If the process cannot be spawned
        ExitError: If the process exits non-zero
        CommandCancelledError: If it exits non-zero after cancellation
    """
    proc = _spawn(invocation, merge_stderr=True)

    def scan() -> None:
        with proc.stdout:
            for raw in iter(proc.stdout.readline, b""):
                line = raw.decode(errors="replace")
                if line.endswith("\n"):
                    line = line[:-1]
                writer.write(line + "\n")
        writer.flush()

    scanner = threading.Thread(target=scan, name="helmexec-live-output", daemon=True)
    scanner.start()
    feeder = None
    if invocation.stdin is not None:
        feeder = threading.Thread(target=_feed_stdin, args=(proc.stdin, invocation.stdin), daemon=True)
        feeder.start()

    interrupted = _wait(proc, ctx)
    scanner.join()
    if feeder is not None:
        feeder.join()

    if proc.returncode != 0:
        raise _exit_error(invocation, proc.returncode, interrupted, strip_args_values_on_exit_error)
    return None
