"""
Custom exception hierarchy for helmexec.

Every error a caller can handle derives from HelmexecException. Spawn
failures are the exception: they surface as the raw OSError raised by the
operating system, because no process was ever started.

InvariantViolation is deliberately outside the hierarchy so that code
catching HelmexecException never swallows a programming error.
"""

from __future__ import annotations

from collections.abc import Sequence

from ..filters.redact import render_args


class HelmexecException(Exception):
    """
    Base exception for all helmexec errors.

    Attributes:
        message: Human-readable error description
        context: Additional debugging context (paths, versions, etc.)
        exit_code: Suggested exit code for CLI (default: 1)
        recoverable: Whether retry/recovery may be possible
    """

    exit_code: int = 1
    recoverable: bool = True

    def __init__(
        self,
        message: str,
        *,
        context: dict | None = None,
        cause: Exception | None = None,
    ) -> None:
        self.message = message
        self.context = context or {}
        if cause is not None:
            self.__cause__ = cause
        super().__init__(message)

    def __str__(self) -> str:
        if self.context:
            ctx_str = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
            return f"{self.message} ({ctx_str})"
        return self.message


class InvariantViolation(AssertionError):
    """
    A programming error detected at runtime.

    Raised instead of returning an error value when the runner reaches a
    state that correct code can never produce.
    """


# =============================================================================
# Configuration Errors
# =============================================================================


class HelmexecConfigError(HelmexecException):
    """Base class for configuration-related errors."""

    pass


class ConfigFileError(HelmexecConfigError):
    """
    Error reading or parsing a configuration file.

    Raised for TOML parsing errors, file not found, permission errors, etc.
    """

    def __init__(
        self,
        message: str,
        *,
        file_path: str | None = None,
        context: dict | None = None,
        cause: Exception | None = None,
    ) -> None:
        ctx = context or {}
        if file_path:
            ctx["file_path"] = file_path
        super().__init__(message, context=ctx, cause=cause)


class ConfigValidationError(HelmexecConfigError, ValueError):
    """
    Invalid or missing configuration value.

    Inherits from ValueError so callers validating input can catch either.
    """

    def __init__(
        self,
        message: str,
        *,
        key: str | None = None,
        value: str | None = None,
        context: dict | None = None,
        cause: Exception | None = None,
    ) -> None:
        ctx = context or {}
        if key:
            ctx["key"] = key
        if value is not None:
            ctx["value"] = value
        super().__init__(message, context=ctx, cause=cause)


# =============================================================================
# Execution Errors
# =============================================================================


class HelmexecExecutionError(HelmexecException):
    """Base class for execution-related errors."""

    pass


def _indent(text: str, prefix: str = "  ") -> str:
    return "\n".join(prefix + line for line in text.rstrip("\n").split("\n"))


class ExitError(HelmexecExecutionError):
    """
    A started process exited with a non-zero status.

    The original argument vector is kept untouched; redaction happens only
    when the error is formatted.

    Attributes:
        path: Path of the executed binary
        args_vector: Full argument vector, argv[0] included
        exit_status: Exit status reported by the OS (-1 when killed by a signal)
        error: Underlying error description
        stdout: Captured stdout (None in live-output mode)
        stderr: Captured stderr snapshot
        combined: Interleaved stdout/stderr snapshot
        strip_args_values: Whether secret-bearing argument values are redacted
        signal: Terminating signal number, if any
    """

    recoverable: bool = True

    def __init__(
        self,
        path: str,
        args: Sequence[str],
        exit_status: int,
        error: object,
        stderr: str = "",
        combined: str = "",
        strip_args_values: bool = True,
        *,
        stdout: bytes | None = None,
        signal: int | None = None,
    ) -> None:
        if exit_status == 0:
            raise InvariantViolation(f"exit error constructed for {path!r} with exit status 0")
        self.path = path
        self.args_vector = list(args)
        self.exit_status = exit_status
        self.error = error
        self.stdout = stdout
        self.stderr = stderr
        self.combined = combined
        self.strip_args_values = strip_args_values
        self.signal = signal
        super().__init__(
            f"command {path!r} exited with status {exit_status}",
            cause=error if isinstance(error, Exception) else None,
        )

    @property
    def exit_code(self) -> int:  # type: ignore[override]
        """Exit code a CLI should terminate with."""
        return self.exit_status if self.exit_status > 0 else 1

    def __str__(self) -> str:
        lines = [
            f'command "{self.path}" exited with non-zero status:',
            "",
            "PATH:",
            f"  {self.path}",
            "",
            "ARGS:",
        ]
        for i, arg in enumerate(render_args(self.args_vector, self.strip_args_values)):
            lines.append(f"  {i}: {arg}")
        lines += ["", "ERROR:", f"  {self.error}"]
        if self.combined:
            lines += ["", "COMBINED OUTPUT:", _indent(self.combined)]
        lines += ["", "EXIT STATUS", f"  {self.exit_status}"]
        return "\n".join(lines)


class CommandCancelledError(ExitError):
    """
    The process exited non-zero after being interrupted by cancellation.

    Carries the same diagnostics as ExitError so callers that only care
    about the exit status can treat both alike.
    """


class HelmVersionError(HelmexecExecutionError):
    """
    The helm version could not be determined.

    Raised when the version command fails or its output holds no semantic
    version. Verb syntax depends on the version, so this is not recoverable.
    """

    recoverable: bool = False

    def __init__(
        self,
        message: str,
        *,
        version_text: str | None = None,
        context: dict | None = None,
        cause: Exception | None = None,
    ) -> None:
        ctx = context or {}
        if version_text is not None:
            ctx["version_text"] = version_text
        super().__init__(message, context=ctx, cause=cause)


class PluginNotFoundError(HelmexecExecutionError):
    """
    Requested helm plugin is not installed.
    """

    recoverable: bool = False

    def __init__(
        self,
        message: str,
        *,
        plugin_name: str | None = None,
        context: dict | None = None,
        cause: Exception | None = None,
    ) -> None:
        ctx = context or {}
        if plugin_name:
            ctx["plugin_name"] = plugin_name
        super().__init__(message, context=ctx, cause=cause)


# =============================================================================
# Validation Errors
# =============================================================================


class HelmexecValidationError(HelmexecException, ValueError):
    """
    Base class for input validation errors.

    Inherits from ValueError so callers validating input can catch either.
    """

    pass
