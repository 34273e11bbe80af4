"""
HelmExec: the helm client facade.

Every verb builds an argument vector, logs what it is about to do, runs
helm through an IRunner and routes the command's output either to the log
(info level) or to a writer (stdout by default).

A HelmExec never changes after construction. ``with_extra_args()``,
``with_helm_binary()`` and ``with_options()`` return new facades that share
the runner, the logger and the decrypted-secret cache of the original.
"""

from __future__ import annotations

import copy
import os
import sys
from collections.abc import Mapping
from typing import BinaryIO, TextIO

import yaml

from ...core.di import resolve_or_default
from ...core.exceptions import (
    ExitError,
    HelmexecExecutionError,
    HelmexecValidationError,
)
from ...core.interfaces.logger import ILogger
from ...core.interfaces.runner import IRunner
from ...core.models.chart import ChartMetadata
from ...core.models.execution import HelmContext, HelmExecOptions
from ...core.models.version import Version
from ...filters.redact import redacted_url
from ..logging import NullLogger
from ..secrets.cache import DecryptedSecretCache
from ..secrets.materialize import TempFileWriter, write_temp_file
from ..version.semver import get_helm_version, get_plugin_version

OCI_ENV = {"HELM_EXPERIMENTAL_OCI": "1"}

# helm >= 3.3.2 refuses to overwrite an existing repo without --force-update
FORCE_UPDATE_CONSTRAINT = ">= 3.3.2"
# helm 3.7.0 replaced `chart pull` with `pull oci://` and dropped `chart export`
OCI_PULL_CONSTRAINT = ">= 3.7.0"


def resolve_oci_chart(oci_chart: str) -> tuple[str, str]:
    """
    Split an OCI chart reference into its ``oci://`` URL and tag.

    A colon before the last slash belongs to the registry port, not a tag.

    Example:
        >>> resolve_oci_chart("registry:443/helm-charts:latest")
        ('oci://registry:443/helm-charts', 'latest')
        >>> resolve_oci_chart("registry:443/helm-charts")
        ('oci://registry:443/helm-charts', '')
    """
    colon = oci_chart.rfind(":")
    if colon <= oci_chart.rfind("/"):
        return f"oci://{oci_chart}", ""
    return f"oci://{oci_chart[:colon]}", oci_chart[colon + 1 :]


def _runner_default() -> IRunner:
    from ..execution.runner import ShellRunner

    return ShellRunner(logger=resolve_or_default(ILogger, NullLogger))  # type: ignore[type-abstract]


class HelmExec:
    """
    Runs helm verbs against one helm binary and kube context.

    Example:
        >>> helm = HelmExec("helm", kube_context="dev")
        >>> helm.add_repo("stable", "https://charts.example.com/")
        >>> helm.sync_release(HelmContext(history_max=10), "web", "stable/web", "--wait")
    """

    def __init__(
        self,
        helm_binary: str = "helm",
        options: HelmExecOptions | None = None,
        logger: ILogger | None = None,
        kube_context: str | None = None,
        runner: IRunner | None = None,
        *,
        version: Version | None = None,
        secret_cache: DecryptedSecretCache | None = None,
        temp_file_writer: TempFileWriter | None = None,
    ) -> None:
        """
        Initialize the facade and detect the helm version.

        Args:
            helm_binary: Path or name of the helm executable
            options: Live output and force-update switches
            logger: Receives verb summaries and ``exec:`` lines
            kube_context: Passed as ``--kube-context`` to every command
            runner: Spawns processes (a ShellRunner when omitted)
            version: Skip detection and use this version
            secret_cache: Share decrypted secrets with another facade
            temp_file_writer: Materializes decrypted secrets to a file

        Raises:
            HelmVersionError: If the helm version cannot be determined
        """
        self._logger = logger or resolve_or_default(ILogger, NullLogger)  # type: ignore[type-abstract]
        self._runner = runner or resolve_or_default(IRunner, _runner_default)  # type: ignore[type-abstract]
        self._helm_binary = helm_binary
        self._options = options or HelmExecOptions()
        self._kube_context = kube_context or None
        self._extra: tuple[str, ...] = ()
        self._secrets = secret_cache or DecryptedSecretCache(self._logger)
        self._temp_file_writer = temp_file_writer or write_temp_file
        self._version = version or get_helm_version(helm_binary, self._runner)

    # ------------------------------------------------------------------
    # Derivation
    # ------------------------------------------------------------------

    def _derive(self, **changes: object) -> HelmExec:
        derived = copy.copy(self)
        for name, value in changes.items():
            setattr(derived, f"_{name}", value)
        return derived

    def with_extra_args(self, *args: str) -> HelmExec:
        """Facade that appends ``args`` to every command (replacing earlier extras)."""
        return self._derive(extra=tuple(args))

    def with_helm_binary(self, helm_binary: str) -> HelmExec:
        """Facade for another helm binary; its version is detected anew."""
        return self._derive(
            helm_binary=helm_binary,
            version=get_helm_version(helm_binary, self._runner),
        )

    def with_options(
        self,
        *,
        enable_live_output: bool | None = None,
        disable_force_update: bool | None = None,
    ) -> HelmExec:
        opts = self._options
        return self._derive(
            options=HelmExecOptions(
                enable_live_output=opts.enable_live_output
                if enable_live_output is None
                else enable_live_output,
                disable_force_update=opts.disable_force_update
                if disable_force_update is None
                else disable_force_update,
            )
        )

    @property
    def helm_binary(self) -> str:
        return self._helm_binary

    @property
    def kube_context(self) -> str | None:
        return self._kube_context

    @property
    def options(self) -> HelmExecOptions:
        return self._options

    @property
    def extra_args(self) -> tuple[str, ...]:
        return self._extra

    # ------------------------------------------------------------------
    # Version queries
    # ------------------------------------------------------------------

    def is_helm3(self) -> bool:
        return self._version.major == 3

    def get_version(self) -> Version:
        return self._version

    def is_version_at_least(self, version: str) -> bool:
        """
        Raises:
            ValueError: If ``version`` is not a semantic version
        """
        return self._version.is_at_least(version)

    # ------------------------------------------------------------------
    # Repositories and registries
    # ------------------------------------------------------------------

    def add_repo(
        self,
        name: str,
        repository: str,
        cafile: str = "",
        certfile: str = "",
        keyfile: str = "",
        username: str = "",
        password: str = "",
        managed: str = "",
        pass_credentials: bool = False,
        skip_tls_verify: bool = False,
    ) -> None:
        """
        Register a chart repository.

        ``managed="acr"`` delegates to the Azure CLI. Any other non-empty
        ``managed`` value is logged as an error and nothing runs.

        Raises:
            HelmexecValidationError: If ``name`` is empty but a repository is given
        """
        if not name and repository:
            self._logger.info("empty field name\n")
            raise HelmexecValidationError("empty field name")

        if managed == "acr":
            self._logger.info("Adding repo %s (acr)", name)
            out = self._azcli(name)
        elif managed == "":
            args = ["repo", "add", name, repository]
            if not self._options.disable_force_update and self._version.satisfies(
                FORCE_UPDATE_CONSTRAINT
            ):
                args.append("--force-update")
            if certfile and keyfile:
                args += ["--cert-file", certfile, "--key-file", keyfile]
            if cafile:
                args += ["--ca-file", cafile]
            if username and password:
                args += ["--username", username, "--password", password]
            if pass_credentials:
                args.append("--pass-credentials")
            if skip_tls_verify:
                args.append("--insecure-skip-tls-verify")
            self._logger.info("Adding repo %s %s", name, repository)
            out = self._exec(args)
        else:
            self._logger.error("ERROR: unknown type '%s' for repository %s", managed, name)
            return
        self._info(out)

    def update_repo(self) -> None:
        self._logger.info("Updating repo")
        self._info(self._exec(["repo", "update"]))

    def registry_login(self, repository: str, username: str, password: str) -> None:
        """Log in to an OCI registry; the password travels over stdin."""
        self._logger.info("Logging in to registry")
        args = ["registry", "login", repository, "--username", username, "--password-stdin"]
        out = self._exec_stdin(args, OCI_ENV, f"{password}\n".encode())
        self._info(out)

    # ------------------------------------------------------------------
    # Charts and dependencies
    # ------------------------------------------------------------------

    def build_deps(self, name: str, chart: str, *flags: str) -> None:
        self._logger.info("Building dependency release=%s, chart=%s", name, chart)
        self._info(self._exec(["dependency", "build", chart, *flags]))

    def update_deps(self, chart: str) -> None:
        self._logger.info("Updating dependency %s", chart)
        self._info(self._exec(["dependency", "update", chart]))

    def fetch(self, chart: str, *flags: str) -> None:
        self._logger.info("Fetching %s", redacted_url(chart))
        self._info(self._exec(["fetch", chart, *flags]))

    def chart_pull(self, chart: str, path: str, *flags: str) -> None:
        """Pull an OCI chart into ``path``."""
        self._logger.info("Pulling %s", chart)
        if self._version.satisfies(OCI_PULL_CONSTRAINT):
            url, tag = resolve_oci_chart(chart)
            args = ["pull", url, "--version", tag, "--destination", path, "--untar"]
        else:
            args = ["chart", "pull", chart]
        self._info(self._exec([*args, *flags], OCI_ENV))

    def chart_export(self, chart: str, path: str, *flags: str) -> None:
        """Export a pulled OCI chart; helm 3.7.0 and later need no export."""
        if self._version.satisfies(OCI_PULL_CONSTRAINT):
            return
        self._logger.info("Exporting %s", chart)
        args = ["chart", "export", chart, "--destination", path, *flags]
        self._info(self._exec(args, OCI_ENV))

    def lint(self, name: str, chart: str, *flags: str) -> None:
        self._logger.info("Linting release=%s, chart=%s", name, chart)
        self._write(None, self._exec(["lint", chart, *flags]))

    def template_release(self, name: str, chart: str, *flags: str) -> None:
        """
        Render a chart.

        With ``--output-dir`` helm writes manifests to disk and prints only
        progress lines, which go to the log. Otherwise the manifests go to
        stdout so they can be piped into kubectl.
        """
        self._logger.info("Templating release=%s, chart=%s", name, redacted_url(chart))
        out = self._exec(["template", name, chart, *flags])
        if any(f.startswith("--output-dir") for f in flags):
            self._info(out)
        else:
            self._write(None, out)

    def show_chart(self, chart: str) -> ChartMetadata:
        """
        Metadata of ``chart`` as printed by ``helm show chart``.

        Raises:
            HelmexecExecutionError: If helm prints something that is not chart metadata
        """
        out = self._exec(["show", "chart", chart], live_output=False) or b""
        try:
            data = yaml.safe_load(out)
        except yaml.YAMLError as e:
            raise HelmexecExecutionError(
                "invalid chart metadata", context={"chart": chart}, cause=e
            ) from e
        return ChartMetadata.model_validate(data or {})

    # ------------------------------------------------------------------
    # Releases
    # ------------------------------------------------------------------

    def sync_release(self, ctx: HelmContext, name: str, chart: str, *flags: str) -> None:
        self._logger.info("Upgrading release=%s, chart=%s", name, redacted_url(chart))
        args = ["upgrade", "--install", name, chart, *flags, "--history-max", str(ctx.history_max)]
        self._write(None, self._exec(args, ctx=ctx))

    def diff_release(
        self,
        ctx: HelmContext,
        name: str,
        chart: str,
        suppress_diff: bool,
        *flags: str,
    ) -> None:
        """
        Show what an upgrade would change.

        With a ``--detailed-exitcode`` flag helm exits 2 when a diff exists;
        the diff is then written and the ExitError re-raised so callers can
        tell "changes pending" apart from "no changes".
        """
        summary = f"Comparing release={name}, chart={redacted_url(chart)}"
        if ctx.writer is not None:
            ctx.writer.write(summary + "\n")
        else:
            self._logger.info("%s", summary)

        args = ["diff", "upgrade", "--allow-unreleased", name, chart, *flags]
        detailed_exitcode = any("detailed-exitcode" in f for f in flags)
        try:
            out = self._exec(args, live_output=False if suppress_diff else None, ctx=ctx)
        except ExitError as e:
            if detailed_exitcode:
                if e.exit_status == 2 and not suppress_diff:
                    self._write(ctx.writer, e.stdout)
            elif not suppress_diff:
                self._write(ctx.writer, e.stdout)
            raise
        if not detailed_exitcode and not suppress_diff:
            self._write(ctx.writer, out)

    def release_status(self, ctx: HelmContext, name: str, *flags: str) -> None:
        self._logger.info("Getting status %s", name)
        self._write(None, self._exec(["status", name, *flags], ctx=ctx))

    def delete_release(self, ctx: HelmContext, name: str, *flags: str) -> None:
        self._logger.info("Deleting %s", name)
        self._write(None, self._exec(["delete", name, *flags], ctx=ctx))

    def test_release(self, ctx: HelmContext, name: str, *flags: str) -> None:
        self._logger.info("Testing %s", name)
        self._write(None, self._exec(["test", name, *flags], ctx=ctx))

    def list_releases(self, ctx: HelmContext, filter: str, *flags: str) -> str:
        """
        Releases matching ``filter``, one per line.

        Helm 3 prints a column header even when nothing matches; the first
        line is dropped so that empty output means "no such release".
        """
        self._logger.info("Listing releases matching %s", filter)
        out = self._exec(["list", "--filter", filter, *flags], live_output=False, ctx=ctx) or b""
        lines = out.decode(errors="replace").split("\n")
        result = "\n".join(lines[1:])
        self._write(None, result)
        return result

    # ------------------------------------------------------------------
    # Secrets and plugins
    # ------------------------------------------------------------------

    def decrypt_secret(self, ctx: HelmContext, name: str, *flags: str) -> str:
        """
        Decrypt a secrets file and write the plaintext to a fresh file.

        The file at ``name`` is decrypted at most once per cache; every call
        still gets its own file, which the caller must remove.

        Returns:
            Path of the written plaintext file
        """
        abs_path = os.path.abspath(name)
        self._logger.debug("Preparing to decrypt secret %s", abs_path)

        def decrypt() -> bytes:
            self._logger.info("Decrypting secret %s", abs_path)
            plugin_version = get_plugin_version("secrets")
            # helm-secrets 4 renamed `view` to `decrypt`
            verb = "decrypt" if plugin_version.major > 3 else "view"
            out = self._exec(["secrets", verb, abs_path, *flags], live_output=False, ctx=ctx)
            return out or b""

        content = self._secrets.get_or_decrypt(abs_path, decrypt)
        tmp_path = self._temp_file_writer(name, content)
        self._logger.debug("Decrypted %s into %s", abs_path, tmp_path)
        return tmp_path

    def add_plugin(self, name: str, path: str, version: str) -> None:
        self._logger.info("Install helm plugin %s", name)
        self._info(self._exec(["plugin", "install", path, "--version", version]))

    def update_plugin(self, name: str) -> None:
        self._logger.info("Update helm plugin %s", name)
        self._info(self._exec(["plugin", "update", name]))

    # ------------------------------------------------------------------
    # Plumbing
    # ------------------------------------------------------------------

    def _command_args(self, args: list[str], ctx: HelmContext | None) -> list[str]:
        cmdargs = [*args, *self._extra]
        if ctx is not None:
            cmdargs = ctx.tillerless_args(self._helm_binary, self._version.major) + cmdargs
        if self._kube_context:
            cmdargs = ["--kube-context", self._kube_context, *cmdargs]
        return cmdargs

    def _exec(
        self,
        args: list[str],
        env: Mapping[str, str] | None = None,
        *,
        live_output: bool | None = None,
        ctx: HelmContext | None = None,
    ) -> bytes | None:
        cmdargs = self._command_args(args, ctx)
        merged_env = dict(env or {})
        if ctx is not None:
            merged_env.update(ctx.tillerless_env())
        self._logger.debug("exec: %s %s", self._helm_binary, " ".join(cmdargs))
        enable_live_output = (
            self._options.enable_live_output if live_output is None else live_output
        )
        return self._runner.execute(self._helm_binary, cmdargs, merged_env, enable_live_output)

    def _exec_stdin(
        self,
        args: list[str],
        env: Mapping[str, str] | None,
        stdin: bytes | BinaryIO,
    ) -> bytes:
        cmdargs = self._command_args(args, None)
        self._logger.debug("exec: %s %s", self._helm_binary, " ".join(cmdargs))
        return self._runner.execute_stdin(self._helm_binary, cmdargs, dict(env or {}), stdin)

    def _azcli(self, name: str) -> bytes | None:
        cmdargs = ["acr", "helm", "repo", "add", "--name", name]
        cmd = f"exec: az {' '.join(cmdargs)}"
        self._logger.debug("%s", cmd)
        out = self._runner.execute("az", cmdargs, {}, False)
        self._logger.debug("%s: %s", cmd, (out or b"").decode(errors="replace"))
        return out

    def _info(self, out: bytes | str | None) -> None:
        if out:
            text = out.decode(errors="replace") if isinstance(out, bytes) else out
            self._logger.info("%s", text)

    def _write(self, writer: TextIO | None, out: bytes | str | None) -> None:
        if out:
            text = out.decode(errors="replace") if isinstance(out, bytes) else out
            (writer or sys.stdout).write(text + "\n")
