"""sentry-cli adapter for the release-management collaborator.

The pipeline only depends on the ReleaseCli protocol. SentryCli implements it
by shelling out to ``sentry-cli``; credentials travel through the environment
so they never show up in process listings.
"""

from __future__ import annotations

import os
import shutil
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Protocol

from sourcemark import __version__
from sourcemark.core.config import DeployOptions, IncludeEntry, Options, SetCommitsOptions
from sourcemark.core.result import Err, Ok, Result
from sourcemark.output.console import ConsoleProtocol, Style
from sourcemark.platform.process import run as run_process

from .errors import ReleaseError
from .timeouts import CLI_TIMEOUT_SECONDS, CLI_UPLOAD_TIMEOUT_SECONDS

__all__ = ["ReleaseCli", "SentryCli", "include_entry_args"]

CLI_EXECUTABLE = "sentry-cli"


class ReleaseCli(Protocol):
    """Remote release operations. Each call is one logical network operation."""

    def create_release(self, name: str) -> Result[None, ReleaseError]: ...

    def delete_artifacts(self, name: str) -> Result[None, ReleaseError]: ...

    def upload_source_maps(
        self, name: str, include: Sequence[IncludeEntry], dist: str | None
    ) -> Result[None, ReleaseError]: ...

    def set_commits(self, name: str, options: SetCommitsOptions) -> Result[None, ReleaseError]: ...

    def finalize(self, name: str) -> Result[None, ReleaseError]: ...

    def add_deploy(self, name: str, deploy: DeployOptions) -> Result[None, ReleaseError]: ...

    def upload_debug_id_bundle(
        self, directory: Path, *, release: str | None, dist: str | None
    ) -> Result[None, ReleaseError]: ...


def include_entry_args(entry: IncludeEntry) -> list[str]:
    """Translate one include entry to upload-sourcemaps arguments."""
    args = list(entry.paths)
    for pattern in entry.ignore:
        args.extend(["--ignore", pattern])
    if entry.ignore_file:
        args.extend(["--ignore-file", entry.ignore_file])
    for ext in entry.ext:
        args.extend(["--ext", ext])
    if entry.url_prefix:
        args.extend(["--url-prefix", entry.url_prefix])
    if entry.url_suffix:
        args.extend(["--url-suffix", entry.url_suffix])
    for prefix in entry.strip_prefix:
        args.extend(["--strip-prefix", prefix])
    if entry.strip_common_prefix:
        args.append("--strip-common-prefix")
    if not entry.source_map_reference:
        args.append("--no-sourcemap-reference")
    if entry.rewrite:
        args.append("--rewrite")
    if entry.validate:
        args.append("--validate")
    return args


class SentryCli:
    """ReleaseCli backed by the sentry-cli binary.

    Args:
        options: Supplies credentials, org, project and server URL.
        cwd: Working directory for every invocation (paths are relative to it).
        console: Receives the command line of each call at debug level.
        executable: Path to sentry-cli (default: looked up on PATH).
        base_env: Environment to extend (default: os.environ).
    """

    def __init__(
        self,
        options: Options,
        *,
        cwd: Path,
        console: ConsoleProtocol,
        executable: str | None = None,
        base_env: Mapping[str, str] | None = None,
    ) -> None:
        self._options = options
        self._cwd = cwd
        self._console = console
        self._executable = executable or shutil.which(CLI_EXECUTABLE) or CLI_EXECUTABLE
        self._base_env = dict(os.environ if base_env is None else base_env)

    def ensure_available(self) -> Result[None, ReleaseError]:
        if shutil.which(self._executable) is None and not Path(self._executable).is_file():
            return Err(
                ReleaseError(
                    kind="cli_missing",
                    message="sentry-cli: missing",
                    hint="Install it: https://docs.sentry.io/cli/installation/",
                )
            )
        return Ok(None)

    def _env(self) -> dict[str, str]:
        env = dict(self._base_env)
        env["SENTRY_PIPELINE"] = f"sourcemark/{__version__}"
        overrides = {
            "SENTRY_AUTH_TOKEN": self._options.auth_token,
            "SENTRY_ORG": self._options.org,
            "SENTRY_PROJECT": self._options.project,
            "SENTRY_URL": self._options.url,
        }
        for key, value in overrides.items():
            if value:
                env[key] = value
        return env

    def _execute(
        self,
        args: list[str],
        *,
        message: str,
        timeout: float = CLI_TIMEOUT_SECONDS,
    ) -> Result[None, ReleaseError]:
        cmd = [self._executable, *args]
        self._console.print(" ".join(cmd[:4]) + (" ..." if len(cmd) > 4 else ""), Style.DIM)
        self._console.debug(" ".join(cmd))

        result = run_process(cmd, cwd=self._cwd, env=self._env(), timeout=timeout)
        if isinstance(result, Err):
            return Err(
                ReleaseError(
                    kind="step_failed",
                    message=message,
                    hint=result.error.detail,
                )
            )
        return Ok(None)

    def create_release(self, name: str) -> Result[None, ReleaseError]:
        return self._execute(
            ["releases", "new", name],
            message=f"failed to create release {name}",
        )

    def delete_artifacts(self, name: str) -> Result[None, ReleaseError]:
        return self._execute(
            ["releases", "files", name, "delete", "--all"],
            message=f"failed to delete artifacts of release {name}",
        )

    def upload_source_maps(
        self, name: str, include: Sequence[IncludeEntry], dist: str | None
    ) -> Result[None, ReleaseError]:
        for entry in include:
            args = ["releases", "files", name, "upload-sourcemaps", *include_entry_args(entry)]
            if dist:
                args.extend(["--dist", dist])
            result = self._execute(
                args,
                message=f"failed to upload source maps from {', '.join(entry.paths)}",
                timeout=CLI_UPLOAD_TIMEOUT_SECONDS,
            )
            if isinstance(result, Err):
                return result
        return Ok(None)

    def set_commits(self, name: str, options: SetCommitsOptions) -> Result[None, ReleaseError]:
        args = ["releases", "set-commits", name]
        if options.auto:
            args.append("--auto")
        else:
            commit_range = f"{options.repo}@{options.commit}"
            if options.previous_commit:
                commit_range = f"{options.repo}@{options.previous_commit}..{options.commit}"
            args.extend(["--commit", commit_range])
        if options.ignore_missing:
            args.append("--ignore-missing")
        if options.ignore_empty:
            args.append("--ignore-empty")
        return self._execute(args, message=f"failed to set commits for release {name}")

    def finalize(self, name: str) -> Result[None, ReleaseError]:
        return self._execute(
            ["releases", "finalize", name],
            message=f"failed to finalize release {name}",
        )

    def add_deploy(self, name: str, deploy: DeployOptions) -> Result[None, ReleaseError]:
        args = ["releases", "deploys", name, "new", "--env", deploy.env or ""]
        optional = (
            ("--started", deploy.started),
            ("--finished", deploy.finished),
            ("--time", deploy.time),
            ("--name", deploy.name),
            ("--url", deploy.url),
        )
        for flag, value in optional:
            if value:
                args.extend([flag, value])
        return self._execute(args, message=f"failed to add deploy to release {name}")

    def upload_debug_id_bundle(
        self, directory: Path, *, release: str | None, dist: str | None
    ) -> Result[None, ReleaseError]:
        args = ["sourcemaps", "upload", str(directory)]
        if release:
            args.extend(["--release", release])
        if dist:
            args.extend(["--dist", dist])
        return self._execute(
            args,
            message="failed to upload debug id artifacts",
            timeout=CLI_UPLOAD_TIMEOUT_SECONDS,
        )
