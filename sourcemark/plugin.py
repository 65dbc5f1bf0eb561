"""Plugin factory.

create_plugins() turns options into the hook objects a host build runs:

- release injection: appends an import of a synthetic module publishing
  ``SENTRY_RELEASE`` to every user module (``inject_release``)
- debug id injection: stamps each rendered chunk with a content-derived
  debug id (``sourcemaps`` configured)
- release management: after the bundle is written, runs the release
  pipeline (create, clean, upload, commits, finalize, deploy)
- debug id upload: after the bundle is written, uploads emitted assets
  paired with their source maps by debug id (``sourcemaps``, not in watch mode)

Option validation and release naming happen up front; their failures go
through the same recoverable-error sink as the pipeline's.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import TypeVar

from sourcemark.core.config import Options, validate_options
from sourcemark.inject.debug_id import DebugIdInjectionPlugin
from sourcemark.inject.hooks import BuildPlugin
from sourcemark.inject.release import (
    ReleaseInjectionPlugin,
    generate_global_injector_code,
    get_build_information,
)
from sourcemark.output.console import ConsoleProtocol, PrefixedConsole, RichConsole
from sourcemark.services.artifacts import PreparedArtifact, upload_debug_id_artifacts
from sourcemark.services.release.errors import ReleaseError
from sourcemark.services.release.name import determine_release_name
from sourcemark.services.release.pipeline import PipelineReport, ReleaseSettings, run_pipeline
from sourcemark.services.release.sentry_cli import ReleaseCli, SentryCli
from sourcemark.services.release.sink import RecoverableErrorSink, policy_from_handler

__all__ = [
    "DebugIdUploadPlugin",
    "PluginSet",
    "ReleaseManagementPlugin",
    "create_plugins",
]


class ReleaseManagementPlugin(BuildPlugin):
    """Runs the release pipeline once the bundle is on disk."""

    name = "sourcemark-release-management"

    def __init__(
        self,
        settings: ReleaseSettings,
        *,
        cli: ReleaseCli,
        sink: RecoverableErrorSink,
        console: ConsoleProtocol,
    ) -> None:
        self.settings = settings
        self._cli = cli
        self._sink = sink
        self._console = console
        self.report: PipelineReport | None = None

    def write_bundle(self) -> None:
        self.report = run_pipeline(
            self.settings, cli=self._cli, sink=self._sink, console=self._console
        )


class DebugIdUploadPlugin(BuildPlugin):
    """Uploads debug-id stamped assets once the bundle is on disk."""

    name = "sourcemark-debug-id-upload"

    def __init__(
        self,
        options: Options,
        *,
        release: str | None,
        cwd: Path,
        cli: ReleaseCli,
        sink: RecoverableErrorSink,
        console: ConsoleProtocol,
    ) -> None:
        self._options = options
        self._release = release
        self._cwd = cwd
        self._cli = cli
        self._sink = sink
        self._console = console
        self.uploaded: list[PreparedArtifact] = []

    def write_bundle(self) -> None:
        if self._options.sourcemaps is None:
            return
        self.uploaded = upload_debug_id_artifacts(
            self._options.sourcemaps,
            release=self._release,
            dist=self._options.dist,
            cwd=self._cwd,
            cli=self._cli,
            sink=self._sink,
            console=self._console,
        )


P = TypeVar("P", bound=BuildPlugin)


@dataclass(slots=True)
class PluginSet:
    """The hook objects for one build, plus the shared sink and release name."""

    plugins: list[BuildPlugin]
    release: str | None
    sink: RecoverableErrorSink

    def __iter__(self) -> Iterator[BuildPlugin]:
        return iter(self.plugins)

    def __len__(self) -> int:
        return len(self.plugins)

    def find(self, kind: type[P]) -> P | None:
        for plugin in self.plugins:
            if isinstance(plugin, kind):
                return plugin
        return None

    def write_bundle(self) -> None:
        """Run every write_bundle hook in plugin order, as the host would."""
        for plugin in self.plugins:
            plugin.write_bundle()


def create_plugins(
    options: Options,
    *,
    framework: str = "build",
    cwd: Path | None = None,
    cli: ReleaseCli | None = None,
    console: ConsoleProtocol | None = None,
    env: Mapping[str, str] | None = None,
    watch_mode: bool = False,
) -> PluginSet:
    """Build the hook objects for one host build.

    Args:
        options: Normalized options.
        framework: Host name, used in the output prefix.
        cwd: Project root (default: current directory).
        cli: Release collaborator (default: sentry-cli).
        console: Output backend (default: Rich on stderr).
        env: Environment for release naming (default: os.environ).
        watch_mode: Skip the debug id upload for rebuilds.

    Raises:
        Exception: Preflight failures, when no error handler is configured.
    """
    root = cwd or Path.cwd()
    out = PrefixedConsole(
        console or RichConsole(stderr=True),
        prefix=f"[sourcemark-{framework}-plugin]",
        silent=options.silent,
        debug=options.debug,
    )
    sink = RecoverableErrorSink(policy_from_handler(options.error_handler), out)

    if not validate_options(options, out):
        sink.handle(
            ReleaseError(
                kind="invalid_options",
                message="Options were not set correctly. See output above for more details.",
            )
        )

    release = determine_release_name(configured=options.release, cwd=root, env=env)
    if not release:
        sink.handle(
            ReleaseError(
                kind="release_name_missing",
                message="Unable to determine a release name. Please set the `release` option.",
            )
        )

    if "node_modules" in root.parts:
        out.warning("Running from within a `node_modules` folder. Some features may not work.")

    collaborator = cli or SentryCli(options, cwd=root, console=out)
    plugins: list[BuildPlugin] = []

    if options.inject_release and release:
        build_info = get_build_information(root) if options.inject_build_information else None
        plugins.append(ReleaseInjectionPlugin(generate_global_injector_code(release, build_info)))

    if options.sourcemaps is not None:
        plugins.append(DebugIdInjectionPlugin())

    if release:
        plugins.append(
            ReleaseManagementPlugin(
                ReleaseSettings.from_options(release, options),
                cli=collaborator,
                sink=sink,
                console=out,
            )
        )

    if not watch_mode and options.sourcemaps is not None:
        plugins.append(
            DebugIdUploadPlugin(
                options, release=release, cwd=root, cli=collaborator, sink=sink, console=out
            )
        )

    return PluginSet(plugins, release=release, sink=sink)
