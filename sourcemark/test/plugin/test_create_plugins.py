"""Tests for the plugin factory."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from sourcemark.core.config import IncludeEntry, Options, SetCommitsOptions, SourcemapsOptions
from sourcemark.core.result import Err
from sourcemark.inject.debug_id import DebugIdInjectionPlugin
from sourcemark.inject.release import SYNTHETIC_MODULE_ID, ReleaseInjectionPlugin
from sourcemark.output.console import MockConsole
from sourcemark.platform.process import ProcessError
from sourcemark.plugin import DebugIdUploadPlugin, ReleaseManagementPlugin, create_plugins
from sourcemark.services.release import name as name_mod
from sourcemark.services.release.errors import PipelineError


@pytest.fixture(autouse=True)
def no_git(monkeypatch: pytest.MonkeyPatch) -> None:
    def fake(cmd: list[str], cwd: Path, env: dict[str, str] | None = None, *, timeout: float | None = None):
        return Err(ProcessError(tuple(cmd), 128, "", "fatal: not a git repository"))

    monkeypatch.setattr(name_mod, "run_process", fake)


def _kinds(plugins: Any) -> list[type]:
    return [type(p) for p in plugins]


class TestPluginSelection:
    def test_release_only(self, tmp_path: Path, fake_cli: Any) -> None:
        plugins = create_plugins(
            Options(release="1.0"), cwd=tmp_path, cli=fake_cli, console=MockConsole(), env={}
        )
        assert plugins.release == "1.0"
        assert _kinds(plugins) == [ReleaseInjectionPlugin, ReleaseManagementPlugin]

    def test_with_sourcemaps(self, tmp_path: Path, fake_cli: Any) -> None:
        options = Options(release="1.0", sourcemaps=SourcemapsOptions(assets=("dist/**",)))
        plugins = create_plugins(options, cwd=tmp_path, cli=fake_cli, console=MockConsole(), env={})
        assert _kinds(plugins) == [
            ReleaseInjectionPlugin,
            DebugIdInjectionPlugin,
            ReleaseManagementPlugin,
            DebugIdUploadPlugin,
        ]

    def test_watch_mode_skips_upload(self, tmp_path: Path, fake_cli: Any) -> None:
        options = Options(release="1.0", sourcemaps=SourcemapsOptions(assets=("dist/**",)))
        plugins = create_plugins(
            options, cwd=tmp_path, cli=fake_cli, console=MockConsole(), env={}, watch_mode=True
        )
        assert plugins.find(DebugIdUploadPlugin) is None
        assert plugins.find(DebugIdInjectionPlugin) is not None

    def test_release_injection_disabled(self, tmp_path: Path, fake_cli: Any) -> None:
        options = Options(release="1.0", inject_release=False)
        plugins = create_plugins(options, cwd=tmp_path, cli=fake_cli, console=MockConsole(), env={})
        assert plugins.find(ReleaseInjectionPlugin) is None

    def test_release_from_ci_environment(self, tmp_path: Path, fake_cli: Any) -> None:
        plugins = create_plugins(
            Options(), cwd=tmp_path, cli=fake_cli, console=MockConsole(), env={"GITHUB_SHA": "abc"}
        )
        injection = plugins.find(ReleaseInjectionPlugin)
        assert injection is not None
        code = injection.load(SYNTHETIC_MODULE_ID)
        assert code is not None
        assert '{id:"abc"}' in code

    def test_build_information(self, tmp_path: Path, fake_cli: Any) -> None:
        (tmp_path / "package.json").write_text('{"dependencies": {"vue": "^3.4.0"}}', encoding="utf-8")
        options = Options(release="1.0", inject_build_information=True)
        plugins = create_plugins(options, cwd=tmp_path, cli=fake_cli, console=MockConsole(), env={})
        injection = plugins.find(ReleaseInjectionPlugin)
        assert injection is not None
        assert '"depsVersions": {"vue": 3}' in injection.injection_code


class TestPreflightErrors:
    def test_missing_release_raises_without_handler(self, tmp_path: Path, fake_cli: Any) -> None:
        with pytest.raises(PipelineError) as excinfo:
            create_plugins(Options(), cwd=tmp_path, cli=fake_cli, console=MockConsole(), env={})
        assert excinfo.value.kind == "release_name_missing"

    def test_missing_release_with_handler(self, tmp_path: Path, fake_cli: Any) -> None:
        errors: list[Exception] = []
        options = Options(error_handler=errors.append)
        plugins = create_plugins(options, cwd=tmp_path, cli=fake_cli, console=MockConsole(), env={})
        assert plugins.release is None
        assert len(plugins) == 0
        assert "Unable to determine a release name" in str(errors[0])

    def test_invalid_options(self, tmp_path: Path, fake_cli: Any) -> None:
        console = MockConsole()
        options = Options(release="1.0", set_commits=SetCommitsOptions(repo="acme/web"))
        with pytest.raises(PipelineError) as excinfo:
            create_plugins(options, cwd=tmp_path, cli=fake_cli, console=console, env={})
        assert excinfo.value.kind == "invalid_options"
        assert console.find("[sourcemark-build-plugin] set_commits")

    def test_node_modules_warning(self, tmp_path: Path, fake_cli: Any) -> None:
        root = tmp_path / "node_modules" / "app"
        root.mkdir(parents=True)
        console = MockConsole()
        create_plugins(Options(release="1.0"), cwd=root, cli=fake_cli, console=console, env={})
        assert console.find("node_modules")


class TestWriteBundle:
    def test_runs_release_pipeline(self, tmp_path: Path, fake_cli: Any) -> None:
        options = Options(release="1.0", include=(IncludeEntry(paths=("dist",)),))
        plugins = create_plugins(options, cwd=tmp_path, cli=fake_cli, console=MockConsole(), env={})

        plugins.write_bundle()

        assert fake_cli.calls == ["create_release", "upload_source_maps", "finalize"]
        management = plugins.find(ReleaseManagementPlugin)
        assert management is not None
        assert management.report is not None
        assert management.report.ok

    def test_errors_flow_to_handler(self, tmp_path: Path, fake_cli: Any) -> None:
        errors: list[Exception] = []
        fake_cli.failures["finalize"] = "nope"
        options = Options(release="1.0", error_handler=errors.append)
        plugins = create_plugins(options, cwd=tmp_path, cli=fake_cli, console=MockConsole(), env={})

        plugins.write_bundle()

        assert plugins.sink.failed
        assert [getattr(e, "step", None) for e in errors] == ["finalize"]

    def test_silent_keeps_errors_only(self, tmp_path: Path, fake_cli: Any) -> None:
        console = MockConsole()
        fake_cli.failures["finalize"] = "nope"
        options = Options(release="1.0", silent=True, error_handler=lambda e: None)
        plugins = create_plugins(options, cwd=tmp_path, cli=fake_cli, console=console, env={})

        plugins.write_bundle()

        assert console.messages == ["error: [sourcemark-build-plugin] finalize: nope"]
