"""Tests for the CLI commands, called directly with a captured console."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest
import typer

from sourcemark.cli.commands import debug_id_cmd, inject_cmd, release_cmd
from sourcemark.cli.context import CLIContext
from sourcemark.core.debug_id import debug_id_for
from sourcemark.core.errors import ErrorCode
from sourcemark.core.result import Ok
from sourcemark.inject.debug_id import find_debug_id, inject_debug_id
from sourcemark.output.console import MockConsole, Style


@pytest.fixture
def console(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> MockConsole:
    mock = MockConsole()
    ctx = CLIContext(cwd=tmp_path, console=mock)
    for module in (debug_id_cmd, inject_cmd, release_cmd):
        monkeypatch.setattr(module, "build_context", lambda: ctx)
    return mock


class TestDebugIdCommand:
    def test_prints_content_id(
        self, tmp_path: Path, console: MockConsole, capsys: pytest.CaptureFixture[str]
    ) -> None:
        path = tmp_path / "app.js"
        path.write_text("foo();", encoding="utf-8")
        debug_id_cmd.debug_id(file=path, injected=False)
        assert capsys.readouterr().out.strip() == debug_id_for("foo();")

    def test_prints_injected_id(
        self, tmp_path: Path, console: MockConsole, capsys: pytest.CaptureFixture[str]
    ) -> None:
        path = tmp_path / "app.js"
        path.write_text(inject_debug_id("foo();", "app.js").code, encoding="utf-8")
        debug_id_cmd.debug_id(file=path, injected=True)
        assert capsys.readouterr().out.strip() == debug_id_for("foo();")

    def test_no_injected_id(self, tmp_path: Path, console: MockConsole) -> None:
        path = tmp_path / "app.js"
        path.write_text("foo();", encoding="utf-8")
        with pytest.raises(typer.Exit) as excinfo:
            debug_id_cmd.debug_id(file=path, injected=True)
        assert excinfo.value.exit_code == ErrorCode.USER_ERROR
        assert console.has_error()

    def test_missing_file(self, tmp_path: Path, console: MockConsole) -> None:
        with pytest.raises(typer.Exit) as excinfo:
            debug_id_cmd.debug_id(file=tmp_path / "missing.js", injected=False)
        assert excinfo.value.exit_code == ErrorCode.IO_ERROR


class TestInjectCommand:
    def test_injects_directory(self, tmp_path: Path, console: MockConsole) -> None:
        dist = tmp_path / "dist"
        dist.mkdir()
        (dist / "app.js").write_text("foo();", encoding="utf-8")

        inject_cmd.inject(directory=dist, dry_run=False)

        assert find_debug_id((dist / "app.js").read_text(encoding="utf-8")) == debug_id_for("foo();")
        assert console.find("injected 1 file(s)")
        assert console.find("(no source map)")

    def test_dry_run(self, tmp_path: Path, console: MockConsole) -> None:
        dist = tmp_path / "dist"
        dist.mkdir()
        (dist / "app.js").write_text("foo();", encoding="utf-8")

        inject_cmd.inject(directory=dist, dry_run=True)

        assert (dist / "app.js").read_text(encoding="utf-8") == "foo();"
        assert console.find("would inject 1 file(s)")

    def test_not_a_directory(self, tmp_path: Path, console: MockConsole) -> None:
        with pytest.raises(typer.Exit) as excinfo:
            inject_cmd.inject(directory=tmp_path / "missing", dry_run=False)
        assert excinfo.value.exit_code == ErrorCode.USER_ERROR


class TestReleaseCommand:
    @pytest.fixture
    def cli(self, fake_cli: Any, monkeypatch: pytest.MonkeyPatch) -> Any:
        fake_cli.ensure_available = lambda: Ok(None)
        monkeypatch.setattr(release_cmd, "SentryCli", lambda options, *, cwd, console: fake_cli)
        return fake_cli

    @pytest.fixture
    def config(self, tmp_path: Path) -> Path:
        path = tmp_path / "sourcemark.toml"
        path.write_text('release = "1.0.0"\ninclude = "./dist"\n', encoding="utf-8")
        return path

    def test_runs_pipeline(self, config: Path, cli: Any, console: MockConsole) -> None:
        release_cmd.release(config=config, name=None, no_finalize=False)
        assert cli.calls == ["create_release", "upload_source_maps", "finalize"]
        assert cli.upload_args["name"] == "1.0.0"
        assert console.find("finalize: ok")
        assert [o.message for o in console.outputs if o.style == Style.HEADER] == ["Release 1.0.0"]

    def test_overrides(self, config: Path, cli: Any, console: MockConsole) -> None:
        release_cmd.release(config=Path("sourcemark.toml"), name="2.0.0", no_finalize=True)
        assert cli.calls == ["create_release", "upload_source_maps"]
        assert cli.upload_args["name"] == "2.0.0"

    def test_failed_step_exits_with_release_error(
        self, config: Path, cli: Any, console: MockConsole
    ) -> None:
        cli.failures["upload_source_maps"] = "denied"
        with pytest.raises(typer.Exit) as excinfo:
            release_cmd.release(config=config, name=None, no_finalize=False)
        assert excinfo.value.exit_code == ErrorCode.RELEASE_ERROR
        assert cli.calls == ["create_release", "upload_source_maps", "finalize"]
        assert console.find("1 error(s) while releasing 1.0.0")

    def test_missing_config(self, tmp_path: Path, cli: Any, console: MockConsole) -> None:
        with pytest.raises(typer.Exit) as excinfo:
            release_cmd.release(config=tmp_path / "nope.toml", name=None, no_finalize=False)
        assert excinfo.value.exit_code == ErrorCode.USER_ERROR
        assert cli.calls == []
