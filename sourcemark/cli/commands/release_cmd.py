from __future__ import annotations

from dataclasses import replace
from pathlib import Path

import typer

from sourcemark.cli.context import build_context
from sourcemark.core.config import load_options
from sourcemark.core.errors import ErrorCode
from sourcemark.core.result import Err
from sourcemark.output.console import Style
from sourcemark.plugin import ReleaseManagementPlugin, create_plugins
from sourcemark.services.release.sentry_cli import SentryCli


def release(
    config: Path = typer.Option(
        Path("sourcemark.toml"), "--config", "-c", help="Options file (TOML)."
    ),
    name: str | None = typer.Option(None, "--release", "-r", help="Override the release name."),
    no_finalize: bool = typer.Option(False, "--no-finalize", help="Leave the release open."),
) -> None:
    """Run the release pipeline against an already built output."""
    ctx = build_context()
    console = ctx.console
    path = config if config.is_absolute() else ctx.cwd / config

    errors: list[Exception] = []
    loaded = load_options(path, error_handler=errors.append)
    if isinstance(loaded, Err):
        console.error(loaded.error.message)
        raise typer.Exit(code=int(ErrorCode.USER_ERROR))

    options = loaded.value
    if name:
        options = replace(options, release=name)
    if no_finalize:
        options = replace(options, finalize=False)

    cli = SentryCli(options, cwd=ctx.cwd, console=console)
    available = cli.ensure_available()
    if isinstance(available, Err):
        console.error(available.error.pretty())
        raise typer.Exit(code=int(ErrorCode.ENV_ERROR))

    plugins = create_plugins(options, framework="cli", cwd=ctx.cwd, cli=cli, console=console)
    if plugins.release is None:
        for error in errors:
            console.error(str(error))
        raise typer.Exit(code=int(ErrorCode.ENV_ERROR))

    plugins.write_bundle()

    management = plugins.find(ReleaseManagementPlugin)
    if management is not None and management.report is not None:
        console.header(f"Release {plugins.release}")
        for outcome in management.report.outcomes:
            console.print(f"{outcome.step}: {outcome.status}", Style.DIM)

    if errors:
        console.error(f"{len(errors)} error(s) while releasing {plugins.release}")
        raise typer.Exit(code=int(ErrorCode.RELEASE_ERROR))
