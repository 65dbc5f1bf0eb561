from __future__ import annotations

from pathlib import Path

import typer

from sourcemark.cli.context import build_context
from sourcemark.core.errors import ErrorCode
from sourcemark.core.result import Err
from sourcemark.inject.debug_id import inject_directory
from sourcemark.output.console import Style


def inject(
    directory: Path = typer.Argument(..., help="Build output directory."),
    dry_run: bool = typer.Option(False, "--dry-run", help="Report without writing files."),
) -> None:
    """Inject debug ids into every script of a build output directory."""
    ctx = build_context()
    console = ctx.console

    if not directory.is_dir():
        console.error(f"not a directory: {directory}")
        raise typer.Exit(code=int(ErrorCode.USER_ERROR))

    results = inject_directory(directory, dry_run=dry_run)
    failures = 0
    injected = 0
    for result in results:
        if isinstance(result, Err):
            failures += 1
            console.error(f"{result.error.path}: {result.error.message}")
            continue
        item = result.value
        rel = item.path.relative_to(directory)
        if item.skipped:
            console.print(f"{rel}: already injected ({item.debug_id})", Style.DIM)
            continue
        injected += 1
        suffix = "" if item.map_path else " (no source map)"
        console.print(f"{rel}: {item.debug_id}{suffix}")

    verb = "would inject" if dry_run else "injected"
    console.success(f"{verb} {injected} file(s)")
    if failures:
        raise typer.Exit(code=int(ErrorCode.IO_ERROR))
