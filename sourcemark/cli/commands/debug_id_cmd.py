from __future__ import annotations

from pathlib import Path

import typer

from sourcemark.cli.context import build_context
from sourcemark.core.debug_id import debug_id_for
from sourcemark.core.errors import ErrorCode
from sourcemark.inject.debug_id import find_debug_id


def debug_id(
    file: Path = typer.Argument(..., help="Emitted script or any other artifact."),
    injected: bool = typer.Option(
        False, "--injected", help="Print the debug id already injected into the file."
    ),
) -> None:
    """Print the content-derived debug id of a file."""
    ctx = build_context()
    try:
        content = file.read_bytes()
    except OSError as e:
        ctx.console.error(f"cannot read {file}: {e}")
        raise typer.Exit(code=int(ErrorCode.IO_ERROR))

    if not injected:
        typer.echo(debug_id_for(content))
        return

    found = find_debug_id(content.decode("utf-8", errors="replace"))
    if found is None:
        ctx.console.error(f"no injected debug id in {file}")
        raise typer.Exit(code=int(ErrorCode.USER_ERROR))
    typer.echo(found)
