from __future__ import annotations

import typer

from sourcemark import __version__
from sourcemark.cli.commands.debug_id_cmd import debug_id
from sourcemark.cli.commands.inject_cmd import inject
from sourcemark.cli.commands.release_cmd import release

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
)

app.command("debug-id")(debug_id)
app.command()(inject)
app.command()(release)


def _print_version(value: bool) -> None:
    if value:
        typer.echo(__version__)
        raise typer.Exit(code=0)


@app.callback()
def _main(  # pyright: ignore[reportUnusedFunction]
    version: bool = typer.Option(
        False,
        "--version",
        callback=_print_version,
        is_eager=True,
        help="Show version and exit.",
    ),
) -> None:
    del version


def main() -> None:
    app()
