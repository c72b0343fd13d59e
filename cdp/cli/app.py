from __future__ import annotations

import typer

from cdp import __version__
from cdp.cli.commands.plan_cmd import plan
from cdp.cli.commands.run_cmd import run
from cdp.cli.commands.version_cmd import version

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
    help="Continuous-delivery release pipeline.",
)

app.command()(run)
app.command()(plan)
app.command()(version)


@app.callback(invoke_without_command=True)
def _main(  # pyright: ignore[reportUnusedFunction]
    ctx: typer.Context,
    show_version: bool = typer.Option(False, "--version", help="Show cdp version and exit."),
) -> None:
    if show_version:
        typer.echo(__version__)
        raise typer.Exit(code=0)
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())


def main() -> None:
    app()
