from __future__ import annotations

from pathlib import Path

import typer

from cdp.cli.commands._helpers import ConfigOption
from cdp.cli.context import build_context
from cdp.cli.wiring import assemble
from cdp.core.errors import ErrorCode
from cdp.core.result import Err


def version(config: Path | None = ConfigOption) -> None:
    """Print the repository's current semantic version."""
    ctx = build_context(config)
    pipeline = assemble(ctx)

    current = pipeline.versions.current_version()
    if isinstance(current, Err):
        ctx.console.error(current.error.pretty())
        raise typer.Exit(code=int(ErrorCode.PIPELINE_FAILED))
    typer.echo(str(current.value))
