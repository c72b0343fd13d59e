from __future__ import annotations

import typer

from cdp.cli.context import CLIContext
from cdp.cli.wiring import Pipeline
from cdp.core.errors import ErrorCode
from cdp.core.result import Err
from cdp.pipeline.collaborators import open_run
from cdp.pipeline.model import PipelineRun

ConfigOption = typer.Option(
    None,
    "--config",
    "-c",
    help="Path to cdp.toml (default: ./cdp.toml if present)",
)


def open_run_or_exit(ctx: CLIContext, pipeline: Pipeline) -> PipelineRun:
    settings = ctx.config.pipeline
    opened = open_run(
        pipeline.source,
        skip_marker=settings.skip_marker,
        branch_override=settings.branch_override,
    )
    if isinstance(opened, Err):
        ctx.console.error(opened.error.pretty())
        raise typer.Exit(code=int(ErrorCode.PIPELINE_FAILED))
    return opened.value
