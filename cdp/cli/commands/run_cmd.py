from __future__ import annotations

from pathlib import Path

import typer

from cdp.cli.commands._helpers import ConfigOption, open_run_or_exit
from cdp.cli.context import build_context
from cdp.cli.wiring import assemble
from cdp.core.errors import ErrorCode
from cdp.pipeline.model import PipelineRun, RunStatus


def run(config: Path | None = ConfigOption) -> None:
    """Run the release pipeline for the current commit."""
    ctx = build_context(config)
    pipeline = assemble(ctx)

    current = open_run_or_exit(ctx, pipeline)
    if current.skip_ci:
        ctx.console.info(f"commit requests skipping ({ctx.config.pipeline.skip_marker})")

    pipeline.executor.execute(current)

    code = exit_code_for(current)
    if code != ErrorCode.OK:
        raise typer.Exit(code=int(code))


def exit_code_for(run: PipelineRun) -> ErrorCode:
    if run.status is RunStatus.SUCCEEDED:
        return ErrorCode.OK
    if run.failure is not None and run.failure.is_timeout:
        return ErrorCode.TIMEOUT
    return ErrorCode.PIPELINE_FAILED
