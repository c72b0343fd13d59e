from __future__ import annotations

from pathlib import Path

from cdp.cli.commands._helpers import ConfigOption, open_run_or_exit
from cdp.cli.context import build_context
from cdp.cli.wiring import assemble
from cdp.output.console import Style
from cdp.pipeline.guards import describe_guard


def plan(config: Path | None = ConfigOption) -> None:
    """Show which stages would run for the current commit (runs nothing)."""
    ctx = build_context(config)
    pipeline = assemble(ctx)
    current = open_run_or_exit(ctx, pipeline)
    target = ctx.config.pipeline.target_branch

    ctx.console.print(f"branch: {current.branch_name}", Style.DIM)
    ctx.console.print(f"commit: {current.commit_hash}", Style.DIM)
    ctx.console.print(f"skip requested: {'yes' if current.skip_ci else 'no'}", Style.DIM)
    ctx.console.header("Stages")

    for stage in pipeline.executor.stages:
        guard = describe_guard(stage, target)
        failing = pipeline.guards.failing_conditions(stage, current)
        if not failing:
            ctx.console.print(f"{stage.name}: runs  [{guard}]", Style.SUCCESS)
        elif failing == ["version_changed"]:
            ctx.console.print(f"{stage.name}: runs if the version bumps  [{guard}]", Style.INFO)
        else:
            ctx.console.print(f"{stage.name}: skipped  [{guard}]", Style.DIM)
