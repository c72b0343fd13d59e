"""The pipeline state machine.

Initialized -> Running -> Succeeded | Failed

Stages run strictly in order, once each. A stage whose guard is false is
skipped silently; a stage that fails aborts everything after it. The
wall-clock budget is checked before and after every stage and its remainder
is handed to the running action as a timeout. Whatever happens, the
notification aggregator is flushed exactly once at the end.
"""

from __future__ import annotations

import time
from collections.abc import Sequence

from cdp.output.console import ConsoleProtocol, Style
from cdp.pipeline.errors import PipelineError
from cdp.pipeline.guards import GuardEvaluator
from cdp.pipeline.model import PipelineRun, RunStatus, Stage
from cdp.pipeline.notify import NotificationAggregator
from cdp.pipeline.runner import Clock, Deadline, StageContext, StageRunner

__all__ = ["PipelineExecutor"]


class PipelineExecutor:
    def __init__(
        self,
        stages: Sequence[Stage],
        *,
        guards: GuardEvaluator,
        notifications: NotificationAggregator,
        console: ConsoleProtocol,
        timeout_seconds: float,
        runner: StageRunner | None = None,
        clock: Clock = time.monotonic,
    ) -> None:
        names = [s.name for s in stages]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ValueError(f"duplicate stage names: {', '.join(duplicates)}")

        self._stages = tuple(stages)
        self._guards = guards
        self._notifications = notifications
        self._console = console
        self._timeout_seconds = timeout_seconds
        self._runner = runner or StageRunner()
        self._clock = clock
        self.executed: list[str] = []

    @property
    def stages(self) -> tuple[Stage, ...]:
        return self._stages

    def execute(self, run: PipelineRun) -> RunStatus:
        """Drive the run to a terminal status and flush notifications."""
        run.start()
        deadline = Deadline(budget_seconds=self._timeout_seconds, clock=self._clock)
        ctx = StageContext(
            console=self._console,
            notifications=self._notifications,
            deadline=deadline,
        )

        for stage in self._stages:
            if deadline.expired:
                run.fail(self._timeout_error(before=stage.name))
                break

            if not self._guards.should_run(stage, run):
                failing = ", ".join(self._guards.failing_conditions(stage, run))
                self._console.print(f"stage {stage.name}: skipped ({failing})", Style.DIM)
                continue

            self._console.header(f"stage {stage.name}")
            self.executed.append(stage.name)
            outcome = self._runner.run(stage, run, ctx)

            if deadline.expired:
                run.fail(self._timeout_error(during=stage.name))
                break

            if not outcome.ok:
                error = outcome.error or PipelineError(kind="stage_action", message=outcome.message)
                self._console.error(f"stage {stage.name} failed: {error.pretty()}")
                run.fail(error)
                break

            self._console.success(f"stage {stage.name}")

        if not run.status.is_terminal:
            run.succeed()

        self._report(run, deadline)
        self._notifications.flush(run)
        return run.status

    def _timeout_error(self, *, before: str | None = None, during: str | None = None) -> PipelineError:
        where = f"during stage {during}" if during else f"before stage {before}"
        minutes = self._timeout_seconds / 60.0
        return PipelineError(
            kind="timeout",
            message=f"pipeline exceeded its {minutes:g} minute budget {where}",
        )

    def _report(self, run: PipelineRun, deadline: Deadline) -> None:
        elapsed = f"{deadline.elapsed():.1f}s"
        if run.status is RunStatus.SUCCEEDED:
            self._console.success(f"pipeline succeeded in {elapsed}")
            return
        if run.failure is not None:
            self._console.error(f"pipeline failed after {elapsed}: {run.failure.pretty()}")
