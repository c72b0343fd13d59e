"""Execution of a single stage action."""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass, field

from cdp.core.result import Err
from cdp.output.console import ConsoleProtocol
from cdp.pipeline.errors import PipelineError
from cdp.pipeline.model import Outcome, PipelineRun, Stage
from cdp.pipeline.notify import NotificationAggregator

__all__ = ["Deadline", "StageContext", "StageRunner"]

Clock = Callable[[], float]


@dataclass(slots=True)
class Deadline:
    """Global wall-clock budget for a run."""

    budget_seconds: float
    clock: Clock = time.monotonic
    started_at: float = field(init=False)

    def __post_init__(self) -> None:
        self.started_at = self.clock()

    def elapsed(self) -> float:
        return self.clock() - self.started_at

    def remaining(self) -> float:
        return max(0.0, self.budget_seconds - self.elapsed())

    @property
    def expired(self) -> bool:
        return self.elapsed() >= self.budget_seconds


@dataclass(frozen=True, slots=True)
class StageContext:
    """What a stage action may use besides the run itself.

    Actions pass `remaining()` as the timeout of whatever they call so the
    global budget cancels in-flight work.
    """

    console: ConsoleProtocol
    notifications: NotificationAggregator
    deadline: Deadline

    def remaining(self) -> float:
        return self.deadline.remaining()


class StageRunner:
    """Runs one stage action and reports its outcome.

    Never retries: retrying is up to the action itself.
    """

    def run(self, stage: Stage, run: PipelineRun, ctx: StageContext) -> Outcome:
        try:
            result = stage.action(run, ctx)
        except Exception as e:  # an action crash is a failed stage, not a crashed pipeline
            error = PipelineError(
                kind="stage_action",
                message=f"stage {stage.name} crashed: {type(e).__name__}: {e}",
            )
            return Outcome(ok=False, message=error.pretty(), error=error)

        if isinstance(result, Err):
            return Outcome(ok=False, message=result.error.pretty(), error=result.error)
        return Outcome(ok=True, message=f"stage {stage.name} done")
