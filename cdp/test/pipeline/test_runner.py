"""Tests for cdp.pipeline.runner module."""

from __future__ import annotations

from typing import Any

from cdp.core.result import Err, Ok, Result
from cdp.output.console import MockConsole
from cdp.pipeline.errors import PipelineError
from cdp.pipeline.model import PipelineRun, Stage
from cdp.pipeline.notify import NotificationAggregator
from cdp.pipeline.runner import Deadline, StageContext, StageRunner


class Clock:
    def __init__(self, now: float = 0.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


def _ctx(budget: float = 60.0, clock: Clock | None = None) -> StageContext:
    console = MockConsole()
    return StageContext(
        console=console,
        notifications=NotificationAggregator(
            notifier=None,
            channel=None,
            target_branch="main",
            service_name="svc",
            console=console,
        ),
        deadline=Deadline(budget_seconds=budget, clock=clock or Clock()),
    )


def _run() -> PipelineRun:
    return PipelineRun(branch_name="main", commit_hash="abc")


class TestDeadline:
    def test_elapsed_and_remaining(self) -> None:
        clock = Clock(100.0)
        deadline = Deadline(budget_seconds=60.0, clock=clock)

        clock.now = 115.0
        assert deadline.elapsed() == 15.0
        assert deadline.remaining() == 45.0
        assert not deadline.expired

    def test_expires_at_budget(self) -> None:
        clock = Clock()
        deadline = Deadline(budget_seconds=60.0, clock=clock)

        clock.now = 60.0
        assert deadline.expired
        assert deadline.remaining() == 0.0

    def test_remaining_never_negative(self) -> None:
        clock = Clock()
        deadline = Deadline(budget_seconds=10.0, clock=clock)
        clock.now = 50.0
        assert deadline.remaining() == 0.0

    def test_context_exposes_remaining(self) -> None:
        clock = Clock()
        ctx = _ctx(budget=30.0, clock=clock)
        clock.now = 10.0
        assert ctx.remaining() == 20.0


class TestStageRunner:
    def test_ok_action(self) -> None:
        def action(run: PipelineRun, ctx: Any) -> Result[None, PipelineError]:
            return Ok(None)

        outcome = StageRunner().run(Stage("build", action), _run(), _ctx())

        assert outcome.ok
        assert outcome.error is None

    def test_err_action(self) -> None:
        error = PipelineError(kind="stage_action", message="docker build failed", hint="no space")

        def action(run: PipelineRun, ctx: Any) -> Result[None, PipelineError]:
            return Err(error)

        outcome = StageRunner().run(Stage("build", action), _run(), _ctx())

        assert not outcome.ok
        assert outcome.error == error
        assert outcome.message == "docker build failed (hint: no space)"

    def test_raising_action_is_a_failed_stage(self) -> None:
        def action(run: PipelineRun, ctx: Any) -> Result[None, PipelineError]:
            raise KeyError("image")

        outcome = StageRunner().run(Stage("build", action), _run(), _ctx())

        assert not outcome.ok
        assert outcome.error is not None
        assert outcome.error.kind == "stage_action"
        assert "stage build crashed: KeyError" in outcome.error.message

    def test_action_sees_run_and_may_mutate_it(self) -> None:
        def action(run: PipelineRun, ctx: Any) -> Result[None, PipelineError]:
            run.commit_message = "touched"
            return Ok(None)

        run = _run()
        StageRunner().run(Stage("x", action), run, _ctx())
        assert run.commit_message == "touched"
