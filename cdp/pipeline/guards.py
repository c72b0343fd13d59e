"""Stage guards.

A guard is a conjunction of conditions evaluated against the run as it is
at evaluation time. Evaluation never raises: a condition that cannot be
decided yet (the new version before the version stage ran) is False.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass

from cdp.pipeline.model import Condition, PipelineRun, Stage

__all__ = ["GuardEvaluator", "describe_guard"]


def _not_skipped(run: PipelineRun, target_branch: str) -> bool:
    return not run.skip_ci


def _on_target_branch(run: PipelineRun, target_branch: str) -> bool:
    return run.branch_name == target_branch


def _version_changed(run: PipelineRun, target_branch: str) -> bool:
    return run.version_delta.changed


_PREDICATES: Mapping[Condition, Callable[[PipelineRun, str], bool]] = {
    "not_skipped": _not_skipped,
    "on_target_branch": _on_target_branch,
    "version_changed": _version_changed,
}

_DESCRIPTIONS: Mapping[Condition, str] = {
    "not_skipped": "not skipped",
    "on_target_branch": "branch == {target}",
    "version_changed": "version changed",
}


@dataclass(frozen=True, slots=True)
class GuardEvaluator:
    target_branch: str

    def should_run(self, stage: Stage, run: PipelineRun) -> bool:
        return all(self.check(condition, run) for condition in stage.guard)

    def check(self, condition: Condition, run: PipelineRun) -> bool:
        predicate = _PREDICATES.get(condition)
        if predicate is None:
            return False
        return predicate(run, self.target_branch)

    def failing_conditions(self, stage: Stage, run: PipelineRun) -> list[Condition]:
        """Conditions of the stage's guard that currently evaluate to False."""
        return [c for c in stage.guard if not self.check(c, run)]


def describe_guard(stage: Stage, target_branch: str) -> str:
    if not stage.guard:
        return "always"
    parts = [_DESCRIPTIONS.get(c, c).format(target=target_branch) for c in stage.guard]
    return " and ".join(parts)
