"""Error values for the release pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

PipelineErrorKind = Literal[
    "stage_action",
    "timeout",
    "version",
    "notification",
    "config",
]


@dataclass(frozen=True, slots=True)
class PipelineError:
    """Canonical pipeline error payload.

    Kinds:
        stage_action: a stage's external action failed; aborts the run.
        timeout: the global wall-clock budget ran out; aborts the run.
        version: version detection or bump failed; aborts the run.
        notification: chat delivery failed; logged, never changes run status.
        config: required configuration is missing for a stage that has to run.
    """

    kind: PipelineErrorKind
    message: str
    hint: str | None = None

    def pretty(self) -> str:
        if self.hint:
            return f"{self.message} (hint: {self.hint})"
        return self.message

    @property
    def is_timeout(self) -> bool:
        return self.kind == "timeout"
