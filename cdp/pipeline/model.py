"""Data model for one pipeline run."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Literal

from cdp.core.result import Result
from cdp.pipeline.errors import PipelineError
from cdp.pipeline.semver import SemVer

if TYPE_CHECKING:
    from cdp.pipeline.runner import StageContext

Condition = Literal["not_skipped", "on_target_branch", "version_changed"]
FailurePolicy = Literal["abort"]


class RunStatus(Enum):
    INITIALIZED = "initialized"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (RunStatus.SUCCEEDED, RunStatus.FAILED)


@dataclass(frozen=True, slots=True)
class ImageRef:
    """A built container image, before it is pushed anywhere."""

    repository: str
    tag: str

    def __str__(self) -> str:
        return f"{self.repository}:{self.tag}"

    def for_host(self, host: str) -> str:
        return f"{host}/{self.repository}:{self.tag}"


@dataclass(frozen=True, slots=True)
class VersionDelta:
    old: SemVer | None
    new: SemVer | None

    @property
    def changed(self) -> bool:
        # Before the version stage has run there is nothing to compare.
        if self.old is None or self.new is None:
            return False
        return self.new != self.old


@dataclass(slots=True)
class PipelineRun:
    """State of a single pipeline execution.

    Stages mutate the run (versions, built image); the executor owns the
    status transitions. Once the status is terminal it never changes.
    """

    branch_name: str
    commit_hash: str
    skip_ci: bool = False
    commit_message: str = ""
    old_version: SemVer | None = None
    new_version: SemVer | None = None
    image: ImageRef | None = None
    status: RunStatus = RunStatus.INITIALIZED
    failure: PipelineError | None = None

    @property
    def short_hash(self) -> str:
        return self.commit_hash[:8]

    @property
    def version_delta(self) -> VersionDelta:
        return VersionDelta(old=self.old_version, new=self.new_version)

    def start(self) -> None:
        if self.status is not RunStatus.INITIALIZED:
            raise RuntimeError(f"run already started (status: {self.status.value})")
        self.status = RunStatus.RUNNING

    def succeed(self) -> None:
        self._finish(RunStatus.SUCCEEDED)

    def fail(self, error: PipelineError) -> None:
        self._finish(RunStatus.FAILED)
        self.failure = error

    def _finish(self, status: RunStatus) -> None:
        if self.status.is_terminal:
            raise RuntimeError(
                f"run already finished (status: {self.status.value}), cannot become {status.value}"
            )
        self.status = status


StageAction = Callable[[PipelineRun, "StageContext"], Result[None, PipelineError]]


@dataclass(frozen=True, slots=True)
class Stage:
    """A named, guarded unit of pipeline work.

    The guard is a conjunction of conditions; an empty guard always runs.
    """

    name: str
    action: StageAction
    guard: tuple[Condition, ...] = ()
    when_failed: FailurePolicy = "abort"


@dataclass(frozen=True, slots=True)
class Outcome:
    ok: bool
    message: str
    error: PipelineError | None = None
