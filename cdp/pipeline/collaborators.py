"""Narrow interfaces to the systems the pipeline drives.

The pipeline package only depends on these protocols; cdp.adapters holds
the git, docker, tracker and Slack implementations.
"""

from __future__ import annotations

from typing import Any, Protocol

from cdp.core.result import Err, Ok, Result
from cdp.pipeline.errors import PipelineError
from cdp.pipeline.model import ImageRef, PipelineRun
from cdp.platform.process import ProcessError

__all__ = ["ContainerTool", "ReleaseTracker", "SourceControl", "open_run", "skip_requested"]


class SourceControl(Protocol):
    def branch_name(self) -> Result[str, ProcessError]: ...

    def commit_hash(self) -> Result[str, ProcessError]: ...

    def commit_message(self) -> Result[str, ProcessError]: ...

    def fetch_tags(self, *, timeout: float | None = None) -> Result[None, ProcessError]:
        """Make the tag history available for version detection."""
        ...

    def push_release(self, *, timeout: float | None = None) -> Result[None, ProcessError]:
        """Push the bump commit and its tag."""
        ...


class ContainerTool(Protocol):
    def build(
        self,
        repository: str,
        version: str,
        commit_hash: str,
        *,
        timeout: float | None = None,
    ) -> Result[ImageRef, ProcessError]: ...

    def push(
        self,
        image: ImageRef,
        registry_host: str,
        *,
        timeout: float | None = None,
    ) -> Result[None, ProcessError]: ...


class ReleaseTracker(Protocol):
    def register(
        self,
        version: str,
        image: ImageRef,
        *,
        timeout: float | None = None,
    ) -> Result[dict[str, Any], PipelineError]:
        """Announce a new release to the rollout tracker."""
        ...


def skip_requested(commit_message: str, marker: str) -> bool:
    """True when the commit message asks CI to skip this commit."""
    return bool(marker) and marker.lower() in commit_message.lower()


def open_run(
    source: SourceControl,
    *,
    skip_marker: str,
    branch_override: str | None = None,
) -> Result[PipelineRun, PipelineError]:
    """Read the commit being built and create its PipelineRun."""
    branch = Ok(branch_override) if branch_override else source.branch_name()
    if isinstance(branch, Err):
        return _source_error("branch", branch.error)

    commit = source.commit_hash()
    if isinstance(commit, Err):
        return _source_error("commit", commit.error)

    message = source.commit_message()
    if isinstance(message, Err):
        return _source_error("commit message", message.error)

    return Ok(
        PipelineRun(
            branch_name=branch.value.strip(),
            commit_hash=commit.value.strip(),
            commit_message=message.value.strip(),
            skip_ci=skip_requested(message.value, skip_marker),
        )
    )


def _source_error(what: str, error: ProcessError) -> Err[PipelineError]:
    return Err(
        PipelineError(
            kind="stage_action",
            message=f"failed to read {what} from source control",
            hint=error.detail,
        )
    )
