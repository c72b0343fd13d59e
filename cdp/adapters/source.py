"""Git source-control collaborator.

Reads the commit being built and, after a successful bump, pushes the bump
commit together with its tag. It never rewrites history.
"""

from __future__ import annotations

from pathlib import Path

from cdp.adapters.timeouts import GIT_NETWORK_TIMEOUT_SECONDS, GIT_TIMEOUT_SECONDS, bounded
from cdp.core.result import Err, Ok, Result
from cdp.platform.process import ProcessError
from cdp.platform.process import run as run_process

__all__ = ["GitSource"]


class GitSource:
    """Git operations on the checkout the pipeline runs in.

    Attributes:
        path: Repository root
        remote: Remote that release commits and tags are pushed to
    """

    def __init__(self, path: Path, *, remote: str = "origin") -> None:
        self.path = path
        self.remote = remote

    def branch_name(self) -> Result[str, ProcessError]:
        result = self._run(["rev-parse", "--abbrev-ref", "HEAD"])
        if isinstance(result, Err):
            return result
        branch = result.value.strip()
        if branch == "HEAD":
            return Err(
                ProcessError(
                    command=("git", "rev-parse", "--abbrev-ref", "HEAD"),
                    returncode=1,
                    stdout="",
                    stderr="detached HEAD; set CDP_BRANCH to the branch being built",
                )
            )
        return Ok(branch)

    def commit_hash(self) -> Result[str, ProcessError]:
        return self._run(["rev-parse", "HEAD"]).map(str.strip)

    def commit_message(self) -> Result[str, ProcessError]:
        return self._run(["log", "-1", "--format=%B"])

    def fetch_tags(self, *, timeout: float | None = None) -> Result[None, ProcessError]:
        result = self._run(
            ["fetch", "--tags", "--force", self.remote],
            timeout=bounded(timeout, GIT_NETWORK_TIMEOUT_SECONDS),
        )
        return result.map(lambda _: None)

    def push_release(self, *, timeout: float | None = None) -> Result[None, ProcessError]:
        result = self._run(
            ["push", "--follow-tags", self.remote, "HEAD"],
            timeout=bounded(timeout, GIT_NETWORK_TIMEOUT_SECONDS),
        )
        return result.map(lambda _: None)

    def _run(
        self,
        args: list[str],
        *,
        timeout: float = GIT_TIMEOUT_SECONDS,
    ) -> Result[str, ProcessError]:
        return run_process(["git", *args], cwd=self.path, timeout=timeout)
