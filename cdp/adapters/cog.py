"""Version tool backed by cocogitto (`cog`).

cog derives the next version from conventional commits since the last tag.
`cog bump --auto` creates the bump commit and the tag; when no commit since
the last tag warrants a bump it exits non-zero, which is reported here as
"nothing to bump" rather than as a failure.
"""

from __future__ import annotations

from pathlib import Path

from cdp.adapters.timeouts import COG_TIMEOUT_SECONDS, bounded
from cdp.core.result import Err, Ok, Result
from cdp.pipeline.semver import BumpStrategy
from cdp.platform.process import ProcessError
from cdp.platform.process import run as run_process

__all__ = ["CogVersionTool"]

_NOTHING_TO_BUMP_MARKERS = (
    "no conventional commit found",
    "no conventional commits found",
    "nothing to bump",
    "no commit found to bump",
)


def _is_nothing_to_bump(error: ProcessError) -> bool:
    text = f"{error.stderr}\n{error.stdout}".lower()
    return any(marker in text for marker in _NOTHING_TO_BUMP_MARKERS)


class CogVersionTool:
    def __init__(self, path: Path, *, fallback: str = "0.0.0") -> None:
        self.path = path
        # Version reported for a repository without any version tag yet.
        self.fallback = fallback

    def get_version(self, *, timeout: float | None = None) -> Result[str, ProcessError]:
        result = run_process(
            ["cog", "get-version", "--fallback", self.fallback],
            cwd=self.path,
            timeout=bounded(timeout, COG_TIMEOUT_SECONDS),
        )
        if isinstance(result, Err):
            return result
        return Ok(result.value.strip())

    def bump(
        self,
        strategy: BumpStrategy,
        *,
        skip_marker: str,
        timeout: float | None = None,
    ) -> Result[bool, ProcessError]:
        cmd = ["cog", "bump", f"--{strategy}"]
        if skip_marker:
            cmd.extend(["--skip-ci-override", skip_marker])

        result = run_process(cmd, cwd=self.path, timeout=bounded(timeout, COG_TIMEOUT_SECONDS))
        if isinstance(result, Err):
            if not result.error.timed_out and _is_nothing_to_bump(result.error):
                return Ok(False)
            return result
        return Ok(True)
