"""Semantic version detection and bumping for the commit being built."""

from __future__ import annotations

from typing import Protocol

from cdp.core.result import Err, Ok, Result
from cdp.pipeline.errors import PipelineError
from cdp.pipeline.semver import BumpStrategy, SemVer, parse_version
from cdp.platform.process import ProcessError

__all__ = ["VersionOracle", "VersionTool"]


class VersionTool(Protocol):
    """The tool that owns the repository's version history (tags)."""

    def get_version(self, *, timeout: float | None = None) -> Result[str, ProcessError]:
        """Return the current version as printed by the tool."""
        ...

    def bump(
        self,
        strategy: BumpStrategy,
        *,
        skip_marker: str,
        timeout: float | None = None,
    ) -> Result[bool, ProcessError]:
        """Create the bump commit and tag.

        Returns Ok(False) when there is nothing to bump.
        """
        ...


class VersionOracle:
    """Answers "what version is this?" and performs the single per-run bump.

    current_version() has no side effects, so repeated calls agree until
    bump() runs. bump() may be called once per oracle; a second call is a
    programming error and raises RuntimeError.
    """

    def __init__(self, tool: VersionTool, *, skip_marker: str) -> None:
        self._tool = tool
        self._skip_marker = skip_marker
        self._bumped = False

    @property
    def bumped(self) -> bool:
        return self._bumped

    def current_version(self, *, timeout: float | None = None) -> Result[SemVer, PipelineError]:
        raw = self._tool.get_version(timeout=timeout)
        if isinstance(raw, Err):
            e = raw.error
            return Err(
                PipelineError(
                    kind="timeout" if e.timed_out else "version",
                    message="failed to detect current version",
                    hint=e.detail,
                )
            )

        version = parse_version(raw.value)
        if version is None:
            return Err(
                PipelineError(
                    kind="version",
                    message=f"malformed version from tag history: {raw.value.strip()!r}",
                    hint="expected MAJOR.MINOR.PATCH",
                )
            )
        return Ok(version)

    def bump(
        self,
        strategy: BumpStrategy = "auto",
        *,
        timeout: float | None = None,
    ) -> Result[SemVer, PipelineError]:
        """Bump the version and return the version after the bump.

        When there is nothing to bump the current version is returned
        unchanged.
        """
        if self._bumped:
            raise RuntimeError("version already bumped in this run")
        self._bumped = True

        bumped = self._tool.bump(strategy, skip_marker=self._skip_marker, timeout=timeout)
        if isinstance(bumped, Err):
            e = bumped.error
            return Err(
                PipelineError(
                    kind="timeout" if e.timed_out else "version",
                    message=f"version bump ({strategy}) failed",
                    hint=e.detail,
                )
            )

        return self.current_version(timeout=timeout)
