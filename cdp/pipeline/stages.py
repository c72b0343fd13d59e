"""The fixed, ordered release stage list.

    checkout -> test -> format -> version -> publish-tag -> build
        -> push:<registry> (one per registry) -> register-release

Guards:
    checkout            always
    test                not skipped
    format, version     not skipped, on the target branch
    everything after    not skipped, on the target branch, version changed
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from cdp.core.config import Config, RegistryConfig
from cdp.core.result import Err, Ok, Result
from cdp.output.console import Style
from cdp.pipeline.collaborators import ContainerTool, ReleaseTracker, SourceControl
from cdp.pipeline.errors import PipelineError
from cdp.pipeline.model import Condition, PipelineRun, Stage, StageAction
from cdp.pipeline.runner import StageContext
from cdp.pipeline.version import VersionOracle
from cdp.platform.process import ProcessError, run_streaming

__all__ = [
    "ReleaseStages",
    "build_stages",
    "commit_built_event",
    "version_tag_event",
]

NOT_SKIPPED: tuple[Condition, ...] = ("not_skipped",)
ON_TARGET: tuple[Condition, ...] = ("not_skipped", "on_target_branch")
RELEASING: tuple[Condition, ...] = ("not_skipped", "on_target_branch", "version_changed")


def commit_built_event(commit_hash: str) -> str:
    return f"COMMIT BUILT : {commit_hash}"


def version_tag_event(version: str) -> str:
    return f"NEW_SEMANTIC_VERSION/DOCKER IMAGE TAG : {version}"


def _process_failure(what: str, error: ProcessError) -> Err[PipelineError]:
    return Err(
        PipelineError(
            kind="timeout" if error.timed_out else "stage_action",
            message=f"{what}: {error}",
            hint=error.detail,
        )
    )


@dataclass(frozen=True, slots=True)
class ReleaseStages:
    """Stage actions bound to their collaborators."""

    config: Config
    workdir: Path
    source: SourceControl
    versions: VersionOracle
    container: ContainerTool
    tracker: ReleaseTracker

    def checkout(self, run: PipelineRun, ctx: StageContext) -> Result[None, PipelineError]:
        fetched = self.source.fetch_tags(timeout=ctx.remaining())
        if isinstance(fetched, Err):
            return _process_failure("fetching tags failed", fetched.error)
        ctx.console.print(f"{run.branch_name} @ {run.short_hash}")
        return Ok(None)

    def test(self, run: PipelineRun, ctx: StageContext) -> Result[None, PipelineError]:
        return self._run_command("tests", self.config.commands.test, ctx)

    def format(self, run: PipelineRun, ctx: StageContext) -> Result[None, PipelineError]:
        return self._run_command("format check", self.config.commands.format, ctx)

    def version(self, run: PipelineRun, ctx: StageContext) -> Result[None, PipelineError]:
        current = self.versions.current_version(timeout=ctx.remaining())
        if isinstance(current, Err):
            return current
        run.old_version = current.value

        bumped = self.versions.bump("auto", timeout=ctx.remaining())
        if isinstance(bumped, Err):
            return bumped
        run.new_version = bumped.value

        if run.version_delta.changed:
            ctx.console.info(f"version {run.old_version} -> {run.new_version}")
        else:
            ctx.console.info(f"version unchanged ({run.old_version}); nothing to release")
        return Ok(None)

    def publish_tag(self, run: PipelineRun, ctx: StageContext) -> Result[None, PipelineError]:
        pushed = self.source.push_release(timeout=ctx.remaining())
        if isinstance(pushed, Err):
            return _process_failure("pushing release commit and tag failed", pushed.error)
        return Ok(None)

    def build(self, run: PipelineRun, ctx: StageContext) -> Result[None, PipelineError]:
        if run.new_version is None:
            return Err(PipelineError(kind="stage_action", message="no version to build"))

        tag = str(run.new_version)
        built = self.container.build(
            self.config.pipeline.image_name,
            tag,
            run.commit_hash,
            timeout=ctx.remaining(),
        )
        if isinstance(built, Err):
            return _process_failure("image build failed", built.error)

        run.image = built.value
        ctx.notifications.record(commit_built_event(run.commit_hash))
        ctx.notifications.record(version_tag_event(tag))
        return Ok(None)

    def push_to(self, registry: RegistryConfig) -> StageAction:
        def push(run: PipelineRun, ctx: StageContext) -> Result[None, PipelineError]:
            if run.image is None:
                return Err(PipelineError(kind="stage_action", message="no image to push"))
            pushed = self.container.push(run.image, registry.host, timeout=ctx.remaining())
            if isinstance(pushed, Err):
                return _process_failure(f"push to {registry.name} failed", pushed.error)
            ctx.console.print(run.image.for_host(registry.host))
            return Ok(None)

        return push

    def register_release(self, run: PipelineRun, ctx: StageContext) -> Result[None, PipelineError]:
        if run.image is None or run.new_version is None:
            return Err(PipelineError(kind="stage_action", message="no image to register"))
        registered = self.tracker.register(str(run.new_version), run.image, timeout=ctx.remaining())
        if isinstance(registered, Err):
            return registered
        return Ok(None)

    def _run_command(
        self,
        what: str,
        cmd: tuple[str, ...],
        ctx: StageContext,
    ) -> Result[None, PipelineError]:
        ctx.console.print("$ " + " ".join(cmd), Style.DIM)
        result = run_streaming(list(cmd), cwd=self.workdir, timeout=ctx.remaining())
        if isinstance(result, Err):
            return _process_failure(f"{what} failed", result.error)
        return Ok(None)


def build_stages(actions: ReleaseStages) -> tuple[Stage, ...]:
    """Assemble the stage list in its fixed order."""
    stages: list[Stage] = [
        Stage("checkout", actions.checkout),
        Stage("test", actions.test, guard=NOT_SKIPPED),
        Stage("format", actions.format, guard=ON_TARGET),
        Stage("version", actions.version, guard=ON_TARGET),
        Stage("publish-tag", actions.publish_tag, guard=RELEASING),
        Stage("build", actions.build, guard=RELEASING),
    ]
    for registry in actions.config.registries:
        stages.append(Stage(f"push:{registry.name}", actions.push_to(registry), guard=RELEASING))
    stages.append(Stage("register-release", actions.register_release, guard=RELEASING))
    return tuple(stages)
