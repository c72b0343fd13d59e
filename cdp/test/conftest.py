from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import pytest

from cdp.core.config import Config
from cdp.core.result import Err, Ok, Result
from cdp.output.console import MockConsole
from cdp.pipeline import stages as stages_mod
from cdp.pipeline.errors import PipelineError
from cdp.pipeline.executor import PipelineExecutor
from cdp.pipeline.guards import GuardEvaluator
from cdp.pipeline.model import ImageRef, PipelineRun
from cdp.pipeline.notify import NotificationAggregator
from cdp.pipeline.semver import BumpStrategy
from cdp.pipeline.stages import ReleaseStages, build_stages
from cdp.pipeline.version import VersionOracle
from cdp.platform.process import ProcessError

COMMIT = "0123456789abcdef0123456789abcdef01234567"


def process_error(*cmd: str, stderr: str = "boom", timed_out: bool = False) -> ProcessError:
    return ProcessError(
        command=tuple(cmd),
        returncode=-1 if timed_out else 1,
        stdout="",
        stderr=stderr,
        timed_out=timed_out,
    )


@dataclass
class FakeSource:
    branch: str = "main"
    commit: str = COMMIT
    message: str = "feat: add thing"
    fetch_error: ProcessError | None = None
    push_error: ProcessError | None = None
    calls: list[str] = field(default_factory=list)

    def branch_name(self) -> Result[str, ProcessError]:
        return Ok(self.branch)

    def commit_hash(self) -> Result[str, ProcessError]:
        return Ok(self.commit)

    def commit_message(self) -> Result[str, ProcessError]:
        return Ok(self.message)

    def fetch_tags(self, *, timeout: float | None = None) -> Result[None, ProcessError]:
        self.calls.append("fetch_tags")
        return Err(self.fetch_error) if self.fetch_error else Ok(None)

    def push_release(self, *, timeout: float | None = None) -> Result[None, ProcessError]:
        self.calls.append("push_release")
        return Err(self.push_error) if self.push_error else Ok(None)


@dataclass
class FakeVersionTool:
    """Reports `current` until bumped, then `after_bump`."""

    current: str = "1.2.0"
    after_bump: str = "1.3.0"
    get_error: ProcessError | None = None
    bump_error: ProcessError | None = None
    bumps: list[tuple[BumpStrategy, str]] = field(default_factory=list)
    reads: int = 0

    def get_version(self, *, timeout: float | None = None) -> Result[str, ProcessError]:
        self.reads += 1
        if self.get_error is not None:
            return Err(self.get_error)
        return Ok(self.current + "\n")

    def bump(
        self,
        strategy: BumpStrategy,
        *,
        skip_marker: str,
        timeout: float | None = None,
    ) -> Result[bool, ProcessError]:
        self.bumps.append((strategy, skip_marker))
        if self.bump_error is not None:
            return Err(self.bump_error)
        changed = self.after_bump != self.current
        self.current = self.after_bump
        return Ok(changed)


@dataclass
class FakeContainer:
    build_error: ProcessError | None = None
    failing_hosts: set[str] = field(default_factory=set)
    builds: list[tuple[str, str, str]] = field(default_factory=list)
    pushes: list[str] = field(default_factory=list)

    def build(
        self,
        repository: str,
        version: str,
        commit_hash: str,
        *,
        timeout: float | None = None,
    ) -> Result[ImageRef, ProcessError]:
        self.builds.append((repository, version, commit_hash))
        if self.build_error is not None:
            return Err(self.build_error)
        return Ok(ImageRef(repository=repository, tag=version))

    def push(
        self,
        image: ImageRef,
        registry_host: str,
        *,
        timeout: float | None = None,
    ) -> Result[None, ProcessError]:
        self.pushes.append(registry_host)
        if registry_host in self.failing_hosts:
            return Err(process_error("docker", "push", image.for_host(registry_host)))
        return Ok(None)


@dataclass
class FakeTracker:
    error: PipelineError | None = None
    registered: list[tuple[str, ImageRef]] = field(default_factory=list)

    def register(
        self,
        version: str,
        image: ImageRef,
        *,
        timeout: float | None = None,
    ) -> Result[dict[str, Any], PipelineError]:
        self.registered.append((version, image))
        if self.error is not None:
            return Err(self.error)
        return Ok({"id": 1})


@dataclass
class FakeNotifier:
    fail: bool = False
    sent: list[tuple[str, str, str, str | None]] = field(default_factory=list)

    def send(
        self,
        channel: str,
        color: str,
        message: str,
        *,
        thread: str | None = None,
    ) -> Result[str, PipelineError]:
        self.sent.append((channel, color, message, thread))
        if self.fail:
            return Err(PipelineError(kind="notification", message="channel unreachable"))
        return Ok(thread or "1700000000.000100")


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@dataclass
class Harness:
    config: Config
    source: FakeSource
    tool: FakeVersionTool
    container: FakeContainer
    tracker: FakeTracker
    notifier: FakeNotifier
    console: MockConsole
    clock: FakeClock
    notifications: NotificationAggregator
    executor: PipelineExecutor
    commands: list[tuple[str, ...]]

    def new_run(self, *, skip_ci: bool = False) -> PipelineRun:
        return PipelineRun(
            branch_name=self.source.branch,
            commit_hash=self.source.commit,
            commit_message=self.source.message,
            skip_ci=skip_ci,
        )


HarnessFactory = Callable[..., Harness]


@pytest.fixture
def make_harness(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> HarnessFactory:
    """Build an executor wired to fakes.

    Keyword arguments:
        branch, message, current, after_bump: the commit and its version history
        failing_commands: argv tuples of test/format commands that fail
        failing_hosts: registry hosts whose push fails
        get_error, bump_error, tracker_error: collaborator failures
        notify_fail: the chat channel is unreachable
        command_hook: called with (argv, clock) before each test/format command
    """

    def factory(
        *,
        branch: str = "main",
        current: str = "1.2.0",
        after_bump: str = "1.3.0",
        message: str = "feat: add thing",
        failing_commands: tuple[tuple[str, ...], ...] = (),
        failing_hosts: tuple[str, ...] = (),
        get_error: ProcessError | None = None,
        bump_error: ProcessError | None = None,
        tracker_error: PipelineError | None = None,
        notify_fail: bool = False,
        command_hook: Callable[[tuple[str, ...], FakeClock], None] | None = None,
        config: Config | None = None,
    ) -> Harness:
        cfg = config or Config()
        commands: list[tuple[str, ...]] = []
        clock = FakeClock()

        def fake_run_streaming(
            cmd: list[str],
            cwd: Path,
            env: dict[str, str] | None = None,
            *,
            timeout: float | None = None,
        ) -> Result[None, ProcessError]:
            del cwd, env, timeout
            argv = tuple(cmd)
            commands.append(argv)
            if command_hook is not None:
                command_hook(argv, clock)
            if argv in failing_commands:
                return Err(process_error(*argv))
            return Ok(None)

        monkeypatch.setattr(stages_mod, "run_streaming", fake_run_streaming)

        h_source = FakeSource(branch=branch, message=message)
        h_tool = FakeVersionTool(
            current=current,
            after_bump=after_bump,
            get_error=get_error,
            bump_error=bump_error,
        )
        h_container = FakeContainer(failing_hosts=set(failing_hosts))
        h_tracker = FakeTracker(error=tracker_error)
        h_notifier = FakeNotifier(fail=notify_fail)
        console = MockConsole()

        notifications = NotificationAggregator(
            notifier=h_notifier,
            channel="C-RELEASES",
            target_branch=cfg.pipeline.target_branch,
            service_name="svc",
            console=console,
        )
        actions = ReleaseStages(
            config=cfg,
            workdir=tmp_path,
            source=h_source,
            versions=VersionOracle(h_tool, skip_marker=cfg.pipeline.skip_marker),
            container=h_container,
            tracker=h_tracker,
        )
        executor = PipelineExecutor(
            build_stages(actions),
            guards=GuardEvaluator(target_branch=cfg.pipeline.target_branch),
            notifications=notifications,
            console=console,
            timeout_seconds=cfg.pipeline.timeout_seconds,
            clock=clock,
        )
        return Harness(
            config=cfg,
            source=h_source,
            tool=h_tool,
            container=h_container,
            tracker=h_tracker,
            notifier=h_notifier,
            console=console,
            clock=clock,
            notifications=notifications,
            executor=executor,
            commands=commands,
        )

    return factory
