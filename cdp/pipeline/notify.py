"""Run-level chat notifications.

Stages record human-readable events while the run progresses; the executor
flushes them exactly once after the run reaches a terminal status. Whether
anything is sent depends only on the final status, the branch and whether
the version changed:

- Failed on the target branch: a failure notice.
- Succeeded on the target branch with a version change: a success notice,
  followed by every recorded event as a threaded reply, in record order.
- Anything else, including any commit that asked to skip CI: nothing.

Delivery failures are reported on the console and never propagate.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Literal, Protocol

from cdp.core.result import Err, Result
from cdp.output.console import ConsoleProtocol, Style
from cdp.pipeline.errors import PipelineError
from cdp.pipeline.model import PipelineRun, RunStatus

__all__ = [
    "COLOR_FAILURE",
    "COLOR_SUCCESS",
    "ChatNotifier",
    "FlushKind",
    "NotificationAggregator",
]

COLOR_SUCCESS = "good"
COLOR_FAILURE = "danger"

FlushKind = Literal["failure", "success", "none"]


class ChatNotifier(Protocol):
    def send(
        self,
        channel: str,
        color: str,
        message: str,
        *,
        thread: str | None = None,
    ) -> Result[str, PipelineError]:
        """Post a message (or a threaded reply) and return its thread id."""
        ...


class NotificationAggregator:
    def __init__(
        self,
        *,
        notifier: ChatNotifier | None,
        channel: str | None,
        target_branch: str,
        service_name: str,
        console: ConsoleProtocol,
    ) -> None:
        self._notifier = notifier
        self._channel = channel
        self._target_branch = target_branch
        self._service_name = service_name
        self._console = console
        self._events: list[str] = []
        self._flushed = False

    @property
    def events(self) -> tuple[str, ...]:
        return tuple(self._events)

    @property
    def flushed(self) -> bool:
        return self._flushed

    def record(self, event: str) -> None:
        if self._flushed:
            raise RuntimeError("notifications already flushed for this run")
        self._events.append(event)

    def decide(self, run: PipelineRun) -> FlushKind:
        """Which notice (if any) a flush of this run sends."""
        if run.skip_ci or run.branch_name != self._target_branch:
            return "none"
        if run.status is RunStatus.FAILED:
            return "failure"
        if run.status is RunStatus.SUCCEEDED and run.version_delta.changed:
            return "success"
        return "none"

    def flush(self, run: PipelineRun) -> FlushKind:
        """Send the end-of-run notice. Must be called once, after the run finished."""
        if self._flushed:
            raise RuntimeError("notifications already flushed for this run")
        self._flushed = True

        kind = self.decide(run)
        if kind == "none":
            return kind

        if self._notifier is None or not self._channel:
            self._console.print("chat notifications not configured; skipping", Style.DIM)
            return kind

        if kind == "failure":
            self._deliver(self._notifier, self._channel, COLOR_FAILURE, self._failure_message(run), ())
        else:
            self._deliver(
                self._notifier, self._channel, COLOR_SUCCESS, self._success_message(run), self._events
            )
        return kind

    def _deliver(
        self,
        notifier: ChatNotifier,
        channel: str,
        color: str,
        message: str,
        follow_ups: Sequence[str],
    ) -> None:
        first = notifier.send(channel, color, message)
        if isinstance(first, Err):
            self._console.warning(f"notification not delivered: {first.error.pretty()}")
            return

        thread = first.value
        for item in follow_ups:
            reply = notifier.send(channel, color, item, thread=thread)
            if isinstance(reply, Err):
                self._console.warning(f"notification reply not delivered: {reply.error.pretty()}")

    def _failure_message(self, run: PipelineRun) -> str:
        msg = f"{self._service_name}: pipeline FAILED on {run.branch_name} @ {run.short_hash}"
        if run.failure is not None:
            msg += f"\n{run.failure.pretty()}"
        return msg

    def _success_message(self, run: PipelineRun) -> str:
        return (
            f"{self._service_name}: released {run.new_version} "
            f"(previous {run.old_version}) from {run.branch_name} @ {run.short_hash}"
        )
