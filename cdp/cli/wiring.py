"""Assembles the executor and its collaborators from a CLI context."""

from __future__ import annotations

from dataclasses import dataclass

from cdp.adapters.cog import CogVersionTool
from cdp.adapters.container import DockerTool
from cdp.adapters.slack import SlackNotifier
from cdp.adapters.source import GitSource
from cdp.adapters.tracker import RolloutTracker
from cdp.cli.context import CLIContext
from cdp.pipeline.collaborators import SourceControl
from cdp.pipeline.executor import PipelineExecutor
from cdp.pipeline.guards import GuardEvaluator
from cdp.pipeline.notify import ChatNotifier, NotificationAggregator
from cdp.pipeline.stages import ReleaseStages, build_stages
from cdp.pipeline.version import VersionOracle
from cdp.platform.http import HttpClient, RealHttpClient


@dataclass(frozen=True, slots=True)
class Pipeline:
    source: SourceControl
    versions: VersionOracle
    guards: GuardEvaluator
    executor: PipelineExecutor


def assemble(ctx: CLIContext, *, http: HttpClient | None = None) -> Pipeline:
    config = ctx.config
    settings = config.pipeline
    http_client = http or RealHttpClient()

    source = GitSource(ctx.workdir)
    versions = VersionOracle(CogVersionTool(ctx.workdir), skip_marker=settings.skip_marker)
    guards = GuardEvaluator(target_branch=settings.target_branch)

    notifier: ChatNotifier | None = None
    if config.slack.enabled and config.slack.token:
        notifier = SlackNotifier(http_client, token=config.slack.token, api_url=config.slack.api_url)

    notifications = NotificationAggregator(
        notifier=notifier,
        channel=config.slack.channel,
        target_branch=settings.target_branch,
        service_name=settings.service_name,
        console=ctx.console,
    )

    actions = ReleaseStages(
        config=config,
        workdir=ctx.workdir,
        source=source,
        versions=versions,
        container=DockerTool(ctx.workdir),
        tracker=RolloutTracker(http_client, config.tracker, service_name=settings.service_name),
    )

    executor = PipelineExecutor(
        build_stages(actions),
        guards=guards,
        notifications=notifications,
        console=ctx.console,
        timeout_seconds=settings.timeout_seconds,
    )
    return Pipeline(source=source, versions=versions, guards=guards, executor=executor)
