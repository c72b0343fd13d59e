"""Implementations of the pipeline's collaborator interfaces."""

from cdp.adapters.cog import CogVersionTool
from cdp.adapters.container import DockerTool
from cdp.adapters.slack import SlackNotifier
from cdp.adapters.source import GitSource
from cdp.adapters.tracker import RolloutTracker, build_release_payload

__all__ = [
    "CogVersionTool",
    "DockerTool",
    "GitSource",
    "RolloutTracker",
    "SlackNotifier",
    "build_release_payload",
]
