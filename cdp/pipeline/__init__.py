"""Release-orchestration pipeline: guarded stages, one linear run.

Usage:
    from cdp.pipeline import PipelineExecutor, GuardEvaluator, build_stages

    executor = PipelineExecutor(
        build_stages(actions),
        guards=GuardEvaluator(target_branch="main"),
        notifications=aggregator,
        console=console,
        timeout_seconds=20 * 60,
    )
    status = executor.execute(run)
"""

from cdp.pipeline.errors import PipelineError
from cdp.pipeline.executor import PipelineExecutor
from cdp.pipeline.guards import GuardEvaluator
from cdp.pipeline.model import ImageRef, Outcome, PipelineRun, RunStatus, Stage, VersionDelta
from cdp.pipeline.notify import NotificationAggregator
from cdp.pipeline.runner import StageContext, StageRunner
from cdp.pipeline.semver import SemVer, parse_version
from cdp.pipeline.stages import ReleaseStages, build_stages
from cdp.pipeline.version import VersionOracle

__all__ = [
    "GuardEvaluator",
    "ImageRef",
    "NotificationAggregator",
    "Outcome",
    "PipelineError",
    "PipelineExecutor",
    "PipelineRun",
    "ReleaseStages",
    "RunStatus",
    "SemVer",
    "Stage",
    "StageContext",
    "StageRunner",
    "VersionDelta",
    "VersionOracle",
    "build_stages",
    "parse_version",
]
