"""Rollout-tracker collaborator.

Registers a new release so the tracker can schedule its staged rollout.
Called once per successful, version-changed run on the target branch.
"""

from __future__ import annotations

from typing import Any

from cdp.adapters.timeouts import HTTP_TIMEOUT_SECONDS, bounded
from cdp.core.config import TrackerConfig
from cdp.core.result import Err, Ok, Result
from cdp.pipeline.errors import PipelineError
from cdp.pipeline.model import ImageRef
from cdp.platform.http import HttpClient

__all__ = ["API_KEY_HEADER", "RolloutTracker", "build_release_payload"]

API_KEY_HEADER = "x-api-key"


def build_release_payload(
    config: TrackerConfig,
    *,
    service_name: str,
    version: str,
    image: ImageRef,
) -> dict[str, object]:
    """The tracker's release request body."""
    return {
        "service": list(config.service or (service_name,)),
        "release_manager": config.release_manager,
        "new_version": version,
        "docker_image": image.tag,
        "priority": config.priority,
        "cluster": config.cluster,
        "is_infra_approval_required": config.infra_approval_required,
        "is_release_manager_approval_required": config.release_manager_approval_required,
        "rollout_strategy": [
            {"rollout": step.rollout, "cooloff": step.cooloff, "pods": step.pods}
            for step in config.rollout
        ],
        "change_log": config.change_log,
        "product_id": config.product_id,
        "mode": config.mode,
        "env": config.env,
    }


class RolloutTracker:
    def __init__(self, http: HttpClient, config: TrackerConfig, *, service_name: str) -> None:
        self._http = http
        self._config = config
        self._service_name = service_name

    def register(
        self,
        version: str,
        image: ImageRef,
        *,
        timeout: float | None = None,
    ) -> Result[dict[str, Any], PipelineError]:
        url = self._config.url
        if not url:
            return Err(
                PipelineError(
                    kind="config",
                    message="rollout tracker url is not configured",
                    hint="set [tracker] url in cdp.toml",
                )
            )
        if not self._config.api_key:
            return Err(
                PipelineError(
                    kind="config",
                    message="rollout tracker API key is missing",
                    hint="set CDP_TRACKER_API_KEY",
                )
            )

        payload = build_release_payload(
            self._config,
            service_name=self._service_name,
            version=version,
            image=image,
        )
        result = self._http.post_json(
            url,
            payload,
            headers={API_KEY_HEADER: self._config.api_key},
            timeout=bounded(timeout, HTTP_TIMEOUT_SECONDS),
        )
        if isinstance(result, Err):
            e = result.error
            return Err(
                PipelineError(
                    kind="stage_action",
                    message=f"release registration failed: {e}",
                    hint=url,
                )
            )
        return Ok(result.value)
