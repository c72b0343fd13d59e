"""Docker build/push collaborator.

One build per release; the same local image is then tagged and pushed once
per registry host.
"""

from __future__ import annotations

from pathlib import Path

from cdp.core.result import Err, Ok, Result
from cdp.pipeline.model import ImageRef
from cdp.platform.process import ProcessError
from cdp.platform.process import run as run_process
from cdp.platform.process import run_streaming

__all__ = ["DockerTool"]


class DockerTool:
    def __init__(
        self,
        context_dir: Path,
        *,
        dockerfile: str = "Dockerfile",
        docker: str = "docker",
    ) -> None:
        self.context_dir = context_dir
        self.dockerfile = dockerfile
        self.docker = docker

    def build(
        self,
        repository: str,
        version: str,
        commit_hash: str,
        *,
        timeout: float | None = None,
    ) -> Result[ImageRef, ProcessError]:
        image = ImageRef(repository=repository, tag=version)
        cmd = [
            self.docker,
            "build",
            "--file",
            self.dockerfile,
            "--tag",
            str(image),
            "--build-arg",
            f"VERSION={version}",
            "--build-arg",
            f"COMMIT_HASH={commit_hash}",
            ".",
        ]
        result = run_streaming(cmd, cwd=self.context_dir, timeout=timeout)
        if isinstance(result, Err):
            return result
        return Ok(image)

    def push(
        self,
        image: ImageRef,
        registry_host: str,
        *,
        timeout: float | None = None,
    ) -> Result[None, ProcessError]:
        remote = image.for_host(registry_host)
        tagged = run_process(
            [self.docker, "tag", str(image), remote],
            cwd=self.context_dir,
            timeout=timeout,
        )
        if isinstance(tagged, Err):
            return tagged
        return run_streaming([self.docker, "push", remote], cwd=self.context_dir, timeout=timeout)
