"""Slack chat collaborator.

The first message of a notice is a top-level post; follow-up items are
replies in its thread (chat.postMessage with thread_ts).
"""

from __future__ import annotations

from cdp.adapters.timeouts import HTTP_TIMEOUT_SECONDS
from cdp.core.result import Err, Ok, Result
from cdp.core.structured import get_bool, get_str
from cdp.pipeline.errors import PipelineError
from cdp.platform.http import HttpClient

__all__ = ["SlackNotifier"]


class SlackNotifier:
    def __init__(self, http: HttpClient, *, token: str, api_url: str) -> None:
        self._http = http
        self._token = token
        self._api_url = api_url

    def send(
        self,
        channel: str,
        color: str,
        message: str,
        *,
        thread: str | None = None,
    ) -> Result[str, PipelineError]:
        payload: dict[str, object] = {
            "channel": channel,
            "attachments": [{"color": color, "text": message}],
        }
        if thread is not None:
            payload["thread_ts"] = thread

        result = self._http.post_json(
            self._api_url,
            payload,
            headers={"Authorization": f"Bearer {self._token}"},
            timeout=HTTP_TIMEOUT_SECONDS,
        )
        if isinstance(result, Err):
            return Err(PipelineError(kind="notification", message=f"slack: {result.error}"))

        data = result.value
        if not get_bool(data, "ok"):
            return Err(
                PipelineError(
                    kind="notification",
                    message=f"slack rejected message: {get_str(data, 'error') or 'unknown error'}",
                    hint=channel,
                )
            )

        ts = get_str(data, "ts")
        if ts is None:
            return Err(PipelineError(kind="notification", message="slack response missing ts"))
        return Ok(ts)
