"""HTTP client abstraction for the rollout tracker and chat collaborators.

This module provides:
- HttpClient: Protocol for HTTP operations (injectable for tests)
- RealHttpClient: Real implementation using urllib
- MockHttpClient: Mock implementation for testing
"""

from __future__ import annotations

import http.client
import json
import ssl
import urllib.error
import urllib.request
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Protocol, cast, runtime_checkable

from cdp import __version__
from cdp.core.result import Err, Ok, Result
from cdp.core.structured import as_str_dict

__all__ = [
    "HttpClient",
    "RealHttpClient",
    "MockHttpClient",
    "HttpError",
]


@dataclass(frozen=True, slots=True)
class HttpError:
    """HTTP error details.

    Attributes:
        url: The URL that failed
        status: HTTP status code (0 for network errors)
        message: Human-readable error message
    """

    url: str
    status: int
    message: str

    def __str__(self) -> str:
        if self.status:
            return f"HTTP {self.status}: {self.message} ({self.url})"
        return f"{self.message} ({self.url})"


@runtime_checkable
class HttpClient(Protocol):
    """Protocol for HTTP operations."""

    def post_json(
        self,
        url: str,
        payload: Mapping[str, object],
        *,
        headers: Mapping[str, str] | None = None,
        timeout: float | None = None,
    ) -> Result[dict[str, Any], HttpError]:
        """POST a JSON body and parse the JSON response.

        An empty response body is returned as an empty dict.
        """
        ...


class RealHttpClient:
    """Real HTTP client using urllib."""

    def __init__(self, timeout: float = 30.0, user_agent: str = f"cdp/{__version__}") -> None:
        self.timeout = timeout
        self.user_agent = user_agent
        self._ssl_context = ssl.create_default_context()

    def post_json(
        self,
        url: str,
        payload: Mapping[str, object],
        *,
        headers: Mapping[str, str] | None = None,
        timeout: float | None = None,
    ) -> Result[dict[str, Any], HttpError]:
        body = json.dumps(payload).encode("utf-8")
        all_headers = {
            "User-Agent": self.user_agent,
            "Content-Type": "application/json; charset=utf-8",
            "Accept": "application/json",
        }
        if headers:
            all_headers.update(headers)

        effective_timeout = self.timeout if timeout is None else min(timeout, self.timeout)
        try:
            req = urllib.request.Request(url, data=body, headers=all_headers, method="POST")
            with urllib.request.urlopen(
                req,
                timeout=effective_timeout,
                context=self._ssl_context,
            ) as response:
                raw: bytes = response.read()
        except urllib.error.HTTPError as e:
            return Err(HttpError(url=url, status=e.code, message=str(e.reason)))
        except urllib.error.URLError as e:
            return Err(HttpError(url=url, status=0, message=str(e.reason)))
        except TimeoutError:
            return Err(HttpError(url=url, status=0, message="Request timed out"))
        except http.client.HTTPException as e:
            return Err(HttpError(url=url, status=0, message=f"protocol error: {e}"))
        except ValueError as e:
            return Err(HttpError(url=url, status=0, message=str(e)))
        except OSError as e:
            return Err(HttpError(url=url, status=0, message=str(e)))

        if not raw.strip():
            return Ok({})

        try:
            data_obj: object = json.loads(raw.decode("utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            return Err(HttpError(url=url, status=0, message=f"JSON parse error: {e}"))

        data = as_str_dict(data_obj)
        if data is None:
            return Err(HttpError(url=url, status=0, message="Expected JSON object"))
        return Ok(cast(dict[str, Any], data))


@dataclass(frozen=True, slots=True)
class RecordedPost:
    """A request captured by MockHttpClient."""

    url: str
    payload: dict[str, object]
    headers: dict[str, str]


class MockHttpClient:
    """Mock HTTP client for testing.

    Responses are queued per URL and consumed in order; the last one is
    repeated once the queue is down to a single entry.

    Usage:
        client = MockHttpClient()
        client.set_json("https://tracker/api/release", {"id": 1})
        result = client.post_json("https://tracker/api/release", {"new_version": "1.3.0"})
        assert result == Ok({"id": 1})
    """

    def __init__(self) -> None:
        self._responses: dict[str, list[dict[str, Any] | HttpError]] = {}
        self.posts: list[RecordedPost] = []

    def set_json(self, url: str, *responses: dict[str, Any] | HttpError) -> None:
        """Queue one or more responses for URL."""
        self._responses[url] = list(responses)

    def post_json(
        self,
        url: str,
        payload: Mapping[str, object],
        *,
        headers: Mapping[str, str] | None = None,
        timeout: float | None = None,
    ) -> Result[dict[str, Any], HttpError]:
        self.posts.append(RecordedPost(url=url, payload=dict(payload), headers=dict(headers or {})))

        queue = self._responses.get(url)
        if not queue:
            return Err(HttpError(url=url, status=404, message="Not found (mock)"))

        response = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(response, HttpError):
            return Err(response)
        return Ok(response)

    def posts_to(self, url: str) -> list[RecordedPost]:
        return [p for p in self.posts if p.url == url]
