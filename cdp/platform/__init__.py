"""Process and HTTP primitives used by the collaborator adapters."""

from cdp.platform.http import HttpClient, HttpError, MockHttpClient, RealHttpClient
from cdp.platform.process import ProcessError, run, run_streaming

__all__ = [
    "HttpClient",
    "HttpError",
    "MockHttpClient",
    "ProcessError",
    "RealHttpClient",
    "run",
    "run_streaming",
]
