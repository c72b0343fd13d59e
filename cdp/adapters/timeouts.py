from __future__ import annotations

# Local git operations (rev-parse, log)
GIT_TIMEOUT_SECONDS = 30.0

# Network-bound git operations (fetch, push)
GIT_NETWORK_TIMEOUT_SECONDS = 3 * 60.0

# cog reads and bumps are local but may run hooks
COG_TIMEOUT_SECONDS = 2 * 60.0

# Tracker and chat HTTP calls
HTTP_TIMEOUT_SECONDS = 30.0


def bounded(timeout: float | None, cap: float) -> float:
    """The smaller of the remaining run budget and the operation's own cap."""
    if timeout is None:
        return cap
    return min(timeout, cap)
