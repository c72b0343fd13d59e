"""Process exit codes for the cdp command line.

The values are what a CI agent sees when the pipeline finishes, so they
must stay stable:
- 0: Run succeeded (including runs where every stage was skipped)
- 1: User error (bad arguments)
- 2: Configuration error (unreadable or invalid cdp.toml)
- 3: Pipeline failed (a stage action failed)
- 4: Pipeline timed out (global wall-clock budget exceeded)
"""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    """Exit codes for CLI commands."""

    OK = 0
    USER_ERROR = 1
    CONFIG_ERROR = 2
    PIPELINE_FAILED = 3
    TIMEOUT = 4

    def __str__(self) -> str:
        """Return human-readable name."""
        return self.name.lower().replace("_", " ")

    @property
    def is_success(self) -> bool:
        return self == ErrorCode.OK
