"""Core building blocks shared by every layer of the pipeline."""

from cdp.core.errors import ErrorCode
from cdp.core.result import Err, Ok, Result, is_err, is_ok

__all__ = ["ErrorCode", "Err", "Ok", "Result", "is_err", "is_ok"]
