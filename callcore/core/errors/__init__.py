# callcore/core/errors/__init__.py
"""
Core error types for callcore.

This package defines the components responsible for:
- Representing errors
- Categorizing errors (stable codes)

No side effects on import.
"""

from . import codes
from .exceptions import (
    CallCoreError,
    ParseError,
    MalformedToolCallError,
    InvalidRequestError,
    ValidationError,
    MissingArgumentError,
    UnknownToolError,
    ExecutionError,
    FallbackLoopError,
    ElevationError,
    ToolTimeoutError,
    RateLimitError,
    HookError,
    HookNotFoundError,
    error_code_of,
)

__all__ = [
    "codes",
    "CallCoreError",
    "ParseError",
    "MalformedToolCallError",
    "InvalidRequestError",
    "ValidationError",
    "MissingArgumentError",
    "UnknownToolError",
    "ExecutionError",
    "FallbackLoopError",
    "ElevationError",
    "ToolTimeoutError",
    "RateLimitError",
    "HookError",
    "HookNotFoundError",
    "error_code_of",
]
