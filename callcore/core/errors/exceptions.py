# callcore/core/errors/exceptions.py
from __future__ import annotations

from typing import Any, Dict, List, Optional, TYPE_CHECKING

from . import codes

if TYPE_CHECKING:
    from ..types import ToolError


def _safe_str(x: Any) -> str:
    try:
        return str(x)
    except Exception:
        return "<unstringifiable>"


class CallCoreError(Exception):
    """
    Base exception for every throw site in callcore.

    `code` is what shows up in ToolError.code and what a TSD's
    retryPolicy.retryableErrors matches against.
    """

    def __init__(
        self,
        message: str,
        code: str = codes.UNKNOWN_ERROR,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.details: Dict[str, Any] = details or {}

    def __str__(self) -> str:
        # More useful in logs
        return f"[{self.code}] {self.message}"

    @property
    def is_policy(self) -> bool:
        return self.code in codes.POLICY_CODES

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": type(self).__name__,
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }

    def to_tool_error(self) -> "ToolError":
        from ..types import ToolError

        return ToolError(code=self.code, message=self.message, details=self.details or None)


# ---------------------------------------------------------------------------
# Parse-layer errors
# ---------------------------------------------------------------------------

class ParseError(CallCoreError):
    """Model output could not be interpreted as a tool call at all."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, codes.PARSE_ERROR, details)


class MalformedToolCallError(CallCoreError):
    """A <tool_call> tag was found but its JSON payload is malformed."""

    def __init__(self, raw_tag: str, reason: str = "invalid JSON") -> None:
        super().__init__(
            f"Malformed payload inside <tool_call> tag: {reason}",
            codes.MALFORMED_TOOL_CALL,
            {"rawTag": raw_tag, "reason": reason},
        )
        self.raw_tag = raw_tag


# ---------------------------------------------------------------------------
# Validation errors
# ---------------------------------------------------------------------------

class ValidationError(CallCoreError):
    """Arguments failed the TSD's input schema."""

    def __init__(self, tool_name: str, violations: List[Dict[str, Any]]) -> None:
        super().__init__(
            f'Validation failed for tool "{tool_name}"',
            codes.VALIDATION_ERROR,
            {"toolName": tool_name, "violations": violations},
        )
        self.violations = violations


class MissingArgumentError(CallCoreError):
    """A required argument is missing entirely."""

    def __init__(self, tool_name: str, arg_name: str) -> None:
        super().__init__(
            f'Missing required argument "{arg_name}" for tool "{tool_name}"',
            codes.MISSING_ARGUMENT,
            {"toolName": tool_name, "argName": arg_name},
        )


# ---------------------------------------------------------------------------
# Transport request errors
# ---------------------------------------------------------------------------

class InvalidRequestError(CallCoreError):
    """A transport request carries neither model output nor a tool name."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, codes.INVALID_REQUEST, details)


# ---------------------------------------------------------------------------
# Registry / dispatch errors
# ---------------------------------------------------------------------------

class UnknownToolError(CallCoreError):
    """The model requested a tool name that doesn't exist in the registry."""

    def __init__(self, tool_name: str) -> None:
        super().__init__(f'Unknown tool: "{tool_name}"', codes.UNKNOWN_TOOL, {"toolName": tool_name})


class ExecutionError(CallCoreError):
    """The tool implementation failed."""

    def __init__(self, tool_name: str, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, codes.EXECUTION_ERROR, {"toolName": tool_name, **(details or {})})


class FallbackLoopError(CallCoreError):
    """A fallback chain led back to a tool already being dispatched."""

    def __init__(self, chain: List[str]) -> None:
        super().__init__(
            f"Fallback loop detected: {' -> '.join(chain)}",
            codes.FALLBACK_LOOP,
            {"chain": chain},
        )


# ---------------------------------------------------------------------------
# Policy errors
# ---------------------------------------------------------------------------

class ElevationError(CallCoreError):
    """The tool requires elevation and the process is not elevated."""

    def __init__(self, tool_name: str) -> None:
        super().__init__(
            f'Tool "{tool_name}" requires administrator privileges and elevation was denied',
            codes.ELEVATION_DENIED,
            {"toolName": tool_name},
        )


class ToolTimeoutError(CallCoreError):
    """A single execution attempt exceeded the TSD timeout."""

    def __init__(self, tool_name: str, timeout_ms: int) -> None:
        super().__init__(
            f'Tool "{tool_name}" exceeded timeout of {timeout_ms}ms',
            codes.TIMEOUT,
            {"toolName": tool_name, "timeoutMs": timeout_ms},
        )


class RateLimitError(CallCoreError):
    """Tool was called more frequently than its TSD allows."""

    def __init__(self, tool_name: str) -> None:
        super().__init__(
            f'Rate limit exceeded for tool "{tool_name}"',
            codes.RATE_LIMIT_EXCEEDED,
            {"toolName": tool_name},
        )


# ---------------------------------------------------------------------------
# Hook errors
# ---------------------------------------------------------------------------

class HookError(CallCoreError):
    """A pre- or post-hook raised."""

    def __init__(self, hook_name: str, phase: str, cause: BaseException) -> None:
        super().__init__(
            f'Hook "{hook_name}" failed in {phase} phase: {_safe_str(cause)}',
            codes.HOOK_ERROR,
            {"hookName": hook_name, "phase": phase, "originalError": _safe_str(cause)},
        )
        self.__cause__ = cause


class HookNotFoundError(CallCoreError):
    """A hook referenced by a TSD is not registered (or not whitelisted)."""

    def __init__(self, hook_ref: str) -> None:
        super().__init__(f'Hook not found: "{hook_ref}"', codes.HOOK_NOT_FOUND, {"hookRef": hook_ref})


def error_code_of(exc: BaseException) -> str:
    """Best-effort code for any exception; empty string when it carries none."""
    code = getattr(exc, "code", None)
    if isinstance(code, str):
        return code
    return ""
