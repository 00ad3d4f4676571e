# callcore/core/types.py
"""
Shared types for callcore.

Parser output, result envelope and correlation helpers.
Keep everything JSON-serializable.
"""

from __future__ import annotations

import random
import string
import time
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Literal, Optional


ParserUsed = Literal["embedding", "text"]

_BASE36 = string.digits + string.ascii_lowercase


def now_ms() -> int:
    return int(time.time() * 1000)


def generate_correlation_id() -> str:
    suffix = "".join(random.choice(_BASE36) for _ in range(9))
    return f"req_{now_ms()}_{suffix}"


# ---------------------------
# Parser output
# ---------------------------

@dataclass(frozen=True)
class InvocationMeta:
    """
    Where an invocation came from.

    confidence is 1.0 for structural (embedding) matches and a heuristic
    certainty for text-parser matches.
    """
    raw_output: str
    parser_used: ParserUsed
    timestamp: int = field(default_factory=now_ms)
    confidence: Optional[float] = None
    correlation_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "rawOutput": self.raw_output,
            "parserUsed": self.parser_used,
            "timestamp": self.timestamp,
        }
        if self.confidence is not None:
            out["confidence"] = self.confidence
        if self.correlation_id is not None:
            out["correlationId"] = self.correlation_id
        return out


@dataclass(frozen=True)
class ToolInvocation:
    """
    The single normalised shape both parsers emit.

    Immutable: enrich by building a new invocation (see with_correlation_id).
    """
    tool: str
    args: Dict[str, Any]
    meta: InvocationMeta

    def __post_init__(self) -> None:
        if not isinstance(self.tool, str) or not self.tool.strip():
            raise ValueError("ToolInvocation.tool must be a non-empty str")
        if not isinstance(self.args, dict):
            raise ValueError("ToolInvocation.args must be a dict")

    @classmethod
    def direct(
        cls,
        tool: str,
        args: Optional[Dict[str, Any]] = None,
        correlation_id: Optional[str] = None,
    ) -> "ToolInvocation":
        """Build a pre-extracted invocation (transport supplied name + arguments)."""
        return cls(
            tool=tool,
            args=dict(args or {}),
            meta=InvocationMeta(raw_output="", parser_used="text", correlation_id=correlation_id),
        )

    def with_correlation_id(self, correlation_id: str) -> "ToolInvocation":
        return replace(self, meta=replace(self.meta, correlation_id=correlation_id))

    def to_dict(self) -> Dict[str, Any]:
        return {"tool": self.tool, "args": self.args, "meta": self.meta.to_dict()}


# ---------------------------
# Result envelope
# ---------------------------

@dataclass
class ToolError:
    code: str
    message: str
    details: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            out["details"] = self.details
        return out


@dataclass
class ToolResult:
    """
    What every execution path returns.

    duration_ms is stamped by the applier at the end of its pipeline and
    overwrites whatever the tool reported.
    """
    success: bool
    data: Any = None
    error: Optional[ToolError] = None
    duration_ms: int = 0

    @classmethod
    def ok(cls, data: Any = None) -> "ToolResult":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, code: str, message: str, details: Optional[Dict[str, Any]] = None) -> "ToolResult":
        return cls(success=False, error=ToolError(code=code, message=message, details=details))

    @property
    def error_code(self) -> str:
        return self.error.code if self.error else ""

    def with_duration(self, duration_ms: int) -> "ToolResult":
        return replace(self, duration_ms=max(0, int(duration_ms)))

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"success": self.success}
        if self.data is not None:
            out["data"] = self.data
        if self.error is not None:
            out["error"] = self.error.to_dict()
        out["durationMs"] = self.duration_ms
        return out


__all__ = [
    "ParserUsed",
    "InvocationMeta",
    "ToolInvocation",
    "ToolError",
    "ToolResult",
    "now_ms",
    "generate_correlation_id",
]
