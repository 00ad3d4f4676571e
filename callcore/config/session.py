# callcore/config/session.py
"""
SessionConfig: session-wide settings consumed read-only by the core.

All fields have code defaults; YAML and CLI flags only override them.
Accepts camelCase (file/wire) or snake_case keys.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

if TYPE_CHECKING:
    from ..core.parser.router import ParserMode


class TransportMode(str, Enum):
    STDIO = "stdio"
    HTTP = "http"
    SSE = "sse"


LOG_LEVELS = ("trace", "debug", "info", "warn", "warning", "error", "fatal")


class SessionConfig(BaseModel):
    model_config = ConfigDict(
        extra="forbid",
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    transport_mode: TransportMode = TransportMode.STDIO
    host: str = "127.0.0.1"
    port: int = Field(default=3000, ge=0, le=65535)

    # Tri-state: True -> embedding, False -> text, None -> hybrid
    model_supports_tool_call_tags: Optional[bool] = None

    # Skip the privilege probe for whitelisted tools
    elevation_pre_approved: bool = False
    elevation_whitelist: List[str] = Field(default_factory=list)

    log_level: str = "info"
    audit_log_path: Optional[str] = None
    tsd_dir: Optional[str] = None

    global_timeout_ms: int = Field(default=30_000, gt=0)
    graceful_shutdown_timeout_ms: int = Field(default=5_000, ge=0)

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, v: str) -> str:
        v = v.lower()
        if v not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}")
        return v

    def parser_mode(self) -> "ParserMode":
        from ..core.parser.router import ParserMode

        return ParserMode.from_flag(self.model_supports_tool_call_tags)

    def is_elevation_pre_approved(self, tool_name: str) -> bool:
        return self.elevation_pre_approved and tool_name in self.elevation_whitelist


__all__ = ["TransportMode", "LOG_LEVELS", "SessionConfig"]
