# callcore/core/tsd/models.py
"""
Task-Specific Definition (TSD) contract.

One JSON document per tool describes the operational policy the applier
wraps around its execution. Field names on disk are camelCase; Python
attributes are snake_case.

Example:
    {
      "toolName": "file.delete",
      "rateLimits": {"maxCallsPerSecond": 2, "burstAllowance": 1},
      "requiresElevation": false,
      "inputValidation": {"type": "object", "required": ["path"]},
      "preHook": "backup_target",
      "postHook": "verify_deleted",
      "retryPolicy": {"maxRetries": 2, "backoff": "linear",
                      "baseDelayMs": 100, "retryableErrors": ["EBUSY"]},
      "timeoutMs": 5000,
      "fallbackTool": "file.move_to_trash"
    }
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional

from jsonschema import Draft202012Validator
from jsonschema.exceptions import SchemaError
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from ..hooks.refs import HookRef, InlineHookRef, hook_ref_name


_CAMEL = ConfigDict(extra="forbid", alias_generator=to_camel, populate_by_name=True, frozen=True)


class BackoffStrategy(str, Enum):
    NONE = "none"
    LINEAR = "linear"
    EXPONENTIAL = "exponential"


class RateLimitPolicy(BaseModel):
    model_config = _CAMEL

    max_calls_per_second: int = Field(ge=0)
    # Extra calls allowed above the steady rate within one window
    burst_allowance: int = Field(default=0, ge=0)

    @property
    def capacity(self) -> int:
        return self.max_calls_per_second + self.burst_allowance


class RetryPolicy(BaseModel):
    model_config = _CAMEL

    max_retries: int = Field(default=0, ge=0)
    backoff: BackoffStrategy = BackoffStrategy.NONE
    base_delay_ms: int = Field(default=0, ge=0)
    # Error codes worth retrying; anything else stops the loop
    retryable_errors: List[str] = Field(default_factory=list)

    def delay_ms(self, attempt: int) -> int:
        """Backoff before attempt `attempt` (0-based; attempt 0 never waits)."""
        if attempt <= 0 or self.backoff is BackoffStrategy.NONE:
            return 0
        if self.backoff is BackoffStrategy.LINEAR:
            return self.base_delay_ms * attempt
        return self.base_delay_ms * (2 ** attempt)

    def is_retryable(self, code: str) -> bool:
        return bool(code) and code in self.retryable_errors


class TaskSpecificDefinition(BaseModel):
    model_config = _CAMEL

    tool_name: str = Field(min_length=1)

    rate_limits: Optional[RateLimitPolicy] = None
    requires_elevation: bool = False
    input_validation: Optional[Dict[str, Any]] = None
    pre_hook: Optional[HookRef] = None
    post_hook: Optional[HookRef] = None
    retry_policy: Optional[RetryPolicy] = None
    # Hard wall-clock cap on a single execution attempt
    timeout_ms: Optional[int] = Field(default=None, gt=0)
    fallback_tool: Optional[str] = None

    @field_validator("input_validation")
    @classmethod
    def _check_schema(cls, v: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
        if v is None:
            return v
        try:
            Draft202012Validator.check_schema(v)
        except SchemaError as e:
            raise ValueError(f"inputValidation is not a valid JSON schema: {e.message}") from e
        return v

    @property
    def attempts(self) -> int:
        return (self.retry_policy.max_retries if self.retry_policy else 0) + 1

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


__all__ = [
    "BackoffStrategy",
    "RateLimitPolicy",
    "RetryPolicy",
    "InlineHookRef",
    "HookRef",
    "hook_ref_name",
    "TaskSpecificDefinition",
]
