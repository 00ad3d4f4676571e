# callcore/core/tsd/__init__.py
"""
Task-Specific Definitions: per-tool operational policy and the applier
that enforces it.
"""

from .models import (
    BackoffStrategy,
    RateLimitPolicy,
    RetryPolicy,
    TaskSpecificDefinition,
)
from .store import TsdStore
from .ratelimit import RateLimiter, RateLimitState
from .elevation import ElevationChecker, default_privilege_probe
from .applier import TsdApplier, apply_tsd, get_default_applier

__all__ = [
    "BackoffStrategy",
    "RateLimitPolicy",
    "RetryPolicy",
    "TaskSpecificDefinition",
    "TsdStore",
    "RateLimiter",
    "RateLimitState",
    "ElevationChecker",
    "default_privilege_probe",
    "TsdApplier",
    "apply_tsd",
    "get_default_applier",
]
