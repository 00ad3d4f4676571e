# callcore/core/errors/codes.py
from __future__ import annotations

from typing import Final


# ---- canonical error codes (stable public contract) ----
# generic
UNKNOWN_ERROR: Final[str] = "UNKNOWN_ERROR"
INTERNAL_ERROR: Final[str] = "INTERNAL_ERROR"

# parse
PARSE_ERROR: Final[str] = "PARSE_ERROR"
MALFORMED_TOOL_CALL: Final[str] = "MALFORMED_TOOL_CALL"

# validation
VALIDATION_ERROR: Final[str] = "VALIDATION_ERROR"
MISSING_ARGUMENT: Final[str] = "MISSING_ARGUMENT"

# transport requests
INVALID_REQUEST: Final[str] = "INVALID_REQUEST"

# registry / dispatch
UNKNOWN_TOOL: Final[str] = "UNKNOWN_TOOL"
EXECUTION_ERROR: Final[str] = "EXECUTION_ERROR"
FALLBACK_LOOP: Final[str] = "FALLBACK_LOOP"

# policy
ELEVATION_DENIED: Final[str] = "ELEVATION_DENIED"
RATE_LIMIT_EXCEEDED: Final[str] = "RATE_LIMIT_EXCEEDED"
TIMEOUT: Final[str] = "TIMEOUT"

# hooks
HOOK_ERROR: Final[str] = "HOOK_ERROR"
HOOK_NOT_FOUND: Final[str] = "HOOK_NOT_FOUND"
VERIFY_FAILED: Final[str] = "VERIFY_FAILED"


# ---- semantic groups (internal helpers) ----

PARSE_CODES: Final[set[str]] = {
    PARSE_ERROR,
    MALFORMED_TOOL_CALL,
}

# Fatal for the current call: surfaced before the retry loop, never retried.
POLICY_CODES: Final[set[str]] = {
    RATE_LIMIT_EXCEEDED,
    ELEVATION_DENIED,
    VALIDATION_ERROR,
}

HOOK_CODES: Final[set[str]] = {
    HOOK_ERROR,
    HOOK_NOT_FOUND,
    VERIFY_FAILED,
}
