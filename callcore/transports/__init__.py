# callcore/transports/__init__.py
"""
Wire transports. They own framing only; parsing and policy live in core.

The HTTP transport is imported from callcore.transports.http directly so
that stdio-only deployments never import FastAPI.
"""

from .dispatch import dispatch_call, build_invocations, resolve_tool_name
from .stdio import StdioServer, run_stdio

__all__ = [
    "dispatch_call",
    "build_invocations",
    "resolve_tool_name",
    "StdioServer",
    "run_stdio",
]
