# callcore/__init__.py
"""
callcore - dispatch core for model-emitted tool calls

Turns free-form language-model output into executed, policy-governed tool
calls and returns a structured result.

Main API:
- ParserRouter: raw model text -> list of ToolInvocation
- ToolRegistry: register tools, invoke them through their TSD policy
- TsdApplier: rate limit / elevation / validation / hooks / retry /
  timeout / fallback around a single execution
- load_config(): SessionConfig from defaults, YAML and overrides

Basic usage:
    >>> from callcore import ParserRouter, ToolRegistry
    >>> registry = ToolRegistry()
    >>> @registry.tool("ping")
    ... def ping(args):
    ...     return "pong"
    >>> router = ParserRouter("hybrid")
    >>> router.set_known_tool_names(registry.list_tool_names())
    >>> [inv] = router.parse('<tool_call>{"name": "ping"}</tool_call>')
    >>> result = await registry.invoke(inv)
    >>> result.data
    'pong'

Transports (stdio JSON-RPC, HTTP) live in callcore.transports.
"""

__version__ = "0.1.0"

from .core.types import InvocationMeta, ToolError, ToolInvocation, ToolResult
from .core.errors import CallCoreError
from .core.parser import ParserMode, ParserRouter
from .core.tsd import TaskSpecificDefinition, TsdApplier, TsdStore, apply_tsd
from .core.hooks import HookRegistry
from .core.tools import ToolRegistry, ToolSpec
from .config import SessionConfig, load_config

__all__ = [
    "__version__",
    "InvocationMeta",
    "ToolError",
    "ToolInvocation",
    "ToolResult",
    "CallCoreError",
    "ParserMode",
    "ParserRouter",
    "TaskSpecificDefinition",
    "TsdApplier",
    "TsdStore",
    "apply_tsd",
    "HookRegistry",
    "ToolRegistry",
    "ToolSpec",
    "SessionConfig",
    "load_config",
]
