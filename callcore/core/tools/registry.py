# callcore/core/tools/registry.py
"""
Tool Registry

- Holds every registered ToolSpec
- list() for tools/list responses
- Resolves a tool name to its spec
- Dispatches invocations through the TSD applier

Flow of invoke():
    1. Resolve the tool (UnknownToolError if missing)
    2. Look up its TSD
    3. Hand off to the applier, which wraps execution with all policies
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional, Tuple

from ..errors import CallCoreError, ExecutionError, FallbackLoopError, UnknownToolError, error_code_of
from ..tsd.applier import ExecuteFn, TsdApplier
from ..tsd.store import TsdStore
from ..types import ToolInvocation, ToolResult
from ...utils.aio import call_maybe_async
from .spec import ToolSpec

if TYPE_CHECKING:
    from ...config import SessionConfig


logger = logging.getLogger(__name__)


class ToolRegistry:
    def __init__(
        self,
        tsd_store: Optional[TsdStore] = None,
        session_config: Optional["SessionConfig"] = None,
        applier: Optional[TsdApplier] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self._logger = logger or logging.getLogger(__name__)
        self.tsd_store = tsd_store if tsd_store is not None else TsdStore(logger=self._logger)
        self.session_config = session_config
        self.applier = applier if applier is not None else TsdApplier(logger=self._logger)
        self._tools: Dict[str, ToolSpec] = {}

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register(self, spec: ToolSpec) -> ToolSpec:
        if spec.name in self._tools:
            self._logger.warning(f"Tool already registered, overwriting: {spec.name}")
        self._tools[spec.name] = spec
        self._logger.info(f"Tool registered: {spec.name}")
        return spec

    def tool(
        self,
        name: Optional[str] = None,
        description: str = "",
        parameters: Optional[Dict[str, Any]] = None,
    ) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
        """
        Decorator form of register().

        Example:
            >>> @registry.tool("file.read", parameters={...})
            ... def read_file(args):
            ...     return Path(args["path"]).read_text()
        """
        def decorator(fn: Callable[..., Any]) -> Callable[..., Any]:
            self.register(ToolSpec(
                name=name or fn.__name__,
                fn=fn,
                description=description,
                parameters=parameters,  # type: ignore[arg-type]
            ))
            return fn

        return decorator

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def resolve(self, name: str) -> ToolSpec:
        spec = self._tools.get(name)
        if spec is None:
            raise UnknownToolError(name)
        return spec

    def list(self) -> List[Dict[str, Any]]:
        """All tool schemas in OpenAI function format."""
        return [spec.schema() for spec in self._tools.values()]

    def list_tool_names(self) -> List[str]:
        return list(self._tools.keys())

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    async def invoke(self, invocation: ToolInvocation) -> ToolResult:
        """
        Raises:
            UnknownToolError: no tool with that name is registered
        """
        return await self._invoke(invocation, chain=())

    async def _invoke(self, invocation: ToolInvocation, chain: Tuple[str, ...]) -> ToolResult:
        spec = self.resolve(invocation.tool)
        tsd = self.tsd_store.get(spec.name)

        self._logger.info(
            f"Dispatching tool invocation: tool={spec.name} has_tsd={tsd is not None} "
            f"correlation_id={invocation.meta.correlation_id}"
        )

        chain = chain + (spec.name,)

        async def fallback_fn(fallback_name: str, args: Dict[str, Any]) -> ToolResult:
            # Re-enter through the registry so the fallback gets its own TSD
            if fallback_name in chain:
                raise FallbackLoopError(list(chain) + [fallback_name])
            fallback_invocation = ToolInvocation(tool=fallback_name, args=args, meta=invocation.meta)
            return await self._invoke(fallback_invocation, chain)

        return await self.applier.apply(
            invocation,
            tsd,
            self.session_config,
            self._make_execute_fn(spec),
            fallback_fn,
        )

    def _make_execute_fn(self, spec: ToolSpec) -> ExecuteFn:
        async def execute_fn(_name: str, args: Dict[str, Any]) -> ToolResult:
            try:
                value = await call_maybe_async(spec.fn, args)
            except Exception as e:
                self._logger.debug(f"Tool raised: tool={spec.name} error={e!r}")
                if isinstance(e, CallCoreError):
                    return ToolResult(success=False, error=e.to_tool_error())
                message = str(e) or type(e).__name__
                code = error_code_of(e)
                if code:
                    return ToolResult.fail(code, message)
                err = ExecutionError(spec.name, message, {"exceptionType": type(e).__name__})
                return ToolResult(success=False, error=err.to_tool_error())

            if isinstance(value, ToolResult):
                return value
            return ToolResult.ok(value)

        return execute_fn


__all__ = ["ToolRegistry"]
