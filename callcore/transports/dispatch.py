# callcore/transports/dispatch.py
"""
Shared tools/call handling for every transport.

A request carries either:
- model_output: raw model text, parsed through the session's router, or
- tool | name (+ arguments): a pre-extracted call

Invocations run sequentially; each result is independent of the others.
Transports own only their wire framing.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Mapping, Optional

from ..core.errors import InvalidRequestError, ToolTimeoutError, UnknownToolError
from ..core.parser.router import ParserRouter
from ..core.tools.registry import ToolRegistry
from ..core.types import ToolInvocation, ToolResult, generate_correlation_id


logger = logging.getLogger(__name__)

NO_TOOL_CALL = "no_tool_call"
TOOL_RESULTS = "tool_results"


def resolve_tool_name(registry: ToolRegistry, name: str) -> str:
    """Exact name if registered, else its dotted form (file_read -> file.read) if that is."""
    if name in registry:
        return name
    dotted = name.replace("_", ".")
    if dotted != name and dotted in registry:
        return dotted
    return name


def build_invocations(
    params: Mapping[str, Any],
    registry: ToolRegistry,
    router: ParserRouter,
    correlation_id: str,
) -> List[ToolInvocation]:
    """
    Raises:
        InvalidRequestError: neither model_output nor tool/name is usable
        MalformedToolCallError: model_output carries a broken <tool_call> tag
    """
    model_output = params.get("model_output")
    tool = params.get("tool") or params.get("name")

    if model_output is not None and not isinstance(model_output, str):
        raise InvalidRequestError('"model_output" must be a string')

    if model_output:
        return [inv.with_correlation_id(correlation_id) for inv in router.parse(model_output)]

    if tool:
        if not isinstance(tool, str):
            raise InvalidRequestError('"tool"/"name" must be a string')
        arguments = params.get("arguments")
        if arguments is None:
            arguments = {}
        if not isinstance(arguments, dict):
            raise InvalidRequestError('"arguments" must be an object')
        return [ToolInvocation.direct(resolve_tool_name(registry, tool), arguments, correlation_id)]

    raise InvalidRequestError('Provide either "model_output" or ("tool"/"name" + "arguments")')


async def _invoke_bounded(registry: ToolRegistry, inv: ToolInvocation, timeout_ms: Optional[int]) -> ToolResult:
    if not timeout_ms:
        return await registry.invoke(inv)

    task = asyncio.ensure_future(registry.invoke(inv))
    try:
        done, _ = await asyncio.wait({task}, timeout=timeout_ms / 1000)
    except asyncio.CancelledError:
        task.cancel()
        raise

    if task in done:
        return task.result()

    task.cancel()
    task.add_done_callback(lambda t: t.cancelled() or t.exception())
    logger.warning(f"Invocation exceeded global timeout: tool={inv.tool} timeout_ms={timeout_ms}")
    return ToolResult(success=False, error=ToolTimeoutError(inv.tool, timeout_ms).to_tool_error(),
                      duration_ms=timeout_ms)


async def dispatch_call(
    params: Mapping[str, Any],
    registry: ToolRegistry,
    router: ParserRouter,
    correlation_id: Optional[str] = None,
    timeout_ms: Optional[int] = None,
) -> Dict[str, Any]:
    """
    Handle one tools/call request.

    timeout_ms bounds each invocation end to end (session globalTimeoutMs);
    per-attempt TSD timeouts apply inside it.

    Correlation id precedence: the request's correlationId, then the
    transport-supplied correlation_id, then a generated one.

    Returns:
        {"type": "no_tool_call", "message": ..., "correlationId": ...} or
        {"type": "tool_results", "correlationId": ..., "results": [{"tool": ..., "result": {...}}]}
    """
    cid = params.get("correlationId") or correlation_id or generate_correlation_id()
    invocations = build_invocations(params, registry, router, cid)

    if not invocations:
        logger.debug(f"No tool call in model output: correlation_id={cid}")
        return {"type": NO_TOOL_CALL, "message": params.get("model_output", ""), "correlationId": cid}

    results: List[Dict[str, Any]] = []
    for inv in invocations:
        try:
            result = await _invoke_bounded(registry, inv, timeout_ms)
        except UnknownToolError as e:
            logger.warning(f"Unknown tool requested: tool={inv.tool} correlation_id={cid}")
            result = ToolResult(success=False, error=e.to_tool_error())
        results.append({"tool": inv.tool, "result": result.to_dict()})

    return {"type": TOOL_RESULTS, "correlationId": cid, "results": results}


__all__ = [
    "NO_TOOL_CALL",
    "TOOL_RESULTS",
    "resolve_tool_name",
    "build_invocations",
    "dispatch_call",
]
