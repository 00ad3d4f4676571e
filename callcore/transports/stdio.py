# callcore/transports/stdio.py
"""
JSON-RPC 2.0 over stdin/stdout (newline-delimited, one object per line).

Methods:
    initialize   MCP handshake
    tools/list   registered tool schemas
    tools/call   parse/dispatch via dispatch_call()
    ping         liveness

Requests without an "id" are notifications and get no response.
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from typing import TYPE_CHECKING, Any, Dict, Optional, TextIO

from .. import __version__
from ..core.errors import CallCoreError, InvalidRequestError
from ..core.parser.router import ParserRouter
from ..core.tools.registry import ToolRegistry
from .dispatch import NO_TOOL_CALL, dispatch_call

if TYPE_CHECKING:
    from ..config import SessionConfig


logger = logging.getLogger(__name__)

PROTOCOL_VERSION = "2024-11-05"
SERVER_NAME = "callcore"

# JSON-RPC error codes
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603
SERVER_ERROR = -32000


def _response(req_id: Any, result: Any) -> Dict[str, Any]:
    return {"jsonrpc": "2.0", "id": req_id, "result": result}


def _error(req_id: Any, code: int, message: str, data: Any = None) -> Dict[str, Any]:
    err: Dict[str, Any] = {"code": code, "message": message}
    if data is not None:
        err["data"] = data
    return {"jsonrpc": "2.0", "id": req_id, "error": err}


class StdioServer:
    def __init__(
        self,
        registry: ToolRegistry,
        router: ParserRouter,
        config: Optional["SessionConfig"] = None,
        stdin: Optional[TextIO] = None,
        stdout: Optional[TextIO] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.registry = registry
        self.router = router
        self.config = config
        self._stdin = stdin or sys.stdin
        self._stdout = stdout or sys.stdout
        self._logger = logger or logging.getLogger(__name__)

    # ------------------------------------------------------------------
    # Request handling
    # ------------------------------------------------------------------

    async def handle_line(self, line: str) -> Optional[Dict[str, Any]]:
        """Handle one line; returns the response object, or None when there is nothing to send."""
        trimmed = line.strip()
        if not trimmed:
            return None

        try:
            request = json.loads(trimmed)
        except json.JSONDecodeError as e:
            # No id to answer to
            self._logger.warning(f"Failed to parse JSON-RPC request: {e}")
            return None

        if not isinstance(request, dict) or not isinstance(request.get("method"), str):
            return _error(request.get("id") if isinstance(request, dict) else None,
                          INVALID_REQUEST, "Invalid JSON-RPC request")

        if "id" not in request:
            self._logger.debug(f"Notification received: {request['method']}")
            return None

        req_id = request["id"]
        method = request["method"]
        params = request.get("params")
        if params is None:
            params = {}
        if not isinstance(params, dict):
            return _error(req_id, INVALID_PARAMS, '"params" must be an object')

        try:
            return await self._handle_method(req_id, method, params)
        except InvalidRequestError as e:
            return _error(req_id, INVALID_REQUEST, e.message)
        except CallCoreError as e:
            self._logger.error(f"Stdio handler error: method={method} {e}")
            return _error(req_id, SERVER_ERROR, e.message, e.to_dict())
        except Exception as e:
            self._logger.error(f"Stdio handler error: method={method} error={e}", exc_info=True)
            return _error(req_id, INTERNAL_ERROR, str(e) or "Internal error")

    async def _handle_method(self, req_id: Any, method: str, params: Dict[str, Any]) -> Dict[str, Any]:
        if method == "initialize":
            return _response(req_id, {
                "protocolVersion": PROTOCOL_VERSION,
                "capabilities": {"tools": {}},
                "serverInfo": {"name": SERVER_NAME, "version": __version__},
            })

        if method == "tools/list":
            return _response(req_id, {
                "tools": [
                    {"name": s["name"], "description": s["description"], "inputSchema": s["parameters"]}
                    for s in self.registry.list()
                ]
            })

        if method == "tools/call":
            payload = await dispatch_call(
                params, self.registry, self.router,
                timeout_ms=self.config.global_timeout_ms if self.config else None,
            )
            if payload["type"] == NO_TOOL_CALL:
                return _response(req_id, payload)

            results = payload["results"]
            return _response(req_id, {
                "content": [
                    {"type": "text", "text": json.dumps(r["result"], indent=2, default=str)}
                    for r in results
                ],
                "isError": not all(r["result"]["success"] for r in results),
                "correlationId": payload["correlationId"],
            })

        if method == "ping":
            return _response(req_id, {"pong": True, "tools": len(self.registry)})

        return _error(req_id, METHOD_NOT_FOUND, f'Unknown method: "{method}"')

    # ------------------------------------------------------------------
    # Serve loop
    # ------------------------------------------------------------------

    def _write(self, response: Dict[str, Any]) -> None:
        self._stdout.write(json.dumps(response, default=str) + "\n")
        self._stdout.flush()

    async def serve(self) -> None:
        """Read requests until stdin closes. Lines are handled one at a time."""
        self._logger.info("Stdio transport started, listening on stdin")
        loop = asyncio.get_running_loop()

        while True:
            # Blocking readline runs in a worker thread so the loop stays free
            line = await loop.run_in_executor(None, self._stdin.readline)
            if line == "":
                break
            response = await self.handle_line(line)
            if response is not None:
                self._write(response)

        self._logger.info("Stdin closed, shutting down stdio transport")


async def run_stdio(
    registry: ToolRegistry,
    router: ParserRouter,
    config: Optional["SessionConfig"] = None,
) -> None:
    await StdioServer(registry, router, config).serve()


__all__ = ["PROTOCOL_VERSION", "StdioServer", "run_stdio"]
