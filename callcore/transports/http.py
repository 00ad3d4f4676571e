# callcore/transports/http.py
"""
HTTP transport (FastAPI). Each request is: receive -> dispatch -> respond.

Routes:
    GET  /health       liveness
    GET  /tools/list   registered tool schemas (OpenAI "function" wrapping)
    POST /tools/call   execute one request through dispatch_call()
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .. import __version__
from ..core.errors import CallCoreError, codes
from ..core.parser.router import ParserRouter
from ..core.tools.registry import ToolRegistry
from .dispatch import dispatch_call

if TYPE_CHECKING:
    from ..config import SessionConfig


logger = logging.getLogger(__name__)

CORRELATION_HEADER = "x-correlation-id"


def _error_body(code: str, message: str) -> Dict[str, Any]:
    return {
        "object": "tool_call_result",
        "type": "error",
        "error": {"code": code, "message": message},
    }


def create_app(
    registry: ToolRegistry,
    router: ParserRouter,
    config: Optional["SessionConfig"] = None,
) -> FastAPI:
    """
    Build the ASGI app.

    Single composition root used by:
    - CLI: callcore serve --transport http
    - Tests: fastapi.testclient.TestClient(app)
    """
    app = FastAPI(title="callcore", version=__version__)
    app.state.registry = registry
    app.state.router = router
    app.state.config = config

    @app.get("/health")
    async def health() -> Dict[str, Any]:
        return {"status": "ok", "tools": len(registry)}

    @app.get("/tools/list")
    async def tools_list() -> Dict[str, Any]:
        return {
            "object": "list",
            "data": [{"type": "function", "function": schema} for schema in registry.list()],
        }

    @app.post("/tools/call")
    async def tools_call(request: Request) -> JSONResponse:
        # None lets dispatch_call fall back to the body's correlationId
        correlation_id = request.headers.get(CORRELATION_HEADER)

        try:
            body = await request.json()
        except (json.JSONDecodeError, UnicodeDecodeError):
            return JSONResponse(_error_body(codes.INVALID_REQUEST, "Request body is not valid JSON"), status_code=400)
        if not isinstance(body, dict):
            return JSONResponse(_error_body(codes.INVALID_REQUEST, "Request body must be an object"), status_code=400)

        try:
            payload = await dispatch_call(
                body, registry, router, correlation_id,
                timeout_ms=config.global_timeout_ms if config else None,
            )
        except CallCoreError as e:
            logger.error(f"Tool call failed: correlation_id={correlation_id} {e}")
            return JSONResponse(_error_body(e.code, e.message), status_code=400)
        except Exception as e:
            logger.error(f"Tool call failed: correlation_id={correlation_id} error={e}", exc_info=True)
            return JSONResponse(_error_body(codes.INTERNAL_ERROR, str(e) or "Internal server error"), status_code=500)

        return JSONResponse({"object": "tool_call_result", **payload})

    return app


def run_http(
    app: FastAPI,
    host: str = "127.0.0.1",
    port: int = 3000,
    log_level: str = "info",
    graceful_shutdown_timeout_ms: int = 5000,
) -> None:
    import uvicorn

    level = {"trace": "trace", "warn": "warning", "fatal": "critical"}.get(log_level, log_level)
    logger.info(f"HTTP transport listening on {host}:{port}")
    uvicorn.run(
        app,
        host=host,
        port=port,
        log_level=level,
        timeout_graceful_shutdown=max(1, round(graceful_shutdown_timeout_ms / 1000)),
    )


__all__ = ["CORRELATION_HEADER", "create_app", "run_http"]
