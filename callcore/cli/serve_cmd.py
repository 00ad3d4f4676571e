# callcore/cli/serve_cmd.py
"""
callcore serve: composition root for a running server.

    config -> logging -> TSD store -> hooks -> applier -> registry
           -> tool modules -> router -> transport
"""

from __future__ import annotations

import asyncio
import importlib
import logging
import sys
from typing import Iterable

from callcore.config import SessionConfig, TransportMode, load_config
from callcore.core.hooks import HookRegistry, register_builtin_hooks
from callcore.core.parser import ParserRouter
from callcore.core.tools import ToolRegistry
from callcore.core.tsd import TsdApplier, TsdStore
from callcore.utils.log import configure_logging


logger = logging.getLogger(__name__)


def load_tool_modules(registry: ToolRegistry, module_names: Iterable[str]) -> None:
    """Import each module and call its register_tools(registry)."""
    for name in module_names:
        module = importlib.import_module(name)
        register = getattr(module, "register_tools", None)
        if not callable(register):
            raise SystemExit(f"Tool module {name!r} has no register_tools(registry) function")
        register(registry)
        logger.info(f"Tool module loaded: {name}")


def build_runtime(config: SessionConfig, tool_modules: Iterable[str] = ()) -> "tuple[ToolRegistry, ParserRouter]":
    store = TsdStore(config.tsd_dir)
    store.load()

    hooks = register_builtin_hooks(HookRegistry())
    applier = TsdApplier(hooks=hooks)
    registry = ToolRegistry(store, config, applier)
    load_tool_modules(registry, tool_modules)

    for tool_name in store.list_tool_names():
        if tool_name not in registry:
            logger.warning(f"TSD configured for unregistered tool: {tool_name}")

    # Known names must be set after the registry is populated
    router = ParserRouter(config)
    router.set_known_tool_names(registry.list_tool_names())
    return registry, router


def serve(args) -> int:
    config = load_config(
        args.config,
        transport_mode=args.transport,
        host=args.host,
        port=args.port,
        tsd_dir=args.tsd_dir,
        log_level=args.log_level,
    )
    configure_logging(config.log_level)

    if config.transport_mode is TransportMode.SSE:
        print("SSE transport is not supported; use stdio or http", file=sys.stderr)
        return 2

    registry, router = build_runtime(config, args.tools or [])
    logger.info(
        f"Starting callcore: transport={config.transport_mode.value} "
        f"parser_mode={router.mode.value} tools={len(registry)}"
    )

    if config.transport_mode is TransportMode.HTTP:
        from callcore.transports.http import create_app, run_http

        run_http(
            create_app(registry, router, config),
            host=config.host,
            port=config.port,
            log_level=config.log_level,
            graceful_shutdown_timeout_ms=config.graceful_shutdown_timeout_ms,
        )
        return 0

    from callcore.transports.stdio import run_stdio

    try:
        asyncio.run(run_stdio(registry, router, config))
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")
    return 0


__all__ = ["load_tool_modules", "build_runtime", "serve"]
