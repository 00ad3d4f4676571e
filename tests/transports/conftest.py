# tests/transports/conftest.py
import asyncio

import pytest

from callcore.core.parser import ParserRouter
from callcore.core.tools import ToolRegistry, ToolSpec
from callcore.core.tsd import TsdStore
from callcore.core.types import ToolResult


@pytest.fixture
def registry(tmp_path, applier, session_config):
    registry = ToolRegistry(tsd_store=TsdStore(tmp_path), session_config=session_config, applier=applier)

    @registry.tool("file.read", description="Read a file", parameters={
        "type": "object", "properties": {"path": {"type": "string"}}, "required": ["path"],
    })
    def read_file(args):
        return f"contents of {args['path']}"

    @registry.tool("fail")
    def fail(args):
        return ToolResult.fail("EBROKEN", "always fails")

    @registry.tool("hang")
    async def hang(args):
        await asyncio.Event().wait()

    return registry


@pytest.fixture
def router(registry):
    router = ParserRouter()
    router.set_known_tool_names(registry.list_tool_names())
    return router
