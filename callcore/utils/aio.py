# callcore/utils/aio.py
"""
Async bridge for user-supplied callables (tools, hooks).

Coroutine functions are awaited on the loop; plain functions run in the
default thread pool with the caller's contextvars preserved.
"""

from __future__ import annotations

import asyncio
import contextvars
import functools
import inspect
from typing import Any, Callable


async def call_maybe_async(fn: Callable[..., Any], *args: Any) -> Any:
    if inspect.iscoroutinefunction(fn):
        return await fn(*args)

    loop = asyncio.get_running_loop()
    ctx_copy = contextvars.copy_context()
    result = await loop.run_in_executor(None, functools.partial(ctx_copy.run, fn, *args))

    # Sync wrappers that hand back a coroutine (e.g. functools.partial of an async fn)
    if inspect.isawaitable(result):
        return await result
    return result


__all__ = ["call_maybe_async"]
