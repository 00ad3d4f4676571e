# callcore/core/tsd/applier.py
"""
TSD Policy Applier

Wraps a tool's raw execute function with the policies of its TSD:

    rate limit -> elevation -> input validation -> pre-hook
        -> retry loop (per-attempt timeout) -> fallback -> post-hook
        -> stamp duration

Contract: apply() ALWAYS returns a ToolResult. Policy failures, hook
failures and anything the tool raises become a failed result; nothing
escapes past this boundary except task cancellation.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Dict, List, Optional

from jsonschema import Draft202012Validator

from ..errors import CallCoreError, ToolTimeoutError, ValidationError, codes, error_code_of
from ..hooks.registry import HookRegistry, PostHookContext, PreHookContext
from ..types import ToolInvocation, ToolResult
from .elevation import ElevationChecker
from .models import RetryPolicy, TaskSpecificDefinition
from .ratelimit import RateLimiter

if TYPE_CHECKING:
    from ...config import SessionConfig


logger = logging.getLogger(__name__)

# (tool_name, args) -> ToolResult
ExecuteFn = Callable[[str, Dict[str, Any]], Awaitable[ToolResult]]
SleepFn = Callable[[float], Awaitable[Any]]


def _consume_abandoned(task: "asyncio.Future[Any]") -> None:
    # A timed-out attempt may still finish later; retrieve its outcome so
    # asyncio does not report "exception was never retrieved".
    if not task.cancelled():
        task.exception()


def _ensure_result(value: Any, source: str) -> ToolResult:
    if isinstance(value, ToolResult):
        return value
    raise TypeError(f"{source} returned {type(value).__name__}, expected ToolResult")


def _result_from_exception(e: BaseException) -> ToolResult:
    if isinstance(e, CallCoreError):
        return ToolResult(success=False, error=e.to_tool_error())
    code = error_code_of(e) or codes.UNKNOWN_ERROR
    return ToolResult.fail(code, str(e) or type(e).__name__)


def schema_violations(schema: Dict[str, Any], args: Dict[str, Any]) -> List[Dict[str, Any]]:
    """All JSON-schema violations of `args`, ordered by instance path."""
    validator = Draft202012Validator(schema)
    errors = sorted(validator.iter_errors(args), key=lambda err: "/".join(map(str, err.path)))
    return [
        {
            "path": "".join(f"/{p}" for p in err.absolute_path),
            "message": err.message,
            "validator": err.validator,
        }
        for err in errors
    ]


class TsdApplier:
    """
    Owns the rate-limit table, the elevation checker and the hook registry
    used by the pipeline. One applier per server (or per test).
    """

    def __init__(
        self,
        rate_limiter: Optional[RateLimiter] = None,
        elevation: Optional[ElevationChecker] = None,
        hooks: Optional[HookRegistry] = None,
        sleep: SleepFn = asyncio.sleep,
        timer: Callable[[], float] = time.perf_counter,
        logger: Optional[logging.Logger] = None,
    ):
        self._logger = logger or logging.getLogger(__name__)
        self.rate_limiter = rate_limiter if rate_limiter is not None else RateLimiter(logger=self._logger)
        self.elevation = elevation if elevation is not None else ElevationChecker(logger=self._logger)
        self.hooks = hooks if hooks is not None else HookRegistry(logger=self._logger)
        self._sleep = sleep
        self._timer = timer

    async def apply(
        self,
        invocation: ToolInvocation,
        tsd: Optional[TaskSpecificDefinition],
        session_config: Optional["SessionConfig"],
        execute_fn: ExecuteFn,
        fallback_fn: Optional[ExecuteFn] = None,
    ) -> ToolResult:
        tool_name = invocation.tool
        start = self._timer()

        try:
            if tsd is None:
                self._logger.debug(f"No TSD configured, executing without policies: tool={tool_name}")
                result = _ensure_result(await execute_fn(tool_name, invocation.args), "execute_fn")
            else:
                result = await self._run_pipeline(invocation, tsd, session_config, execute_fn, fallback_fn)
        except CallCoreError as e:
            self._logger.warning(f"Tool call failed: tool={tool_name} {e}")
            result = _result_from_exception(e)
        except Exception as e:
            self._logger.error(f"Unexpected error applying TSD: tool={tool_name} error={e}", exc_info=True)
            result = _result_from_exception(e)

        # Last step, overwrites whatever the tool or hooks reported
        return result.with_duration(round((self._timer() - start) * 1000))

    async def _run_pipeline(
        self,
        invocation: ToolInvocation,
        tsd: TaskSpecificDefinition,
        session_config: Optional["SessionConfig"],
        execute_fn: ExecuteFn,
        fallback_fn: Optional[ExecuteFn],
    ) -> ToolResult:
        tool_name = invocation.tool

        # 1. Rate limit
        if tsd.rate_limits is not None:
            self.rate_limiter.check(tool_name, tsd.rate_limits)

        # 2. Elevation
        if tsd.requires_elevation:
            self.elevation.check(tool_name, session_config)

        # 3. Input validation
        if tsd.input_validation is not None:
            violations = schema_violations(tsd.input_validation, invocation.args)
            if violations:
                raise ValidationError(tool_name, violations)

        # 4. Pre-hook: its return value replaces args from here on
        args = invocation.args
        if tsd.pre_hook is not None:
            args = await self.hooks.run_pre(
                tsd.pre_hook, PreHookContext(tool_name=tool_name, args=dict(args), session_config=session_config)
            )

        # 5. Retry loop
        result = await self._retry_loop(tool_name, args, tsd, execute_fn)

        # 6. Fallback
        if not result.success and tsd.fallback_tool and fallback_fn is not None:
            result = await self._run_fallback(tool_name, tsd.fallback_tool, args, result, fallback_fn)

        # 7. Post-hook
        if tsd.post_hook is not None:
            result = await self.hooks.run_post(
                tsd.post_hook,
                PostHookContext(tool_name=tool_name, args=args, result=result, session_config=session_config),
            )

        return result

    async def _retry_loop(
        self,
        tool_name: str,
        args: Dict[str, Any],
        tsd: TaskSpecificDefinition,
        execute_fn: ExecuteFn,
    ) -> ToolResult:
        policy = tsd.retry_policy or RetryPolicy()
        max_attempts = tsd.attempts
        result: Optional[ToolResult] = None

        for attempt in range(max_attempts):
            if attempt > 0:
                delay_ms = policy.delay_ms(attempt)
                self._logger.debug(f"Retrying after delay: tool={tool_name} attempt={attempt} delay_ms={delay_ms}")
                if delay_ms > 0:
                    await self._sleep(delay_ms / 1000)

            is_last = attempt == max_attempts - 1
            try:
                result = await self._execute_with_timeout(tool_name, args, tsd.timeout_ms, execute_fn)
            except Exception as e:
                code = error_code_of(e)
                if is_last or not policy.is_retryable(code):
                    return _result_from_exception(e)
                self._logger.debug(f"Retryable exception, will retry: tool={tool_name} code={code} attempt={attempt}")
                continue

            if result.success:
                return result
            if is_last or not policy.is_retryable(result.error_code):
                return result
            self._logger.debug(
                f"Retryable error, will retry: tool={tool_name} code={result.error_code} attempt={attempt}"
            )

        # max_attempts >= 1 and every path above returns on the last attempt
        assert result is not None
        return result

    async def _execute_with_timeout(
        self,
        tool_name: str,
        args: Dict[str, Any],
        timeout_ms: Optional[int],
        execute_fn: ExecuteFn,
    ) -> ToolResult:
        if not timeout_ms:
            return _ensure_result(await execute_fn(tool_name, args), "execute_fn")

        task = asyncio.ensure_future(execute_fn(tool_name, args))
        try:
            done, _ = await asyncio.wait({task}, timeout=timeout_ms / 1000)
        except asyncio.CancelledError:
            task.cancel()
            raise

        if task in done:
            return _ensure_result(task.result(), "execute_fn")

        # Stop waiting; cancellation is cooperative and never awaited
        task.cancel()
        task.add_done_callback(_consume_abandoned)
        self._logger.warning(f"Tool timed out: tool={tool_name} timeout_ms={timeout_ms}")
        raise ToolTimeoutError(tool_name, timeout_ms)

    async def _run_fallback(
        self,
        tool_name: str,
        fallback_tool: str,
        args: Dict[str, Any],
        original: ToolResult,
        fallback_fn: ExecuteFn,
    ) -> ToolResult:
        self._logger.info(f"Activating fallback tool: tool={tool_name} fallback={fallback_tool}")
        try:
            return _ensure_result(await fallback_fn(fallback_tool, args), "fallback_fn")
        except Exception as e:
            # The primary failure record is kept
            self._logger.error(f"Fallback tool also failed: fallback={fallback_tool} error={e}")
            return original


_default_applier: Optional[TsdApplier] = None


def get_default_applier() -> TsdApplier:
    global _default_applier
    if _default_applier is None:
        _default_applier = TsdApplier()
    return _default_applier


async def apply_tsd(
    invocation: ToolInvocation,
    tsd: Optional[TaskSpecificDefinition],
    session_config: Optional["SessionConfig"],
    execute_fn: ExecuteFn,
    fallback_fn: Optional[ExecuteFn] = None,
) -> ToolResult:
    """Convenience wrapper over a process-wide default applier."""
    return await get_default_applier().apply(invocation, tsd, session_config, execute_fn, fallback_fn)


__all__ = [
    "ExecuteFn",
    "SleepFn",
    "schema_violations",
    "TsdApplier",
    "get_default_applier",
    "apply_tsd",
]
