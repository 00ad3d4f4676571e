# callcore/core/hooks/registry.py
"""
Hook Registry

TSDs reference hooks by name ("backup_target") or inline as
{"module": "...", "export": "..."}. This registry resolves those refs to
HookModule objects and runs them with error wrapping.

- pre(ctx)  -> args     (may rewrite arguments)
- post(ctx) -> result   (may rewrite the result)

Hook functions may be sync or async.
"""

from __future__ import annotations

import importlib
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Dict, Iterable, List, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from ..errors import HookError, HookNotFoundError
from ..types import ToolResult
from .refs import HookRef, InlineHookRef, hook_ref_name
from ...utils.aio import call_maybe_async

if TYPE_CHECKING:
    from ...config import SessionConfig


logger = logging.getLogger(__name__)

# Modules inline {module, export} refs may import from
DEFAULT_ALLOWED_MODULES = ("callcore.core.hooks.builtin",)


@dataclass
class PreHookContext:
    tool_name: str
    args: Dict[str, Any]
    session_config: Optional["SessionConfig"] = None


@dataclass
class PostHookContext:
    tool_name: str
    args: Dict[str, Any]
    result: ToolResult
    session_config: Optional["SessionConfig"] = None


PreHookFn = Callable[[PreHookContext], Union[Dict[str, Any], Awaitable[Dict[str, Any]]]]
PostHookFn = Callable[[PostHookContext], Union[ToolResult, Awaitable[ToolResult]]]


@dataclass(frozen=True)
class HookModule:
    pre: Optional[PreHookFn] = None
    post: Optional[PostHookFn] = None


class HookRegistry:
    """
    name -> HookModule

    Inline refs are imported with importlib, but only from allowed_modules.
    """

    def __init__(
        self,
        allowed_modules: Iterable[str] = DEFAULT_ALLOWED_MODULES,
        logger: Optional[logging.Logger] = None,
    ):
        self.allowed_modules = frozenset(allowed_modules)
        self._logger = logger or logging.getLogger(__name__)
        self._hooks: Dict[str, HookModule] = {}

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register(
        self,
        name: str,
        pre: Optional[PreHookFn] = None,
        post: Optional[PostHookFn] = None,
        *,
        module: Optional[HookModule] = None,
    ) -> HookModule:
        if module is None:
            if pre is None and post is None:
                raise ValueError(f"Hook {name!r} needs a pre or post function")
            module = HookModule(pre=pre, post=post)
        self._hooks[name] = module
        self._logger.debug(f"Hook registered: {name}")
        return module

    def list(self) -> List[str]:
        return list(self._hooks.keys())

    def __contains__(self, name: object) -> bool:
        return name in self._hooks

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def resolve(self, ref: HookRef) -> HookModule:
        """
        Raises:
            HookNotFoundError: unknown name, module not whitelisted, or bad export
        """
        if isinstance(ref, str):
            mod = self._hooks.get(ref)
            if mod is None:
                raise HookNotFoundError(ref)
            return mod

        if isinstance(ref, dict):
            try:
                ref = InlineHookRef.model_validate(ref)
            except PydanticValidationError as e:
                raise HookNotFoundError(hook_ref_name(ref)) from e

        if ref.module not in self.allowed_modules:
            self._logger.error(f"Hook module not in whitelist: {ref.module}")
            raise HookNotFoundError(f"{ref.display_name()} - not in whitelist")

        try:
            target = getattr(importlib.import_module(ref.module), ref.export)
        except (ImportError, AttributeError) as e:
            raise HookNotFoundError(ref.display_name()) from e

        if isinstance(target, HookModule):
            return target
        pre = getattr(target, "pre", None)
        post = getattr(target, "post", None)
        if callable(pre) or callable(post):
            return HookModule(pre=pre, post=post)
        raise HookNotFoundError(ref.display_name())

    # ------------------------------------------------------------------
    # Runners
    # ------------------------------------------------------------------

    async def run_pre(self, ref: HookRef, ctx: PreHookContext) -> Dict[str, Any]:
        """
        Resolve and run a pre-hook. Returns the (possibly rewritten) args.

        Raises:
            HookNotFoundError: ref cannot be resolved
            HookError: the hook raised or returned something other than a dict
        """
        hook_name = hook_ref_name(ref)
        mod = self.resolve(ref)

        if mod.pre is None:
            self._logger.debug(f"Hook has no pre function, skipping: {hook_name}")
            return ctx.args

        try:
            args = await call_maybe_async(mod.pre, ctx)
        except Exception as e:
            raise HookError(hook_name, "pre", e) from e

        if not isinstance(args, dict):
            raise HookError(hook_name, "pre", TypeError(f"pre-hook returned {type(args).__name__}, expected dict"))
        return args

    async def run_post(self, ref: HookRef, ctx: PostHookContext) -> ToolResult:
        """
        Resolve and run a post-hook. Returns the (possibly rewritten) result.

        Raises:
            HookNotFoundError: ref cannot be resolved
            HookError: the hook raised or returned something other than a ToolResult
        """
        hook_name = hook_ref_name(ref)
        mod = self.resolve(ref)

        if mod.post is None:
            self._logger.debug(f"Hook has no post function, skipping: {hook_name}")
            return ctx.result

        try:
            result = await call_maybe_async(mod.post, ctx)
        except Exception as e:
            raise HookError(hook_name, "post", e) from e

        if not isinstance(result, ToolResult):
            raise HookError(
                hook_name, "post", TypeError(f"post-hook returned {type(result).__name__}, expected ToolResult")
            )
        return result


__all__ = [
    "DEFAULT_ALLOWED_MODULES",
    "PreHookContext",
    "PostHookContext",
    "PreHookFn",
    "PostHookFn",
    "HookModule",
    "HookRegistry",
]
