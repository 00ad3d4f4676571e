# callcore/core/hooks/__init__.py
"""
Hooks: named pre/post functions referenced from TSDs.
"""

from .refs import HookRef, InlineHookRef, hook_ref_name
from .registry import (
    DEFAULT_ALLOWED_MODULES,
    HookModule,
    HookRegistry,
    PostHookContext,
    PreHookContext,
)
from .builtin import BUILTIN_HOOKS, register_builtin_hooks

__all__ = [
    "HookRef",
    "InlineHookRef",
    "hook_ref_name",
    "DEFAULT_ALLOWED_MODULES",
    "HookModule",
    "HookRegistry",
    "PreHookContext",
    "PostHookContext",
    "BUILTIN_HOOKS",
    "register_builtin_hooks",
]
