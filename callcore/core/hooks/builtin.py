# callcore/core/hooks/builtin.py
"""
Built-in hooks

- backup_target   (pre)        copy args.path to .backups/<timestamp>_<name>
- normalize_path  (pre)        expand ~ and make args.path absolute
- verify_exists   (post)       fail with VERIFY_FAILED if args.path is missing
- verify_deleted  (post)       fail with VERIFY_FAILED if args.path still exists
- log_action      (pre + post) append a JSON line to the audit log

Each hook is also a module attribute, so TSDs can reference it inline as
{"module": "callcore.core.hooks.builtin", "export": "verify_exists"}.
"""

from __future__ import annotations

import json
import logging
import shutil
from dataclasses import replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict

from ..errors import codes
from ..types import ToolError, ToolResult
from .registry import HookModule, HookRegistry, PostHookContext, PreHookContext


logger = logging.getLogger(__name__)

BACKUP_DIR_NAME = ".backups"
DEFAULT_AUDIT_LOG = "audit.log"


def _timestamp() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H-%M-%S-%fZ")


def _target_path(args: Dict[str, Any]) -> Path | None:
    path = args.get("path")
    if isinstance(path, str) and path:
        return Path(path)
    return None


def _verify_failed(result: ToolResult, message: str) -> ToolResult:
    return replace(result, success=False, error=ToolError(code=codes.VERIFY_FAILED, message=message))


# ---------------------------------------------------------------------------
# Pre hooks
# ---------------------------------------------------------------------------

def backup_target_pre(ctx: PreHookContext) -> Dict[str, Any]:
    src = _target_path(ctx.args)
    if src is not None and src.is_file():
        backup_dir = Path.cwd() / BACKUP_DIR_NAME
        backup_dir.mkdir(parents=True, exist_ok=True)
        dest = backup_dir / f"{_timestamp()}_{src.name}"
        shutil.copy2(src, dest)
        logger.info(f"File backed up: {src} -> {dest}")
    return ctx.args


def normalize_path_pre(ctx: PreHookContext) -> Dict[str, Any]:
    src = _target_path(ctx.args)
    if src is None:
        return ctx.args
    return {**ctx.args, "path": str(src.expanduser().absolute())}


# ---------------------------------------------------------------------------
# Post hooks
# ---------------------------------------------------------------------------

def verify_exists_post(ctx: PostHookContext) -> ToolResult:
    target = _target_path(ctx.args)
    if target is not None and not target.exists():
        return _verify_failed(ctx.result, f'Verification failed: "{target}" does not exist after operation')
    return ctx.result


def verify_deleted_post(ctx: PostHookContext) -> ToolResult:
    target = _target_path(ctx.args)
    if target is not None and target.exists():
        return _verify_failed(ctx.result, f'Verification failed: "{target}" still exists after deletion')
    return ctx.result


# ---------------------------------------------------------------------------
# Audit log
# ---------------------------------------------------------------------------

def _audit_log_path(ctx: Any) -> Path:
    configured = getattr(ctx.session_config, "audit_log_path", None)
    return Path(configured) if configured else Path.cwd() / DEFAULT_AUDIT_LOG


def _append_audit(path: Path, entry: Dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("a", encoding="utf-8") as f:
        f.write(json.dumps(entry, default=str) + "\n")


def log_action_pre(ctx: PreHookContext) -> Dict[str, Any]:
    _append_audit(_audit_log_path(ctx), {
        "phase": "pre",
        "tool": ctx.tool_name,
        "args": ctx.args,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    })
    return ctx.args


def log_action_post(ctx: PostHookContext) -> ToolResult:
    _append_audit(_audit_log_path(ctx), {
        "phase": "post",
        "tool": ctx.tool_name,
        "result": ctx.result.to_dict(),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    })
    return ctx.result


backup_target = HookModule(pre=backup_target_pre)
normalize_path = HookModule(pre=normalize_path_pre)
verify_exists = HookModule(post=verify_exists_post)
verify_deleted = HookModule(post=verify_deleted_post)
log_action = HookModule(pre=log_action_pre, post=log_action_post)

BUILTIN_HOOKS: Dict[str, HookModule] = {
    "backup_target": backup_target,
    "normalize_path": normalize_path,
    "verify_exists": verify_exists,
    "verify_deleted": verify_deleted,
    "log_action": log_action,
}


def register_builtin_hooks(registry: HookRegistry) -> HookRegistry:
    for name, mod in BUILTIN_HOOKS.items():
        registry.register(name, module=mod)
    return registry


__all__ = [
    "BUILTIN_HOOKS",
    "register_builtin_hooks",
    "backup_target",
    "normalize_path",
    "verify_exists",
    "verify_deleted",
    "log_action",
]
