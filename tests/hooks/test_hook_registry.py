# tests/hooks/test_hook_registry.py
"""
Hook registry tests - name and inline resolution, whitelist, built-in hooks
"""

import json

import pytest

from callcore.config import SessionConfig
from callcore.core.errors import HookError, HookNotFoundError
from callcore.core.hooks import (
    BUILTIN_HOOKS,
    HookModule,
    HookRegistry,
    InlineHookRef,
    PostHookContext,
    PreHookContext,
    register_builtin_hooks,
)
from callcore.core.types import ToolResult


BUILTIN_MODULE = "callcore.core.hooks.builtin"


class TestResolve:

    def test_builtins_registered(self, hooks):
        assert set(hooks.list()) == set(BUILTIN_HOOKS)

    def test_unknown_name(self):
        with pytest.raises(HookNotFoundError):
            HookRegistry().resolve("nope")

    def test_register_requires_a_function(self):
        with pytest.raises(ValueError):
            HookRegistry().register("empty")

    @pytest.mark.parametrize("ref", [
        InlineHookRef(module=BUILTIN_MODULE, export="verify_exists"),
        {"module": BUILTIN_MODULE, "export": "verify_exists"},
    ])
    def test_inline_ref_from_whitelisted_module(self, ref):
        mod = HookRegistry().resolve(ref)
        assert isinstance(mod, HookModule)
        assert mod.post is not None
        assert mod.pre is None

    def test_inline_ref_outside_whitelist(self):
        with pytest.raises(HookNotFoundError) as exc_info:
            HookRegistry().resolve({"module": "os", "export": "system"})
        assert "not in whitelist" in exc_info.value.message

    def test_inline_ref_missing_export(self):
        with pytest.raises(HookNotFoundError):
            HookRegistry().resolve({"module": BUILTIN_MODULE, "export": "does_not_exist"})

    def test_inline_ref_export_without_hooks(self):
        # A whitelisted module attribute that is not a hook
        with pytest.raises(HookNotFoundError):
            HookRegistry().resolve({"module": BUILTIN_MODULE, "export": "BACKUP_DIR_NAME"})

    def test_malformed_inline_ref(self):
        with pytest.raises(HookNotFoundError):
            HookRegistry().resolve({"module": BUILTIN_MODULE})

    def test_custom_whitelist(self):
        registry = HookRegistry(allowed_modules=["json"])
        with pytest.raises(HookNotFoundError):
            registry.resolve({"module": BUILTIN_MODULE, "export": "verify_exists"})


@pytest.mark.anyio
class TestRunners:

    async def test_pre_without_pre_function_passes_args_through(self, hooks):
        ctx = PreHookContext(tool_name="t", args={"a": 1})
        assert await hooks.run_pre("verify_exists", ctx) == {"a": 1}

    async def test_post_without_post_function_passes_result_through(self, hooks):
        result = ToolResult.ok(1)
        ctx = PostHookContext(tool_name="t", args={}, result=result)
        assert await hooks.run_post("normalize_path", ctx) is result

    async def test_pre_must_return_dict(self):
        registry = HookRegistry()
        registry.register("bad", pre=lambda ctx: ["not", "a", "dict"])
        with pytest.raises(HookError) as exc_info:
            await registry.run_pre("bad", PreHookContext(tool_name="t", args={}))
        assert exc_info.value.details["phase"] == "pre"

    async def test_post_must_return_tool_result(self):
        registry = HookRegistry()
        registry.register("bad", post=lambda ctx: {"success": True})
        with pytest.raises(HookError):
            await registry.run_post("bad", PostHookContext(tool_name="t", args={}, result=ToolResult.ok()))

    async def test_async_pre_hook(self):
        async def upper(ctx):
            return {k: v.upper() for k, v in ctx.args.items()}

        registry = HookRegistry()
        registry.register("upper", pre=upper)
        assert await registry.run_pre("upper", PreHookContext(tool_name="t", args={"a": "x"})) == {"a": "X"}


@pytest.mark.anyio
class TestBuiltinHooks:

    async def test_backup_target_copies_file(self, hooks, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        target = tmp_path / "notes.txt"
        target.write_text("important")

        args = await hooks.run_pre("backup_target", PreHookContext(tool_name="file.delete", args={"path": str(target)}))

        assert args == {"path": str(target)}
        backups = list((tmp_path / ".backups").iterdir())
        assert len(backups) == 1
        assert backups[0].name.endswith("_notes.txt")
        assert backups[0].read_text() == "important"

    async def test_backup_target_ignores_missing_file(self, hooks, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        await hooks.run_pre("backup_target", PreHookContext(tool_name="t", args={"path": "absent.txt"}))
        assert not (tmp_path / ".backups").exists()

    async def test_normalize_path(self, hooks, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        args = await hooks.run_pre("normalize_path", PreHookContext(tool_name="t", args={"path": "a.txt", "n": 1}))
        assert args == {"path": str(tmp_path / "a.txt"), "n": 1}

    async def test_verify_exists(self, hooks, tmp_path):
        ok = ToolResult.ok()
        present = tmp_path / "here.txt"
        present.write_text("x")

        kept = await hooks.run_post("verify_exists", PostHookContext("t", {"path": str(present)}, ok))
        assert kept is ok

        failed = await hooks.run_post("verify_exists", PostHookContext("t", {"path": str(tmp_path / "gone")}, ok))
        assert not failed.success
        assert failed.error.code == "VERIFY_FAILED"

    async def test_verify_deleted(self, hooks, tmp_path):
        ok = ToolResult.ok()
        kept = await hooks.run_post("verify_deleted", PostHookContext("t", {"path": str(tmp_path / "gone")}, ok))
        assert kept.success

    async def test_log_action_writes_audit_lines(self, hooks, tmp_path):
        audit = tmp_path / "logs" / "audit.log"
        config = SessionConfig(audit_log_path=str(audit))

        await hooks.run_pre("log_action", PreHookContext("file.read", {"path": "a"}, config))
        await hooks.run_post("log_action", PostHookContext("file.read", {"path": "a"}, ToolResult.ok("x"), config))

        lines = [json.loads(line) for line in audit.read_text().splitlines()]
        assert [line["phase"] for line in lines] == ["pre", "post"]
        assert lines[0]["args"] == {"path": "a"}
        assert lines[1]["result"]["data"] == "x"

    async def test_register_builtin_hooks_returns_registry(self):
        registry = HookRegistry()
        assert register_builtin_hooks(registry) is registry
