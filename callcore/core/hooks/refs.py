# callcore/core/hooks/refs.py
from __future__ import annotations

from typing import Union

from pydantic import BaseModel, ConfigDict, Field


class InlineHookRef(BaseModel):
    """{module, export}: an importable module attribute holding a hook."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    module: str = Field(min_length=1)
    export: str = Field(min_length=1)

    def display_name(self) -> str:
        return f"{self.module}#{self.export}"


# A registered hook name, or an inline module reference
HookRef = Union[str, InlineHookRef]


def hook_ref_name(ref: HookRef) -> str:
    if isinstance(ref, InlineHookRef):
        return ref.display_name()
    if isinstance(ref, dict):
        return f"{ref.get('module')}#{ref.get('export')}"
    return ref


__all__ = ["InlineHookRef", "HookRef", "hook_ref_name"]
