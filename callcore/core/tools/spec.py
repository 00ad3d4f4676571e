# callcore/core/tools/spec.py
from __future__ import annotations

import inspect
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional


def _empty_parameters() -> Dict[str, Any]:
    return {"type": "object", "properties": {}}


@dataclass
class ToolSpec:
    """
    A registered tool.

    fn receives the argument dict and may be sync or async. It returns a
    ToolResult, or any plain value which is wrapped as success data.
    """
    name: str
    fn: Callable[[Dict[str, Any]], Any]
    description: str = ""
    parameters: Dict[str, Any] = field(default_factory=_empty_parameters)

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise ValueError("ToolSpec.name must be non-empty")
        if not callable(self.fn):
            raise TypeError(f"ToolSpec.fn for {self.name!r} is not callable")
        if self.parameters is None:
            self.parameters = _empty_parameters()
        if not self.description:
            self.description = (inspect.getdoc(self.fn) or "").split("\n", 1)[0]

    @property
    def is_async(self) -> bool:
        return inspect.iscoroutinefunction(self.fn)

    def schema(self) -> Dict[str, Any]:
        """OpenAI function schema sent to the model in tools/list."""
        return {
            "name": self.name,
            "description": self.description,
            "parameters": self.parameters,
        }


__all__ = ["ToolSpec"]
