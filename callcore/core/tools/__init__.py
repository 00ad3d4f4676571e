# callcore/core/tools/__init__.py
from .spec import ToolSpec
from .registry import ToolRegistry

__all__ = ["ToolSpec", "ToolRegistry"]
