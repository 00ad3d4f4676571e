# callcore/core/parser/router.py
"""
Parser Router

Selects the parsing strategy once per session and dispatches raw model
output to the embedding parser and/or the text parser.

Modes:
- embedding: only <tool_call> tags are recognised
- text:      only the text strategy stack is used
- hybrid:    embedding first; if it finds nothing, fall through to text

Hybrid never merges results from both parsers in a single call.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING, Iterable, List, Optional, Tuple, Union

from ..types import ToolInvocation
from .embedding import parse_embedded_tool_calls
from .text import parse_text_tool_call

if TYPE_CHECKING:
    from ...config import SessionConfig


logger = logging.getLogger(__name__)


class ParserMode(str, Enum):
    EMBEDDING = "embedding"
    TEXT = "text"
    HYBRID = "hybrid"

    @classmethod
    def from_flag(cls, model_supports_tool_call_tags: Optional[bool]) -> "ParserMode":
        """True -> embedding, False -> text, unset -> hybrid."""
        if model_supports_tool_call_tags is True:
            return cls.EMBEDDING
        if model_supports_tool_call_tags is False:
            return cls.TEXT
        return cls.HYBRID


class ParserRouter:
    """
    One router per session. The mode is fixed at construction.

    An empty list from parse() means "plain assistant message". A malformed
    embedded payload raises MalformedToolCallError instead.
    """

    def __init__(
        self,
        mode: Union[ParserMode, str, "SessionConfig", None] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self._logger = logger or logging.getLogger(__name__)
        self._mode = self._resolve_mode(mode)
        self._known_tool_names: Tuple[str, ...] = ()
        self._logger.info(f"ParserRouter initialised in {self._mode.value} mode")

    @staticmethod
    def _resolve_mode(mode: Union[ParserMode, str, "SessionConfig", None]) -> ParserMode:
        if mode is None:
            return ParserMode.HYBRID
        if isinstance(mode, ParserMode):
            return mode
        if isinstance(mode, str):
            return ParserMode(mode)
        # Anything else is treated as a session config
        return ParserMode.from_flag(getattr(mode, "model_supports_tool_call_tags", None))

    @property
    def mode(self) -> ParserMode:
        return self._mode

    @property
    def known_tool_names(self) -> Tuple[str, ...]:
        return self._known_tool_names

    def set_known_tool_names(self, names: Iterable[str]) -> None:
        """Call after the registry is populated, before the first parse()."""
        self._known_tool_names = tuple(names)

    def parse(self, raw_output: str) -> List[ToolInvocation]:
        if self._mode is ParserMode.EMBEDDING:
            return parse_embedded_tool_calls(raw_output).invocations

        if self._mode is ParserMode.TEXT:
            return self._parse_text(raw_output)

        # Hybrid: embedding evidence is authoritative
        invocations = parse_embedded_tool_calls(raw_output).invocations
        if invocations:
            self._logger.debug(f"Hybrid: using {len(invocations)} embedded invocation(s)")
            return invocations

        return self._parse_text(raw_output)

    def _parse_text(self, raw_output: str) -> List[ToolInvocation]:
        result = parse_text_tool_call(raw_output, self._known_tool_names)
        if result.invocation is None:
            return []
        return [result.invocation]


__all__ = ["ParserMode", "ParserRouter"]
