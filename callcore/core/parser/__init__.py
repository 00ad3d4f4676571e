# callcore/core/parser/__init__.py
"""
Parser subsystem: raw model output -> ToolInvocation list.
"""

from .embedding import (
    OPEN_TAG,
    CLOSE_TAG,
    EmbeddingParseResult,
    EmbeddingParserStream,
    parse_embedded_tool_calls,
)
from .text import TextParseResult, decode_tool_payload, parse_text_tool_call
from .router import ParserMode, ParserRouter

__all__ = [
    "OPEN_TAG",
    "CLOSE_TAG",
    "EmbeddingParseResult",
    "EmbeddingParserStream",
    "parse_embedded_tool_calls",
    "TextParseResult",
    "decode_tool_payload",
    "parse_text_tool_call",
    "ParserMode",
    "ParserRouter",
]
