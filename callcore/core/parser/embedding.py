# callcore/core/parser/embedding.py
"""
Embedding parser

Handles models that embed tool invocations as tags inside their output:
    <tool_call>{"name": "file.read", "arguments": {"path": "readme.txt"}}</tool_call>

- Finds ALL <tool_call>...</tool_call> blocks in a (possibly streamed) string
- Parses each JSON payload (multi-line payloads and padding whitespace allowed)
- Returns every invocation in source order plus the text outside the tags
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from typing import List, Tuple

from ..errors import MalformedToolCallError
from ..types import InvocationMeta, ToolInvocation


logger = logging.getLogger(__name__)

OPEN_TAG = "<tool_call>"
CLOSE_TAG = "</tool_call>"

TOOL_CALL_RE = re.compile(r"<tool_call>\s*(.*?)\s*</tool_call>", re.DOTALL)


@dataclass
class EmbeddingParseResult:
    invocations: List[ToolInvocation] = field(default_factory=list)
    # Any text outside the tool_call tags (e.g. a conversational prefix)
    remaining_text: str = ""


def _decode_payload(raw_tag: str, raw_json: str, raw_output: str) -> ToolInvocation:
    try:
        payload = json.loads(raw_json)
    except json.JSONDecodeError as e:
        logger.warning(f"Failed to parse JSON inside <tool_call> tag: {e}")
        raise MalformedToolCallError(raw_tag, reason=f"invalid JSON ({e.msg})") from e
    except RecursionError as e:
        logger.warning("JSON inside <tool_call> tag is nested too deeply")
        raise MalformedToolCallError(raw_tag, reason="JSON nested too deeply") from e

    if not isinstance(payload, dict):
        raise MalformedToolCallError(raw_tag, reason="payload is not an object")

    name = payload.get("name")
    if not isinstance(name, str) or not name.strip():
        raise MalformedToolCallError(raw_tag, reason='missing "name"')

    arguments = payload.get("arguments")
    if arguments is None:
        arguments = {}
    if not isinstance(arguments, dict):
        raise MalformedToolCallError(raw_tag, reason='"arguments" is not an object')

    return ToolInvocation(
        tool=name,
        args=arguments,
        meta=InvocationMeta(
            raw_output=raw_output,
            parser_used="embedding",
            confidence=1.0,  # structural match
        ),
    )


def _extract(raw_output: str) -> Tuple[List[ToolInvocation], str]:
    """Return invocations in source order and the unmatched text, untrimmed."""
    invocations: List[ToolInvocation] = []
    pieces: List[str] = []
    cursor = 0

    for match in TOOL_CALL_RE.finditer(raw_output):
        invocations.append(_decode_payload(match.group(0), match.group(1), raw_output))
        pieces.append(raw_output[cursor:match.start()])
        cursor = match.end()

    pieces.append(raw_output[cursor:])
    return invocations, "".join(pieces)


def parse_embedded_tool_calls(raw_output: str) -> EmbeddingParseResult:
    """
    Parse a complete model output string for embedded tool calls.

    Raises:
        MalformedToolCallError: a tag's payload is not a JSON object with a name.
            Aborts the whole extraction.
    """
    invocations, remainder = _extract(raw_output)
    logger.debug(f"Embedding parser extracted {len(invocations)} tool call(s)")
    return EmbeddingParseResult(invocations=invocations, remaining_text=remainder.strip())


class EmbeddingParserStream:
    """
    Streaming-friendly variant. Call feed() repeatedly as chunks arrive.

    The whole buffer is re-scanned on every feed; the buffer only shrinks
    once a complete closing tag has been seen, so a tag split across chunk
    boundaries is retried on the next feed.
    """

    def __init__(self) -> None:
        self._buffer = ""

    @property
    def buffer(self) -> str:
        """Whatever is still buffered (incomplete tags, plain text)."""
        return self._buffer

    def feed(self, chunk: str) -> List[ToolInvocation]:
        """Append a chunk and return invocations completed by it."""
        self._buffer += chunk

        # Untrimmed remainder: a partial tag may end in significant whitespace
        invocations, remainder = _extract(self._buffer)
        if invocations:
            self._buffer = remainder

        return invocations

    def flush(self) -> EmbeddingParseResult:
        """Call when the stream ends: final pass over the buffer, then clear it."""
        try:
            return parse_embedded_tool_calls(self._buffer)
        finally:
            self._buffer = ""

    def reset(self) -> None:
        self._buffer = ""


__all__ = [
    "OPEN_TAG",
    "CLOSE_TAG",
    "EmbeddingParseResult",
    "parse_embedded_tool_calls",
    "EmbeddingParserStream",
]
