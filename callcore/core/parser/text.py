# callcore/core/parser/text.py
"""
Text parser

Handles models that do NOT emit <tool_call> tags. Such models may write:
- a fenced JSON block:   ```json {"tool": "...", "arguments": {...}} ```
- bare JSON anywhere in the response
- natural language mentioning a tool (best-effort heuristic)

Strategy stack (tried in order, stops at first success):
1. Fenced JSON block
2. Bare JSON object (first top-level {...})
3. Known-tool heuristic (needs the registry's tool names)

No match is not an error: the output is a plain assistant message.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional, Sequence, Tuple

from ..types import InvocationMeta, ToolInvocation


logger = logging.getLogger(__name__)

FENCED_JSON_RE = re.compile(r"```(?:json)?[ \t]*\n?(.*?)\n?\s*```", re.DOTALL | re.IGNORECASE)

STRUCTURED_CONFIDENCE = 0.9
HEURISTIC_ARGS_CONFIDENCE = 0.7
HEURISTIC_BARE_CONFIDENCE = 0.4


@dataclass
class TextParseResult:
    invocation: Optional[ToolInvocation]
    raw_text: str


# ---------------------------------------------------------------------------
# Brace scanning
# ---------------------------------------------------------------------------

def find_balanced_object(text: str, start: int = 0) -> Optional[Tuple[int, int]]:
    """
    Locate the first '{' at or after `start` and scan forward to the point
    where brace depth returns to zero.

    Braces inside double-quoted string literals are ignored.

    Returns:
        (begin, end) slice bounds of the candidate object, or None when there
        is no '{' or the object never closes.
    """
    begin = text.find("{", start)
    if begin == -1:
        return None

    depth = 0
    in_string = False
    escaped = False
    for i in range(begin, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue

        if ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return begin, i + 1

    return None  # unclosed brace


# ---------------------------------------------------------------------------
# Shared payload validator
# ---------------------------------------------------------------------------

def _coerce_arguments(value: Any) -> Optional[Dict[str, Any]]:
    if value is None:
        return {}
    if isinstance(value, str):
        # OpenAI-style stringified arguments
        try:
            value = json.loads(value) if value.strip() else {}
        except json.JSONDecodeError:
            return None
    if isinstance(value, dict):
        return value
    return None


def _pick_arguments(obj: Dict[str, Any]) -> Any:
    if obj.get("arguments") is not None:
        return obj["arguments"]
    return obj.get("args")


def decode_tool_payload(obj: Any) -> Optional[Tuple[str, Dict[str, Any]]]:
    """
    Tagged-variant decode of a parsed JSON value into (tool_name, args).

    Accepted shapes, tried in this order:
        {"name": "tool.name", "arguments" | "args": {...}}
        {"tool": "tool.name", "arguments" | "args": {...}}
        {"function": {"name": "tool.name", "arguments": {...}}}

    Returns None on shape mismatch (non-object, array, missing name).
    """
    if not isinstance(obj, dict):
        return None

    candidates = []
    if isinstance(obj.get("name"), str):
        candidates.append((obj["name"], _pick_arguments(obj)))
    if isinstance(obj.get("tool"), str):
        candidates.append((obj["tool"], _pick_arguments(obj)))
    fn = obj.get("function")
    if isinstance(fn, dict) and isinstance(fn.get("name"), str):
        candidates.append((fn["name"], fn.get("arguments")))

    for name, raw_args in candidates:
        if not name.strip():
            continue
        args = _coerce_arguments(raw_args)
        if args is None:
            continue
        return name, args
    return None


def try_parse_tool_payload(candidate: str, raw_output: str) -> Optional[ToolInvocation]:
    """Parse a JSON string and build an invocation if it looks like a tool call."""
    try:
        obj = json.loads(candidate)
    except (json.JSONDecodeError, RecursionError):
        return None

    decoded = decode_tool_payload(obj)
    if decoded is None:
        return None

    name, args = decoded
    return ToolInvocation(
        tool=name,
        args=args,
        meta=InvocationMeta(
            raw_output=raw_output,
            parser_used="text",
            confidence=STRUCTURED_CONFIDENCE,
        ),
    )


# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------

def try_fenced_json(raw_output: str) -> Optional[ToolInvocation]:
    for match in FENCED_JSON_RE.finditer(raw_output):
        invocation = try_parse_tool_payload(match.group(1).strip(), raw_output)
        if invocation is not None:
            logger.debug("Extracted tool call from fenced JSON block")
            return invocation
    return None


def try_bare_json(raw_output: str) -> Optional[ToolInvocation]:
    bounds = find_balanced_object(raw_output)
    if bounds is None:
        return None

    invocation = try_parse_tool_payload(raw_output[bounds[0]:bounds[1]], raw_output)
    if invocation is not None:
        logger.debug("Extracted tool call from bare JSON object")
    return invocation


def _earliest_known_name(raw_output: str, known_tool_names: Iterable[str]) -> Optional[Tuple[str, int]]:
    lowered = raw_output.lower()
    best: Optional[Tuple[str, int]] = None
    for name in known_tool_names:
        if not name.strip():
            continue
        idx = lowered.find(name.lower())
        if idx == -1:
            continue
        if best is None or idx < best[1] or (idx == best[1] and len(name) > len(best[0])):
            best = (name, idx)
    return best


def try_known_tool_heuristic(raw_output: str, known_tool_names: Sequence[str]) -> Optional[ToolInvocation]:
    """
    Find the earliest mention of a registered tool name and try to read a
    JSON object that follows it as the arguments.
    """
    found = _earliest_known_name(raw_output, known_tool_names)
    if found is None:
        return None

    name, idx = found
    args: Dict[str, Any] = {}
    confidence = HEURISTIC_BARE_CONFIDENCE

    bounds = find_balanced_object(raw_output, idx + len(name))
    if bounds is not None:
        try:
            parsed = json.loads(raw_output[bounds[0]:bounds[1]])
        except (json.JSONDecodeError, RecursionError):
            parsed = None
        if isinstance(parsed, dict):
            args = parsed
            confidence = HEURISTIC_ARGS_CONFIDENCE

    logger.debug(f"Heuristic match found: tool={name} confidence={confidence}")
    return ToolInvocation(
        tool=name,
        args=args,
        meta=InvocationMeta(raw_output=raw_output, parser_used="text", confidence=confidence),
    )


def parse_text_tool_call(raw_output: str, known_tool_names: Sequence[str] = ()) -> TextParseResult:
    """Run the strategy stack in order; first match wins."""
    invocation = try_fenced_json(raw_output)
    if invocation is None:
        invocation = try_bare_json(raw_output)
    if invocation is None and known_tool_names:
        invocation = try_known_tool_heuristic(raw_output, known_tool_names)

    if invocation is None:
        logger.debug("No tool call detected in output; returning as plain text")
    return TextParseResult(invocation=invocation, raw_text=raw_output)


__all__ = [
    "TextParseResult",
    "find_balanced_object",
    "decode_tool_payload",
    "try_parse_tool_payload",
    "try_fenced_json",
    "try_bare_json",
    "try_known_tool_heuristic",
    "parse_text_tool_call",
]
