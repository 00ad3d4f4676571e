# callcore/cli/parse_cmd.py
"""
callcore parse: run model output through the parser router and print the
extracted invocations as JSON. Useful for checking what a model's output
will dispatch before wiring a server.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

from callcore.core.errors import MalformedToolCallError
from callcore.core.parser import ParserMode, ParserRouter


def parse_output(args) -> int:
    if args.file and args.file != "-":
        text = Path(args.file).read_text(encoding="utf-8")
    else:
        text = sys.stdin.read()

    router = ParserRouter(ParserMode(args.mode))
    router.set_known_tool_names(args.known or [])

    try:
        invocations = router.parse(text)
    except MalformedToolCallError as e:
        print(json.dumps({"error": e.to_dict()}, indent=2), file=sys.stderr)
        return 1

    print(json.dumps([inv.to_dict() for inv in invocations], indent=2))
    return 0


__all__ = ["parse_output"]
