# tests/parser/test_text_parser.py
"""
Tests for the text parser strategy stack
"""

import pytest

from callcore.core.parser import decode_tool_payload, parse_text_tool_call
from callcore.core.parser.text import find_balanced_object


class TestFencedJson:

    def test_fenced_block_with_json_hint(self):
        out = 'Calling now:\n```json\n{"name": "ping", "arguments": {}}\n```\n'
        result = parse_text_tool_call(out)

        assert result.invocation is not None
        assert result.invocation.tool == "ping"
        assert result.invocation.args == {}
        assert result.invocation.meta.confidence == 0.9
        assert result.invocation.meta.parser_used == "text"
        assert result.raw_text == out

    def test_fenced_block_without_hint(self):
        out = '```\n{"tool": "file.read", "args": {"path": "x"}}\n```'
        result = parse_text_tool_call(out)
        assert result.invocation.tool == "file.read"
        assert result.invocation.args == {"path": "x"}

    def test_first_validating_block_wins(self):
        out = (
            '```json\n{"unrelated": true}\n```\n'
            '```json\n{"name": "second"}\n```\n'
            '```json\n{"name": "third"}\n```'
        )
        assert parse_text_tool_call(out).invocation.tool == "second"


class TestBareJson:

    def test_bare_object_in_prose(self):
        out = 'I will run {"name": "search", "arguments": {"q": "cats"}} for you.'
        inv = parse_text_tool_call(out).invocation
        assert inv.tool == "search"
        assert inv.args == {"q": "cats"}
        assert inv.meta.confidence == 0.9

    def test_nested_function_shape_with_stringified_arguments(self):
        out = '{"function": {"name": "add", "arguments": "{\\"a\\": 1, \\"b\\": 2}"}}'
        inv = parse_text_tool_call(out).invocation
        assert inv.tool == "add"
        assert inv.args == {"a": 1, "b": 2}

    def test_braces_inside_strings_do_not_break_scan(self):
        out = 'x {"name": "echo", "arguments": {"text": "a } tricky { \\" string"}} y'
        inv = parse_text_tool_call(out).invocation
        assert inv.tool == "echo"
        assert inv.args == {"text": 'a } tricky { " string'}

    def test_unbalanced_object_yields_nothing(self):
        result = parse_text_tool_call('{"name": "x", "arguments": {')
        assert result.invocation is None

    def test_plain_text_is_not_an_error(self):
        out = "Hello! How can I help?"
        result = parse_text_tool_call(out)
        assert result.invocation is None
        assert result.raw_text == out


class TestKnownToolHeuristic:

    def test_name_followed_by_object(self):
        out = 'I\'ll call file.read now {"path":"a.txt"}'
        inv = parse_text_tool_call(out, ["file.read"]).invocation
        assert inv.tool == "file.read"
        assert inv.args["path"] == "a.txt"
        assert inv.meta.confidence == 0.7

    def test_name_without_object(self):
        inv = parse_text_tool_call("I'll call file.read now", ["file.read"]).invocation
        assert inv.tool == "file.read"
        assert inv.args == {}
        assert inv.meta.confidence == 0.4

    def test_case_insensitive_returns_canonical_name(self):
        inv = parse_text_tool_call("Use FILE.READ please", ["file.read"]).invocation
        assert inv.tool == "file.read"

    def test_earliest_mention_wins(self):
        inv = parse_text_tool_call("first b.tool then a.tool", ["a.tool", "b.tool"]).invocation
        assert inv.tool == "b.tool"

    def test_longest_name_wins_at_same_offset(self):
        inv = parse_text_tool_call("run file.read_all now", ["file.read", "file.read_all"]).invocation
        assert inv.tool == "file.read_all"

    def test_blank_known_names_are_ignored(self):
        inv = parse_text_tool_call("I'll call file.read now", ["   ", "", "file.read"]).invocation
        assert inv.tool == "file.read"
        assert parse_text_tool_call("two  spaces here", [" ", "\t"]).invocation is None

    def test_skipped_without_known_names(self):
        assert parse_text_tool_call("I'll call file.read now").invocation is None

    def test_unknown_mention_yields_nothing(self):
        assert parse_text_tool_call("nothing relevant", ["file.read"]).invocation is None


class TestDecodeToolPayload:

    @pytest.mark.parametrize("obj, expected", [
        ({"name": "a", "arguments": {"x": 1}}, ("a", {"x": 1})),
        ({"name": "a", "args": {"x": 1}}, ("a", {"x": 1})),
        ({"tool": "b"}, ("b", {})),
        ({"function": {"name": "c", "arguments": {"y": 2}}}, ("c", {"y": 2})),
        ({"name": "d", "arguments": '{"z": 3}'}, ("d", {"z": 3})),
    ])
    def test_accepted_shapes(self, obj, expected):
        assert decode_tool_payload(obj) == expected

    @pytest.mark.parametrize("obj", [
        [1, 2],
        "name",
        42,
        {},
        {"name": ""},
        {"name": 5},
        {"name": "a", "arguments": [1]},
        {"name": "a", "arguments": "not json"},
        {"function": "a"},
    ])
    def test_rejected_shapes(self, obj):
        assert decode_tool_payload(obj) is None

    def test_name_takes_priority_over_tool(self):
        assert decode_tool_payload({"name": "n", "tool": "t"}) == ("n", {})


class TestFindBalancedObject:

    def test_bounds(self):
        text = 'ab {"a": {"b": 1}} cd'
        begin, end = find_balanced_object(text)
        assert text[begin:end] == '{"a": {"b": 1}}'

    def test_start_offset(self):
        text = '{"x": 1} {"y": 2}'
        begin, end = find_balanced_object(text, 1)
        assert text[begin:end] == '{"y": 2}'

    def test_no_brace(self):
        assert find_balanced_object("none") is None
