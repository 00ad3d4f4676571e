# tests/parser/test_embedding_parser.py
"""
Tests for the embedding parser (<tool_call> tags) and its streaming variant
"""

import pytest

from callcore.core.errors import MalformedToolCallError, codes
from callcore.core.parser import EmbeddingParserStream, parse_embedded_tool_calls


class TestParseEmbeddedToolCalls:
    """Whole-string extraction"""

    def test_single_call(self):
        out = '<tool_call>{"name": "file.read", "arguments": {"path": "readme.txt"}}</tool_call>'
        result = parse_embedded_tool_calls(out)

        assert len(result.invocations) == 1
        inv = result.invocations[0]
        assert inv.tool == "file.read"
        assert inv.args == {"path": "readme.txt"}
        assert inv.meta.parser_used == "embedding"
        assert inv.meta.confidence == 1.0
        assert inv.meta.raw_output == out
        assert result.remaining_text == ""

    def test_multiple_calls_in_source_order_and_remaining_text(self):
        out = (
            "Sure, doing both.\n"
            '<tool_call>{"name": "a", "arguments": {"n": 1}}</tool_call>\n'
            "and then\n"
            '<tool_call>{"name": "b"}</tool_call>\n'
            "done"
        )
        result = parse_embedded_tool_calls(out)

        assert [inv.tool for inv in result.invocations] == ["a", "b"]
        assert "<tool_call>" not in result.remaining_text
        assert '"name"' not in result.remaining_text
        assert result.remaining_text.startswith("Sure, doing both.")
        assert result.remaining_text.endswith("done")
        assert "and then" in result.remaining_text

    def test_multiline_payload_with_padding(self):
        out = '<tool_call>\n  {\n    "name": "x",\n    "arguments": {"k": [1, 2]}\n  }\n</tool_call>'
        result = parse_embedded_tool_calls(out)
        assert result.invocations[0].args == {"k": [1, 2]}

    def test_missing_and_null_arguments_default_to_empty(self):
        result = parse_embedded_tool_calls(
            '<tool_call>{"name": "a"}</tool_call><tool_call>{"name": "b", "arguments": null}</tool_call>'
        )
        assert [inv.args for inv in result.invocations] == [{}, {}]

    def test_no_tags_is_not_an_error(self):
        result = parse_embedded_tool_calls("just chatting")
        assert result.invocations == []
        assert result.remaining_text == "just chatting"

    @pytest.mark.parametrize("payload", [
        "{not json}",
        '{"arguments": {}}',
        '{"name": ""}',
        '["name", "x"]',
        '{"name": "x", "arguments": [1, 2]}',
    ])
    def test_malformed_payload_raises_with_raw_tag(self, payload):
        tag = f"<tool_call>{payload}</tool_call>"
        with pytest.raises(MalformedToolCallError) as exc_info:
            parse_embedded_tool_calls(f"prefix {tag} suffix")

        err = exc_info.value
        assert err.code == codes.MALFORMED_TOOL_CALL
        assert err.raw_tag == tag
        assert err.details["rawTag"] == tag

    def test_deeply_nested_payload_is_malformed(self):
        depth = 100_000
        tag = '<tool_call>{"name": "x", "arguments": ' + "[" * depth + "]" * depth + "}</tool_call>"

        with pytest.raises(MalformedToolCallError) as exc_info:
            parse_embedded_tool_calls(tag)

        assert exc_info.value.raw_tag == tag

    def test_malformed_tag_aborts_whole_extraction(self):
        out = '<tool_call>{"name": "ok"}</tool_call><tool_call>oops</tool_call>'
        with pytest.raises(MalformedToolCallError):
            parse_embedded_tool_calls(out)


class TestEmbeddingParserStream:
    """Incremental extraction across chunks"""

    PAYLOAD = 'hello <tool_call>{"name": "file.read", "arguments": {"path": "a b.txt"}}</tool_call> bye'

    @pytest.mark.parametrize("offset", range(1, len(PAYLOAD)))
    def test_split_at_any_offset_matches_whole(self, offset):
        whole = parse_embedded_tool_calls(self.PAYLOAD).invocations

        stream = EmbeddingParserStream()
        found = stream.feed(self.PAYLOAD[:offset]) + stream.feed(self.PAYLOAD[offset:])
        found += stream.flush().invocations

        assert [(i.tool, i.args) for i in found] == [(i.tool, i.args) for i in whole]

    def test_partial_tag_stays_buffered(self):
        stream = EmbeddingParserStream()
        assert stream.feed('<tool_call>{"name": ') == []
        assert stream.buffer == '<tool_call>{"name": '

        found = stream.feed('"x"}</tool_call> tail')
        assert [i.tool for i in found] == ["x"]
        assert stream.buffer == " tail"

    def test_feed_returns_only_new_invocations(self):
        stream = EmbeddingParserStream()
        first = stream.feed('<tool_call>{"name": "a"}</tool_call>')
        second = stream.feed('<tool_call>{"name": "b"}</tool_call>')
        assert [i.tool for i in first] == ["a"]
        assert [i.tool for i in second] == ["b"]

    def test_flush_returns_remainder_and_clears(self):
        stream = EmbeddingParserStream()
        stream.feed("plain text ")
        stream.feed("only")

        result = stream.flush()
        assert result.invocations == []
        assert result.remaining_text == "plain text only"
        assert stream.buffer == ""

    def test_malformed_tag_raises_on_feed_and_flush_clears(self):
        stream = EmbeddingParserStream()
        with pytest.raises(MalformedToolCallError):
            stream.feed("<tool_call>nope</tool_call>")
        assert stream.buffer == "<tool_call>nope</tool_call>"

        with pytest.raises(MalformedToolCallError):
            stream.flush()
        assert stream.buffer == ""

    def test_reset(self):
        stream = EmbeddingParserStream()
        stream.feed("<tool_call>{")
        stream.reset()
        assert stream.buffer == ""
