"""Tests for the streamed delta decoder."""

import json

from salesdesk.client.sse import SSEDeltaDecoder


def _event(content: str) -> str:
    return "data: " + json.dumps({"choices": [{"delta": {"content": content}}]}) + "\n"


class TestFeed:
    def test_complete_lines(self):
        decoder = SSEDeltaDecoder()
        assert decoder.feed((_event("Hel") + _event("lo")).encode()) == ["Hel", "lo"]

    def test_json_split_across_chunks(self):
        decoder = SSEDeltaDecoder()
        assert decoder.feed(b'data: {"choices":[{"delta":{"content":"Hel') == []
        assert decoder.feed(b'lo"}}]}\n\n') == ["Hello"]

    def test_comments_blank_lines_and_other_fields_skipped(self):
        decoder = SSEDeltaDecoder()
        chunk = ": keep-alive\n\nevent: message\n" + _event("hi")
        assert decoder.feed(chunk.encode()) == ["hi"]

    def test_done_sentinel_does_not_stop_decoding(self):
        decoder = SSEDeltaDecoder()
        chunk = _event("a") + "data: [DONE]\n" + _event("b")
        assert decoder.feed(chunk.encode()) == ["a", "b"]

    def test_crlf_line_endings(self):
        decoder = SSEDeltaDecoder()
        chunk = _event("x").replace("\n", "\r\n") + "\r\n"
        assert decoder.feed(chunk.encode()) == ["x"]

    def test_multibyte_character_split_across_chunks(self):
        decoder = SSEDeltaDecoder()
        raw = ('data: {"choices":[{"delta":{"content":"café"}}]}\n').encode()
        cut = raw.index("é".encode()) + 1
        assert decoder.feed(raw[:cut]) == []
        assert decoder.feed(raw[cut:]) == ["café"]

    def test_events_without_content_are_ignored(self):
        decoder = SSEDeltaDecoder()
        chunk = (
            'data: {"choices":[{"delta":{"role":"assistant"}}]}\n'
            'data: {"choices":[]}\n'
            'data: {"choices":[{"delta":{"content":""}}]}\n'
        )
        assert decoder.feed(chunk.encode()) == []
        assert decoder.pending == ""

    def test_incomplete_line_is_kept_pending(self):
        decoder = SSEDeltaDecoder()
        decoder.feed(b"data: {")
        assert decoder.pending == "data: {"


class TestFlush:
    def test_flush_handles_trailing_line_without_newline(self):
        decoder = SSEDeltaDecoder()
        assert decoder.feed(_event("end").rstrip("\n").encode()) == []
        assert decoder.flush() == ["end"]
        assert decoder.pending == ""

    def test_flush_drops_unparseable_lines(self):
        decoder = SSEDeltaDecoder()
        decoder.feed(b"data: {broken\n")
        assert decoder.flush() == []

    def test_flush_on_empty_buffer(self):
        assert SSEDeltaDecoder().flush() == []
