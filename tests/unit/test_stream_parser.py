"""Unit tests for the stream-json line parser and accumulator."""

import json

from disclaude.claude.stream_parser import (
    ParsedStreamEvent,
    StreamBuffer,
    StreamEventType,
    fold_events,
    parse_stream_line,
    update_buffer,
)
from tests.helpers.fake_process import assistant_line, result_line


class TestParseStreamLine:
    def test_assistant_text(self):
        line = '{"type":"assistant","message":{"content":[{"type":"text","text":"Hi"}]}}'
        event = parse_stream_line(line)
        assert event == ParsedStreamEvent(type=StreamEventType.ASSISTANT, text="Hi")
        assert event.session_id is None

    def test_assistant_joins_text_blocks(self):
        line = json.dumps(
            {
                "type": "assistant",
                "message": {
                    "content": [
                        {"type": "text", "text": "Hello "},
                        {"type": "tool_use", "name": "Read", "input": {}},
                        {"type": "text", "text": "there"},
                    ]
                },
            }
        )
        assert parse_stream_line(line).text == "Hello there"

    def test_assistant_without_text(self):
        line = json.dumps(
            {"type": "assistant", "message": {"content": [{"type": "tool_use", "name": "Bash"}]}}
        )
        event = parse_stream_line(line)
        assert event.type is StreamEventType.ASSISTANT
        assert event.text is None

    def test_assistant_with_malformed_message(self):
        event = parse_stream_line('{"type":"assistant","message":"oops"}')
        assert event.type is StreamEventType.ASSISTANT
        assert event.text is None

    def test_result(self):
        event = parse_stream_line(result_line("s1", result="All done"))
        assert event.type is StreamEventType.RESULT
        assert event.session_id == "s1"
        assert event.text == "All done"

    def test_result_ignores_non_string_session(self):
        event = parse_stream_line('{"type":"result","session_id":7}')
        assert event.type is StreamEventType.RESULT
        assert event.session_id is None

    def test_system_and_user(self):
        assert parse_stream_line('{"type":"system","subtype":"init"}').type is StreamEventType.SYSTEM
        assert parse_stream_line('{"type":"user","message":{}}').type is StreamEventType.USER

    def test_unknown_type(self):
        assert parse_stream_line('{"type":"rate_limit"}').type is StreamEventType.UNKNOWN
        assert parse_stream_line("{}").type is StreamEventType.UNKNOWN

    def test_blank_and_non_json(self):
        assert parse_stream_line("") is None
        assert parse_stream_line("   \n") is None
        assert parse_stream_line("not json") is None
        assert parse_stream_line('"not json"') is None
        assert parse_stream_line("[1, 2]") is None

    def test_surrounding_whitespace(self):
        assert parse_stream_line("  " + assistant_line("x") + "\r\n").text == "x"


class TestAccumulator:
    def test_interleaved_events(self):
        events = [
            ParsedStreamEvent(type=StreamEventType.ASSISTANT, text="Hello "),
            ParsedStreamEvent(type=StreamEventType.SYSTEM),
            ParsedStreamEvent(type=StreamEventType.ASSISTANT, text="world!"),
            ParsedStreamEvent(type=StreamEventType.RESULT, session_id="s1"),
        ]
        buffer = fold_events(events)

        assert buffer.content == "Hello world!"
        assert buffer.is_complete is True
        assert buffer.session_id == "s1"
        assert buffer.last_event == events[-1]

    def test_noise_does_not_change_content(self):
        events = [
            ParsedStreamEvent(type=StreamEventType.ASSISTANT, text="a"),
            ParsedStreamEvent(type=StreamEventType.USER),
            ParsedStreamEvent(type=StreamEventType.UNKNOWN),
            ParsedStreamEvent(type=StreamEventType.ASSISTANT, text=None),
            ParsedStreamEvent(type=StreamEventType.ASSISTANT, text="b"),
        ]
        buffer = fold_events(events)
        assert buffer.content == "ab"
        assert buffer.is_complete is False
        assert buffer.session_id is None

    def test_result_text_is_not_appended(self):
        events = [
            ParsedStreamEvent(type=StreamEventType.ASSISTANT, text="answer"),
            ParsedStreamEvent(type=StreamEventType.RESULT, text="answer", session_id="s"),
        ]
        assert fold_events(events).content == "answer"

    def test_result_without_token_keeps_previous(self):
        initial = StreamBuffer(content="x", session_id="old")
        buffer = update_buffer(initial, ParsedStreamEvent(type=StreamEventType.RESULT))
        assert buffer.session_id == "old"
        assert buffer.is_complete is True

    def test_update_does_not_mutate(self):
        initial = StreamBuffer()
        update_buffer(initial, ParsedStreamEvent(type=StreamEventType.ASSISTANT, text="x"))
        assert initial.content == ""

    def test_replay_from_lines(self):
        lines = [
            '{"type":"system","subtype":"init","session_id":"ignored"}',
            assistant_line("Hello "),
            "not json",
            assistant_line("world!"),
            result_line("s1"),
        ]
        events = [e for e in (parse_stream_line(line) for line in lines) if e is not None]

        first = fold_events(events)
        second = fold_events(events)

        assert first == second
        assert first.content == "Hello world!"
        assert first.session_id == "s1"
