"""Claude CLI bridge: argument building, one-shot and streaming execution."""

from disclaude.claude.process import ClaudeProcess, parse_response
from disclaude.claude.request import ExecutionRequest, build_claude_args
from disclaude.claude.schema import ClaudeResponse, ClaudeUsage, ExecutionResult
from disclaude.claude.stream_parser import (
    ParsedStreamEvent,
    StreamBuffer,
    StreamEventType,
    fold_events,
    parse_stream_line,
    update_buffer,
)
from disclaude.claude.streaming import StreamingBridge, StreamResult, StreamUpdateCallback
from disclaude.claude.throttle import UpdateGuard, calculate_update_interval

__all__ = [
    "ClaudeProcess",
    "ClaudeResponse",
    "ClaudeUsage",
    "ExecutionRequest",
    "ExecutionResult",
    "ParsedStreamEvent",
    "StreamBuffer",
    "StreamEventType",
    "StreamResult",
    "StreamUpdateCallback",
    "StreamingBridge",
    "UpdateGuard",
    "build_claude_args",
    "calculate_update_interval",
    "fold_events",
    "parse_response",
    "parse_stream_line",
    "update_buffer",
]
