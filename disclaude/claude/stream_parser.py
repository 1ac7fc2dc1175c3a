"""Line parser and accumulator for ``--output-format stream-json``.

Each stdout line is one JSON object. ``parse_stream_line`` turns a line into
a :class:`ParsedStreamEvent` (or ``None`` for blank and non-protocol lines)
and ``update_buffer`` folds events into a :class:`StreamBuffer`. Both are
pure, so replaying the same lines always rebuilds the same content.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, replace
from enum import StrEnum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Iterable

logger = logging.getLogger(__name__)


class StreamEventType(StrEnum):
    """Event kinds found on the stream."""

    ASSISTANT = "assistant"
    SYSTEM = "system"
    USER = "user"
    RESULT = "result"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class ParsedStreamEvent:
    """One parsed stream line.

    Attributes:
        type: Event kind.
        text: Assistant text, or the final result text for ``result`` events.
        session_id: Resume token, only ever set on ``result`` events.
    """

    type: StreamEventType
    text: str | None = None
    session_id: str | None = None


@dataclass(frozen=True)
class StreamBuffer:
    """Accumulated state of one streaming run.

    Attributes:
        content: Concatenated assistant text, in arrival order.
        session_id: Resume token from the result event, if one arrived.
        is_complete: Set once a result event is seen.
        last_event: Most recent event, for diagnostics.
    """

    content: str = ""
    session_id: str | None = None
    is_complete: bool = False
    last_event: ParsedStreamEvent | None = None


def _extract_assistant_text(message: Any) -> str | None:
    """Concatenate the text blocks of an assistant message payload."""
    if not isinstance(message, dict):
        return None
    content = message.get("content")
    if not isinstance(content, list):
        return None

    texts = [
        block["text"]
        for block in content
        if isinstance(block, dict)
        and block.get("type") == "text"
        and isinstance(block.get("text"), str)
    ]
    return "".join(texts) if texts else None


def parse_stream_line(line: str) -> ParsedStreamEvent | None:
    """Parse one NDJSON line.

    Blank lines and lines that are not JSON objects return ``None``; the CLI
    can interleave plain diagnostic output with protocol lines.
    """
    trimmed = line.strip()
    if not trimmed:
        return None

    try:
        parsed = json.loads(trimmed)
    except json.JSONDecodeError:
        logger.debug("Skipping non-JSON stream line: %s", trimmed[:200])
        return None
    if not isinstance(parsed, dict):
        logger.debug("Skipping non-object stream line: %s", trimmed[:200])
        return None

    event_type = parsed.get("type")

    if event_type == StreamEventType.ASSISTANT:
        return ParsedStreamEvent(
            type=StreamEventType.ASSISTANT,
            text=_extract_assistant_text(parsed.get("message")),
        )

    if event_type == StreamEventType.RESULT:
        result = parsed.get("result")
        session_id = parsed.get("session_id")
        return ParsedStreamEvent(
            type=StreamEventType.RESULT,
            text=result if isinstance(result, str) else None,
            session_id=session_id if isinstance(session_id, str) else None,
        )

    if event_type in (StreamEventType.SYSTEM, StreamEventType.USER):
        return ParsedStreamEvent(type=StreamEventType(event_type))

    return ParsedStreamEvent(type=StreamEventType.UNKNOWN)


def update_buffer(buffer: StreamBuffer, event: ParsedStreamEvent) -> StreamBuffer:
    """Fold one event into the buffer and return the new buffer."""
    if event.type is StreamEventType.ASSISTANT:
        if event.text:
            return replace(buffer, content=buffer.content + event.text, last_event=event)
        return replace(buffer, last_event=event)

    if event.type is StreamEventType.RESULT:
        return replace(
            buffer,
            is_complete=True,
            session_id=event.session_id or buffer.session_id,
            last_event=event,
        )

    return replace(buffer, last_event=event)


def fold_events(
    events: Iterable[ParsedStreamEvent],
    initial: StreamBuffer | None = None,
) -> StreamBuffer:
    """Fold a sequence of events, starting from an empty buffer."""
    buffer = initial or StreamBuffer()
    for event in events:
        buffer = update_buffer(buffer, event)
    return buffer


__all__ = [
    "ParsedStreamEvent",
    "StreamBuffer",
    "StreamEventType",
    "fold_events",
    "parse_stream_line",
    "update_buffer",
]
