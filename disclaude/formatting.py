"""Text helpers for delivering Claude output as chat messages."""

from __future__ import annotations

import re

DISCORD_MESSAGE_LIMIT = 2000

_ZERO_WIDTH_SPACE = "\u200b"


def split_message(text: str, limit: int = DISCORD_MESSAGE_LIMIT) -> list[str]:
    """Split text into chunks no longer than ``limit``.

    Prefers the last newline within the limit, then the last space, and only
    cuts mid-word when neither exists. Python strings index by code point, so
    a cut never lands inside a character.
    """
    if len(text) <= limit:
        return [text]

    chunks: list[str] = []
    remaining = text

    while remaining:
        if len(remaining) <= limit:
            chunks.append(remaining)
            break

        split_index = remaining.rfind("\n", 0, limit + 1)
        if split_index <= 0:
            split_index = remaining.rfind(" ", 0, limit + 1)
        if split_index <= 0:
            split_index = limit

        chunks.append(remaining[:split_index])
        remaining = remaining[split_index:].lstrip()

    return chunks


def escape_mentions(text: str) -> str:
    """Defuse ``@everyone`` and ``@here`` so relayed output cannot ping a server."""
    return text.replace("@everyone", f"@{_ZERO_WIDTH_SPACE}everyone").replace(
        "@here", f"@{_ZERO_WIDTH_SPACE}here"
    )


def truncate_with_ellipsis(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    return text[: limit - 3] + "..."


def extract_mentioned_prompt(content: str, bot_id: str) -> str | None:
    """Return the text after the bot mention, or None if the bot is not mentioned.

    Handles both ``<@id>`` and nickname ``<@!id>`` mentions.
    """
    match = re.search(rf"<@!?{re.escape(bot_id)}>", content)
    if match is None:
        return None
    return content[match.end() :].strip()


def format_claude_response(text: str, limit: int = DISCORD_MESSAGE_LIMIT) -> list[str]:
    """Escape and split a response for delivery."""
    return split_message(escape_mentions(text), limit)


__all__ = [
    "DISCORD_MESSAGE_LIMIT",
    "escape_mentions",
    "extract_mentioned_prompt",
    "format_claude_response",
    "split_message",
    "truncate_with_ellipsis",
]
