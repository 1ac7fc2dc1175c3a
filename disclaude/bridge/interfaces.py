"""Interfaces the bridge expects from the chat platform layer."""

from __future__ import annotations

from typing import Any, Protocol


class MessageSink(Protocol):
    """Creates and edits chat messages.

    Content passed in is already escaped and within the platform's length
    limit. ``components`` carries rendered quick-reply buttons.
    """

    async def create_message(
        self,
        channel_id: str,
        content: str,
        *,
        reply_to: str | None = None,
        components: list[dict[str, Any]] | None = None,
    ) -> str:
        """Post a message and return its ID."""
        ...

    async def update_message(
        self,
        channel_id: str,
        message_id: str,
        content: str,
        *,
        components: list[dict[str, Any]] | None = None,
    ) -> None: ...


class ProjectResolver(Protocol):
    """Looks up the project directory assigned to a channel."""

    async def get_project(self, channel_id: str) -> str | None: ...


__all__ = ["MessageSink", "ProjectResolver"]
