"""In-memory conversation session store.

One entry per conversation ID, kept for the lifetime of the process. Every
operation on a key runs under that key's ``asyncio.Lock`` so read-modify-write
updates are atomic per conversation. There is no cross-key transaction.
Locks are kept after ``delete`` so a caller already queued on a key and one
arriving later still share a lock; the lock map is bounded by the number of
conversations seen.
"""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from typing import TYPE_CHECKING

from disclaude.exceptions import SessionNotFoundError
from disclaude.session.models import ConversationSession, utc_now

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger(__name__)


class SessionStore:
    """Keyed store of :class:`ConversationSession` objects."""

    def __init__(self) -> None:
        self._sessions: dict[str, ConversationSession] = {}
        self._locks: defaultdict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    def _lock(self, channel_id: str) -> asyncio.Lock:
        return self._locks[channel_id]

    async def get(self, channel_id: str) -> ConversationSession | None:
        async with self._lock(channel_id):
            return self._sessions.get(channel_id)

    async def create(
        self,
        channel_id: str,
        project_path: str,
        thread_id: str | None = None,
    ) -> ConversationSession:
        """Create (or replace) the session for a conversation."""
        async with self._lock(channel_id):
            return self._create_locked(channel_id, project_path, thread_id)

    async def get_or_create(
        self,
        channel_id: str,
        project_path: str,
        thread_id: str | None = None,
    ) -> ConversationSession:
        """Return the existing session unchanged, or create a new one."""
        async with self._lock(channel_id):
            existing = self._sessions.get(channel_id)
            if existing is not None:
                return existing
            return self._create_locked(channel_id, project_path, thread_id)

    async def update(
        self,
        channel_id: str,
        transform: Callable[[ConversationSession], ConversationSession],
    ) -> ConversationSession:
        """Apply ``transform`` to a session and stamp ``updated_at``.

        Raises:
            SessionNotFoundError: No session for this conversation
        """
        async with self._lock(channel_id):
            existing = self._sessions.get(channel_id)
            if existing is None:
                raise SessionNotFoundError(channel_id)
            updated = transform(existing).model_copy(update={"updated_at": utc_now()})
            self._sessions[channel_id] = updated
            return updated

    async def upsert(
        self,
        channel_id: str,
        project_path: str,
        transform: Callable[[ConversationSession], ConversationSession],
        thread_id: str | None = None,
    ) -> ConversationSession:
        """Create the session if needed, then apply ``transform``, in one locked step.

        An existing session keeps its project path. Never raises
        :class:`SessionNotFoundError`.
        """
        async with self._lock(channel_id):
            existing = self._sessions.get(channel_id)
            if existing is None:
                existing = self._create_locked(channel_id, project_path, thread_id)
            updated = transform(existing).model_copy(update={"updated_at": utc_now()})
            self._sessions[channel_id] = updated
            return updated

    async def delete(self, channel_id: str) -> None:
        async with self._lock(channel_id):
            self._sessions.pop(channel_id, None)

    async def list(self) -> list[ConversationSession]:
        return list(self._sessions.values())

    def _create_locked(
        self,
        channel_id: str,
        project_path: str,
        thread_id: str | None,
    ) -> ConversationSession:
        session = ConversationSession(
            channel_id=channel_id,
            thread_id=thread_id,
            project_path=project_path,
        )
        self._sessions[channel_id] = session
        logger.debug("Created session for %s at %s", channel_id, project_path)
        return session


__all__ = ["SessionStore"]
