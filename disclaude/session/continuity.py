"""Resume-token bookkeeping between chat conversations and Claude sessions."""

from __future__ import annotations

import logging

from disclaude.session.models import SessionState
from disclaude.session.store import SessionStore

logger = logging.getLogger(__name__)


class SessionContinuity:
    """Reads and writes the Claude resume token for each conversation.

    Usage:
        continuity = SessionContinuity(store)
        token = await continuity.get_claude_session_id(channel_id)
        response = await claude.execute(ExecutionRequest(prompt=p, session_id=token))
        await continuity.store_claude_session_id(channel_id, path, response.session_id)
    """

    def __init__(self, store: SessionStore) -> None:
        self.store = store

    async def get_claude_session_id(self, channel_id: str) -> str | None:
        """Resume token for ``--resume``, or None to start fresh."""
        session = await self.store.get(channel_id)
        if session is None:
            return None
        return session.claude_session_id or None

    async def store_claude_session_id(
        self,
        channel_id: str,
        project_path: str,
        claude_session_id: str,
    ) -> None:
        """Record the token from a successful execution and return to idle."""
        await self.store.upsert(
            channel_id,
            project_path,
            lambda s: s.model_copy(
                update={"claude_session_id": claude_session_id, "state": SessionState.IDLE}
            ),
        )

    async def update_session_state(self, channel_id: str, state: SessionState) -> None:
        """Move a session to ``state``.

        Raises:
            SessionNotFoundError: No session for this conversation
        """
        await self.store.update(channel_id, lambda s: s.model_copy(update={"state": state}))

    async def clear_session(self, channel_id: str) -> None:
        """Forget the resume token so the next prompt starts a new conversation.

        The project path and timestamps are kept. Does nothing when there is
        no session or it is already clear.
        """
        session = await self.store.get(channel_id)
        if session is None:
            return
        if session.claude_session_id is None and session.state is SessionState.IDLE:
            return
        await self.store.update(
            channel_id,
            lambda s: s.model_copy(
                update={"claude_session_id": None, "state": SessionState.IDLE}
            ),
        )
        logger.info("Cleared Claude session for %s", channel_id)


__all__ = ["SessionContinuity"]
