"""Shared test fixtures for Disclaude.

Provides settings isolation, session stores and fake collaborators used
across unit tests. No test spawns the real Claude CLI.
"""

from collections.abc import Generator
from typing import Any
from unittest.mock import AsyncMock

import pytest

from disclaude.session.continuity import SessionContinuity
from disclaude.session.store import SessionStore
from disclaude.settings import Settings, get_settings

# =============================================================================
# SETTINGS
# =============================================================================


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Keep the developer's environment out of get_settings()."""
    for var in (
        "CLAUDE_ALLOWED_TOOLS",
        "CLAUDE_EXECUTABLE",
        "CLAUDE_TIMEOUT_SECONDS",
        "CLAUDE_STREAM_TIMEOUT_SECONDS",
        "MESSAGE_LIMIT",
    ):
        monkeypatch.delenv(var, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def test_settings() -> Settings:
    """Provide test settings with safe defaults."""
    return Settings(
        _env_file=None,
        environment="testing",
        claude_executable="claude",
        claude_allowed_tools=[],
    )


# =============================================================================
# SESSIONS
# =============================================================================


@pytest.fixture
def session_store() -> SessionStore:
    return SessionStore()


@pytest.fixture
def continuity(session_store: SessionStore) -> SessionContinuity:
    return SessionContinuity(session_store)


# =============================================================================
# COLLABORATORS
# =============================================================================


class RecordingSink:
    """MessageSink that records every call."""

    def __init__(self) -> None:
        self.created: list[dict[str, Any]] = []
        self.updated: list[dict[str, Any]] = []
        self._next_id = 0

    async def create_message(
        self,
        channel_id: str,
        content: str,
        *,
        reply_to: str | None = None,
        components: list[dict[str, Any]] | None = None,
    ) -> str:
        self._next_id += 1
        message_id = f"msg-{self._next_id}"
        self.created.append(
            {
                "channel_id": channel_id,
                "message_id": message_id,
                "content": content,
                "reply_to": reply_to,
                "components": components,
            }
        )
        return message_id

    async def update_message(
        self,
        channel_id: str,
        message_id: str,
        content: str,
        *,
        components: list[dict[str, Any]] | None = None,
    ) -> None:
        self.updated.append(
            {
                "channel_id": channel_id,
                "message_id": message_id,
                "content": content,
                "components": components,
            }
        )


@pytest.fixture
def recording_sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def project_resolver() -> AsyncMock:
    """ProjectResolver that maps every channel to /work/project."""
    resolver = AsyncMock()
    resolver.get_project = AsyncMock(return_value="/work/project")
    return resolver
