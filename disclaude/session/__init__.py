"""Volatile conversation session state."""

from disclaude.session.continuity import SessionContinuity
from disclaude.session.models import ConversationSession, SessionState
from disclaude.session.store import SessionStore

__all__ = [
    "ConversationSession",
    "SessionContinuity",
    "SessionState",
    "SessionStore",
]
