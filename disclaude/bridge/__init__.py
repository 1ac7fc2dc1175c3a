"""Conversation orchestration between a chat platform and Claude."""

from disclaude.bridge.dispatcher import TaskDispatcher
from disclaude.bridge.handler import ActionReply, ConversationHandler
from disclaude.bridge.interfaces import MessageSink, ProjectResolver

__all__ = [
    "ActionReply",
    "ConversationHandler",
    "MessageSink",
    "ProjectResolver",
    "TaskDispatcher",
]
