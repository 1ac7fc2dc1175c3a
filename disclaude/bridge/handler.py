"""Conversation handler: chat prompts and button presses in, Claude replies out.

Drives one conversation turn end to end:

1. Resolve the channel's project directory.
2. Look up the stored resume token and mark the session as awaiting a response.
3. Run Claude (streaming for prompts, one-shot for button presses).
4. Store the new resume token, deliver the reply in chunks and attach
   quick-reply buttons when the reply ends with a question.

Turns on the same channel are serialized; different channels run concurrently.
Failures never leave a partially written token behind. After a failure or a
cancellation the session's previous lifecycle state is restored, and failures
are shown to the user as text.
"""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from disclaude.claude.request import ExecutionRequest
from disclaude.claude.throttle import UpdateGuard
from disclaude.exceptions import DisclaudeError, SessionNotFoundError, describe_error
from disclaude.formatting import format_claude_response, truncate_with_ellipsis
from disclaude.questions import (
    QuestionClassification,
    build_action_components,
    classify_question,
    decode_action_id,
)
from disclaude.session.models import SessionState
from disclaude.settings import Settings, get_settings

if TYPE_CHECKING:
    from disclaude.bridge.interfaces import MessageSink, ProjectResolver
    from disclaude.claude.process import ClaudeProcess
    from disclaude.claude.streaming import StreamingBridge, StreamResult
    from disclaude.session.continuity import SessionContinuity

logger = logging.getLogger(__name__)

NO_PROJECT_MESSAGE = (
    "No project is assigned to this channel.\n\n"
    "Use `/project create <name>` to create a new project, "
    "or `/project link <path>` to link an existing directory."
)
PROCESSING_MESSAGE = "Processing..."
EMPTY_STREAM_MESSAGE = "Claude completed processing."
EMPTY_ACTION_MESSAGE = "Claude processed your response."
INVALID_ACTION_MESSAGE = "Invalid button interaction."


@dataclass(frozen=True)
class ActionReply:
    """What to show after a button press.

    Attributes:
        content: Reply text, within the message limit.
        overflow: Further chunks when the reply exceeds the limit, in order.
        classification: Follow-up question, if the reply asks one.
        components: Rendered buttons for the follow-up (empty clears them).
            They belong on the last message sent, which is the last overflow
            chunk when there is one.
    """

    content: str
    overflow: tuple[str, ...] = ()
    classification: QuestionClassification | None = None
    components: list[dict[str, Any]] = field(default_factory=list)


class ConversationHandler:
    """Runs conversation turns against Claude.

    Usage:
        handler = ConversationHandler(
            streaming=StreamingBridge(),
            claude=ClaudeProcess(),
            continuity=SessionContinuity(SessionStore()),
            projects=project_registry,
            sink=discord_messages,
        )
        dispatcher.spawn(handler.handle_prompt(channel_id, prompt, reply_to=message_id))
    """

    def __init__(
        self,
        *,
        streaming: StreamingBridge,
        claude: ClaudeProcess,
        continuity: SessionContinuity,
        projects: ProjectResolver,
        sink: MessageSink,
        settings: Settings | None = None,
    ) -> None:
        self.streaming = streaming
        self.claude = claude
        self.continuity = continuity
        self.projects = projects
        self.sink = sink
        self.settings = settings or get_settings()
        # One lock per conversation seen; bounded by the number of channels
        self._locks: defaultdict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    @property
    def message_limit(self) -> int:
        return self.settings.message_limit

    async def handle_prompt(
        self,
        channel_id: str,
        prompt: str,
        *,
        reply_to: str | None = None,
    ) -> StreamResult | None:
        """Stream Claude's answer to a prompt into the channel.

        Returns:
            The stream result, or None when no project is assigned or the run failed
        """
        project_path = await self.projects.get_project(channel_id)
        if project_path is None:
            await self.sink.create_message(channel_id, NO_PROJECT_MESSAGE, reply_to=reply_to)
            return None

        async with self._locks[channel_id]:
            return await self._run_prompt(channel_id, prompt, project_path, reply_to)

    async def _run_prompt(
        self,
        channel_id: str,
        prompt: str,
        project_path: str,
        reply_to: str | None,
    ) -> StreamResult | None:
        message_id = await self.sink.create_message(
            channel_id, PROCESSING_MESSAGE, reply_to=reply_to
        )
        session_id = await self.continuity.get_claude_session_id(channel_id)
        previous_state = await self._mark_awaiting_response(channel_id)
        settled = False

        guard = UpdateGuard(
            min_content_change=self.settings.stream_min_content_change,
            max_updates=self.settings.stream_max_updates,
        )

        async def on_update(content: str) -> None:
            if not guard.allow(content):
                return
            preview = format_claude_response(content, self.message_limit)[0]
            await self.sink.update_message(
                channel_id,
                message_id,
                truncate_with_ellipsis(preview, self.message_limit),
            )

        request = ExecutionRequest(
            prompt=prompt,
            session_id=session_id,
            working_directory=project_path,
        )

        try:
            try:
                result = await self.streaming.execute_streaming(request, on_update)
            except DisclaudeError as e:
                logger.warning(
                    "Streaming run for %s failed: %s [%s]", channel_id, e, e.correlation_id
                )
                await self.sink.update_message(channel_id, message_id, describe_error(e))
                return None

            if result.session_id:
                await self.continuity.store_claude_session_id(
                    channel_id, project_path, result.session_id
                )
            else:
                await self._restore_state(channel_id, previous_state)
            settled = True

            classification = classify_question(result.content)
            await self._deliver(channel_id, message_id, result.content, classification)
            if classification is not None:
                await self._mark_awaiting_input(channel_id)
            return result
        finally:
            # Failures and cancellation leave the session as it was before the turn
            if not settled:
                await self._restore_state(channel_id, previous_state)

    async def handle_action(self, action_id: str) -> ActionReply:
        """Answer a quick-reply button press by sending its value to Claude."""
        parsed = decode_action_id(action_id)
        if parsed is None:
            return ActionReply(content=INVALID_ACTION_MESSAGE)

        channel_id = parsed.channel_id
        project_path = await self.projects.get_project(channel_id)
        if project_path is None:
            return ActionReply(content=NO_PROJECT_MESSAGE)

        logger.info("Button clicked: %r for channel %s", parsed.value, channel_id)

        async with self._locks[channel_id]:
            session_id = await self.continuity.get_claude_session_id(channel_id)
            previous_state = await self._mark_awaiting_response(channel_id)
            settled = False
            request = ExecutionRequest(
                prompt=parsed.value,
                session_id=session_id,
                working_directory=project_path,
            )

            try:
                try:
                    response = await self.claude.execute(request)
                except DisclaudeError as e:
                    logger.warning("Claude error for %s: %s [%s]", channel_id, e, e.correlation_id)
                    return ActionReply(content=describe_error(e))

                await self.continuity.store_claude_session_id(
                    channel_id, project_path, response.session_id
                )
                settled = True
            finally:
                if not settled:
                    await self._restore_state(channel_id, previous_state)

            chunks = format_claude_response(response.result, self.message_limit)
            content = chunks[0].strip() or EMPTY_ACTION_MESSAGE
            overflow = tuple(chunks[1:])
            classification = classify_question(response.result)
            if classification is None:
                return ActionReply(content=content, overflow=overflow)

            await self._mark_awaiting_input(channel_id)
            return ActionReply(
                content=content,
                overflow=overflow,
                classification=classification,
                components=build_action_components(channel_id, classification.actions),
            )

    async def _deliver(
        self,
        channel_id: str,
        message_id: str,
        content: str,
        classification: QuestionClassification | None,
    ) -> None:
        """Replace the progress message with the reply, overflowing into new messages.

        Buttons go on the last chunk.
        """
        chunks = format_claude_response(content, self.message_limit)
        chunks[0] = chunks[0].strip() or EMPTY_STREAM_MESSAGE
        components = (
            build_action_components(channel_id, classification.actions)
            if classification is not None
            else None
        )
        last = len(chunks) - 1
        logger.info("Delivering %d chunk(s) to %s", len(chunks), channel_id)

        await self.sink.update_message(
            channel_id,
            message_id,
            chunks[0],
            components=components if last == 0 else None,
        )
        for i, chunk in enumerate(chunks[1:], start=1):
            await self.sink.create_message(
                channel_id,
                chunk,
                components=components if i == last else None,
            )

    async def _mark_awaiting_response(self, channel_id: str) -> SessionState | None:
        """Flag the session as busy and return its previous state (None if no session)."""
        session = await self.continuity.store.get(channel_id)
        if session is None:
            return None
        try:
            await self.continuity.update_session_state(channel_id, SessionState.AWAITING_RESPONSE)
        except SessionNotFoundError:
            return None
        return session.state

    async def _mark_awaiting_input(self, channel_id: str) -> None:
        try:
            await self.continuity.update_session_state(channel_id, SessionState.AWAITING_INPUT)
        except SessionNotFoundError:
            logger.debug("No session to mark awaiting input for %s", channel_id)

    async def _restore_state(self, channel_id: str, state: SessionState | None) -> None:
        if state is None:
            return
        try:
            await self.continuity.update_session_state(channel_id, state)
        except SessionNotFoundError:
            logger.debug("Session for %s disappeared before state restore", channel_id)


__all__ = ["ActionReply", "ConversationHandler"]
