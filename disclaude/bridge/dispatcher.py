"""Background task per inbound trigger, with a failure boundary.

Each chat message or button press runs in its own task so a slow Claude run
never blocks other conversations. A failing task is logged and dropped; it
never propagates into the event loop that spawned it.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Coroutine
from typing import Any

logger = logging.getLogger(__name__)


class TaskDispatcher:
    """Owns the tasks spawned for inbound triggers.

    Usage::

        dispatcher = TaskDispatcher()
        dispatcher.spawn(handler.handle_prompt(channel_id, prompt), name=f"prompt-{channel_id}")
        # ... on shutdown ...
        await dispatcher.cancel_all()
    """

    def __init__(self) -> None:
        # Strong references keep running tasks from being garbage collected
        self._tasks: set[asyncio.Task[Any]] = set()
        self._failures = 0

    def spawn(self, coro: Coroutine[Any, Any, Any], *, name: str | None = None) -> asyncio.Task[Any]:
        task = asyncio.create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        return task

    def _on_done(self, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            self._failures += 1
            logger.error("Task %s failed", task.get_name(), exc_info=exc)

    async def drain(self) -> None:
        """Wait for every running task to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def cancel_all(self) -> None:
        """Cancel running tasks and wait for them to unwind."""
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    @property
    def stats(self) -> dict[str, int]:
        return {
            "running": len(self._tasks),
            "failed": self._failures,
        }


__all__ = ["TaskDispatcher"]
