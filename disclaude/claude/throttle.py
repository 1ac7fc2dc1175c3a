"""Rate limiting for partial-result message edits."""

from __future__ import annotations

from dataclasses import dataclass

MIN_UPDATE_INTERVAL_MS = 1000
MAX_UPDATE_INTERVAL_MS = 3000

# Milliseconds of delay per character of content
_MS_PER_CHAR = 3


def calculate_update_interval(content_length: int) -> int:
    """Minimum milliseconds between two updates for content of this length."""
    dynamic_interval = content_length * _MS_PER_CHAR
    return min(MAX_UPDATE_INTERVAL_MS, max(MIN_UPDATE_INTERVAL_MS, dynamic_interval))


def should_update(elapsed_ms: float, content_length: int) -> bool:
    """Return True when enough time has passed since the last update."""
    return elapsed_ms >= calculate_update_interval(content_length)


@dataclass
class UpdateGuard:
    """Caller-side limits layered on top of the interval throttle.

    Caps the number of edits per response and requires the content to have
    grown by ``min_content_change`` characters since the previous edit.
    """

    min_content_change: int = 50
    max_updates: int = 20
    last_length: int = 0
    update_count: int = 0

    def allow(self, content: str) -> bool:
        """Check the content and, when allowed, record it as delivered."""
        if self.update_count >= self.max_updates:
            return False
        if len(content) - self.last_length < self.min_content_change:
            return False
        self.last_length = len(content)
        self.update_count += 1
        return True


__all__ = [
    "MAX_UPDATE_INTERVAL_MS",
    "MIN_UPDATE_INTERVAL_MS",
    "UpdateGuard",
    "calculate_update_interval",
    "should_update",
]
