"""Bounded, newest-first message feeds (activity log, alerts)."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from datetime import datetime

ACTIVITY_CAPACITY = 10
ALERTS_CAPACITY = 5


@dataclass(frozen=True)
class FeedEntry:
    message: str
    level: str = "info"
    time: datetime = field(default_factory=datetime.now)


class BoundedFeed:
    """Keeps the *capacity* most recent entries; the oldest is evicted first."""

    def __init__(self, capacity: int) -> None:
        if capacity < 1:
            raise ValueError("capacity must be >= 1")
        self.capacity = capacity
        self._entries: deque[FeedEntry] = deque(maxlen=capacity)

    def add(self, message: str, level: str = "info") -> FeedEntry:
        entry = FeedEntry(message=message, level=level)
        self._entries.appendleft(entry)
        return entry

    def entries(self) -> list[FeedEntry]:
        """Most recent first."""
        return list(self._entries)

    def messages(self) -> list[str]:
        return [e.message for e in self._entries]

    def __len__(self) -> int:
        return len(self._entries)
