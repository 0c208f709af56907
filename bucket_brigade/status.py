from __future__ import annotations
"""Bounded, human-readable status log shared with the presentation layer."""
from collections import deque
import logging
from typing import Iterator

STATUS_LIMIT = 20

LOGGER = logging.getLogger(__name__)


class StatusLog:
    """Keeps the most recent status lines, evicting the oldest first."""

    def __init__(self, limit: int = STATUS_LIMIT):
        self._entries: deque[str] = deque(maxlen=max(int(limit), 1))

    @property
    def limit(self) -> int:
        return self._entries.maxlen or STATUS_LIMIT

    def push(self, message: str) -> None:
        LOGGER.info(message)
        self._entries.append(message)

    def entries(self) -> list[str]:
        return list(self._entries)

    @property
    def latest(self) -> str | None:
        return self._entries[-1] if self._entries else None

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._entries))
