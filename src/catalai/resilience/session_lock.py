"""Per-session serialization of interview rounds.

Two ``clarify`` calls for the same session must not run concurrently,
otherwise both start from the same InterviewState snapshot and one
update is lost. SessionLocks hands out one asyncio.Lock per key and
forgets it once nobody holds or waits on it.

Single-process only; each worker has its own instance.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field


@dataclass
class _Entry:
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    users: int = 0


class SessionLocks:
    """Keyed async locks.

    Usage::

        locks = SessionLocks()
        async with locks.hold("session-1"):
            ...
    """

    def __init__(self) -> None:
        self._entries: dict[str, _Entry] = {}
        self._guard = asyncio.Lock()

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        async with self._guard:
            entry = self._entries.get(key)
            if entry is None:
                entry = _Entry()
                self._entries[key] = entry
            entry.users += 1
        try:
            async with entry.lock:
                yield
        finally:
            async with self._guard:
                entry.users -= 1
                if entry.users == 0:
                    self._entries.pop(key, None)

    @property
    def active_keys(self) -> list[str]:
        """Keys currently held or awaited."""
        return list(self._entries.keys())
