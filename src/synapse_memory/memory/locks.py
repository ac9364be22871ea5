"""Per-key asyncio locks.

Writes to one session are serialized; writes to different sessions run
concurrently. A task already holding a key may take it again (nested
save_thought inside save_with_relations, for instance). Entries are
dropped once no task holds or waits on them, so the table stays bounded
by the number of sessions being written right now.

Example:
    locks = KeyedLock()
    async with locks.hold(session_id):
        await store.save_thought(session_id, thought)
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
import asyncio


@dataclass
class _Entry:
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    owner: asyncio.Task | None = None
    depth: int = 0
    users: int = 0  # Holders plus waiters


class KeyedLock:
    """Reentrant-per-task lock table keyed by string."""

    def __init__(self):
        self._entries: dict[str, _Entry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def locked(self, key: str) -> bool:
        entry = self._entries.get(key)
        return entry is not None and entry.lock.locked()

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        task = asyncio.current_task()
        entry = self._entries.get(key)

        if entry is not None and task is not None and entry.owner is task:
            entry.depth += 1
            try:
                yield
            finally:
                entry.depth -= 1
            return

        if entry is None:
            entry = self._entries[key] = _Entry()
        entry.users += 1
        try:
            async with entry.lock:
                entry.owner = task
                entry.depth = 1
                try:
                    yield
                finally:
                    entry.owner = None
                    entry.depth = 0
        finally:
            entry.users -= 1
            if entry.users == 0 and self._entries.get(key) is entry:
                del self._entries[key]


__all__ = ["KeyedLock"]
