"""
In-memory tier of the profile cache.

``MemoryTier`` maps user ids to :class:`CacheEntry` records holding a profile
and its expiry. Lookups are synchronous and never block; expiry is checked
lazily on :meth:`MemoryTier.get`, and expired entries stay in place until the
next :meth:`MemoryTier.set` for the same id replaces them. The cache manager
receives one instance at construction and owns it for the process lifetime.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Protocol

from ..profiles.model import NormalizedProfile


@dataclass(slots=True, frozen=True)
class CacheEntry:
    profile: NormalizedProfile
    expires_at: int

    def remaining_ms(self, now: int) -> int:
        return max(0, self.expires_at - now)


class MemoryCache(Protocol):
    def get(self, key: str) -> CacheEntry | None: ...

    def set(self, key: str, entry: CacheEntry) -> None: ...

    def delete(self, key: str) -> None: ...


class MemoryTier:
    """Process-local map of unexpired profile entries."""

    def __init__(self, clock: Callable[[], int]) -> None:
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def peek(self, key: str) -> CacheEntry | None:
        """Return the entry for ``key`` whether or not it has expired."""

        return self._entries.get(key)

    def get(self, key: str) -> CacheEntry | None:
        """Return the entry for ``key`` if it has not expired."""

        entry = self._entries.get(key)
        if entry is None or entry.expires_at <= self._clock():
            return None
        return entry

    def set(self, key: str, entry: CacheEntry) -> None:
        """Store ``entry`` unless it would replace a newer fetch."""

        current = self._entries.get(key)
        if current is not None and current.profile.fetched_at > entry.profile.fetched_at:
            return
        self._entries[key] = entry

    def delete(self, key: str) -> None:
        """Remove ``key`` if present."""

        self._entries.pop(key, None)

    def reset(self) -> None:
        """Drop every entry."""

        self._entries.clear()


__all__ = ["CacheEntry", "MemoryCache", "MemoryTier"]
