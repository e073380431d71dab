"""
Two-tier profile cache package.

Modules
=======

``manager``
    Defines :class:`~lookup_relay.cache.manager.ProfileCache`, the coordinator
    that decides between the memory tier, the persistent tier and an upstream
    fetch, and applies the stale-on-error fallback.
``memory``
    Provides :class:`~lookup_relay.cache.memory.MemoryTier`, the process-local
    map of profile entries with lazy expiry.
``utils``
    Internal logging helpers used by :mod:`manager` to summarize profiles.
"""

from .manager import ProfileCache, Resolution
from .memory import CacheEntry, MemoryTier

__all__ = ["ProfileCache", "Resolution", "CacheEntry", "MemoryTier"]
