"""Cache manager coordinating the memory tier, the persistent tier and upstream."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Callable, Literal

from ..clients.upstream import FetchResult, NotFound, Success, TransientError, UpstreamClient
from ..presence.aggregator import PresenceAggregator
from ..profiles.decoder import decode_profile, parse_snowflake
from ..profiles.errors import NotFoundError, StoreError, UpstreamError
from ..profiles.model import NormalizedProfile
from ..store.firebase import ProfileStore
from .memory import CacheEntry, MemoryCache, MemoryTier
from .utils import _age_seconds, _profile_summary

logger = logging.getLogger(__name__)

Source = Literal["memory", "store", "upstream", "stale"]


def _now_ms() -> int:
    return int(time.time() * 1000)


@dataclass(slots=True, frozen=True)
class Resolution:
    """A resolved profile plus how it was obtained."""

    profile: NormalizedProfile
    cached: bool
    ttl_remaining: int
    source: Source


class ProfileCache:
    """Read-through, write-back profile cache with stale-on-error fallback.

    Resolution order: unexpired memory entry, fresh persistent record, upstream
    fetch. When upstream fails or reports the user missing, any persistent
    record is served as a stale answer before an error is raised. Concurrent
    misses for the same key share one in-flight resolution.
    """

    def __init__(
        self,
        upstream: UpstreamClient,
        store: ProfileStore,
        presence: PresenceAggregator,
        *,
        ttl_seconds: int,
        stale_ttl_seconds: int,
        upstream_timeout: float | None = None,
        memory: MemoryCache | None = None,
        clock: Callable[[], int] = _now_ms,
    ) -> None:
        self._upstream = upstream
        self._store = store
        self._presence = presence
        self._ttl_ms = ttl_seconds * 1000
        self._stale_ms = stale_ttl_seconds * 1000
        self._upstream_timeout = upstream_timeout
        self._clock = clock
        self._memory = memory if memory is not None else MemoryTier(clock)
        self._inflight: dict[tuple[str, bool], asyncio.Future[Resolution]] = {}

    # ------------------------------------------------------------------ #
    # READ path
    # ------------------------------------------------------------------ #

    async def resolve(self, key: str, force_refresh: bool = False) -> Resolution:
        """Return the profile for ``key``.

        :raises MalformedIdentifier: ``key`` is not a user id.
        :raises NotFoundError: upstream has no such user and nothing is cached.
        :raises UpstreamError: upstream failed and nothing is cached.
        """
        parse_snowflake(key)

        if not force_refresh:
            entry = self._memory.get(key)
            if entry is not None:
                logger.debug("Memory hit for user %s", key)
                # Presence is live data; refresh it from the local member cache.
                return Resolution(
                    profile=entry.profile.with_presence(self._presence.snapshot(key)),
                    cached=True,
                    ttl_remaining=entry.remaining_ms(self._clock()) // 1000,
                    source="memory",
                )

        flight_key = (key, force_refresh)
        task = self._inflight.get(flight_key)
        if task is None:
            task = asyncio.ensure_future(self._resolve_miss(key, force_refresh))
            self._inflight[flight_key] = task

            def _done(finished: asyncio.Future[Resolution]) -> None:
                if self._inflight.get(flight_key) is finished:
                    del self._inflight[flight_key]
                if not finished.cancelled():
                    # Mark the error retrieved even if every waiter went away.
                    finished.exception()

            task.add_done_callback(_done)
        else:
            logger.debug("Joining in-flight resolution for user %s", key)

        # A cancelled waiter must not cancel the work other waiters share.
        return await asyncio.shield(task)

    async def _resolve_miss(self, key: str, force_refresh: bool) -> Resolution:
        record = await self._read_store(key)
        now = self._clock()

        if record is not None and not force_refresh:
            age = now - record.fetched_at
            if age <= self._ttl_ms:
                profile = record.with_presence(self._presence.snapshot(key))
                entry = CacheEntry(profile, record.fetched_at + self._ttl_ms)
                self._memory.set(key, entry)
                logger.info(
                    "Store hit for user %s (age %ss) | %s",
                    key,
                    _age_seconds(now, record.fetched_at),
                    _profile_summary(profile),
                )
                return Resolution(
                    profile=profile,
                    cached=True,
                    ttl_remaining=entry.remaining_ms(now) // 1000,
                    source="store",
                )

        outcome = await self._fetch(key)
        if not isinstance(outcome, Success):
            return self._fallback(key, record, outcome)

        fetched_at = self._clock()
        profile = decode_profile(
            outcome.raw,
            key,
            presence=self._presence.snapshot(key),
            fetched_at=fetched_at,
        )
        await self._write_back(key, profile, record)

        self._memory.set(key, CacheEntry(profile, fetched_at + self._ttl_ms))
        logger.info(
            "Fetched user %s from upstream%s | %s",
            key,
            " (forced)" if force_refresh else "",
            _profile_summary(profile),
        )
        return Resolution(
            profile=profile,
            cached=False,
            ttl_remaining=self._ttl_ms // 1000,
            source="upstream",
        )

    # ------------------------------------------------------------------ #
    # I/O helpers
    # ------------------------------------------------------------------ #

    async def _read_store(self, key: str) -> NormalizedProfile | None:
        try:
            return await self._store.get(key)
        except StoreError as exc:
            logger.warning("Persistent read for user %s failed: %s", key, exc)
            return None

    async def _fetch(self, key: str) -> FetchResult:
        if self._upstream_timeout is None:
            return await self._upstream.fetch(key)
        try:
            return await asyncio.wait_for(self._upstream.fetch(key), self._upstream_timeout)
        except asyncio.TimeoutError:
            return TransientError(f"no upstream answer within {self._upstream_timeout}s")

    async def _write_back(
        self, key: str, profile: NormalizedProfile, record: NormalizedProfile | None
    ) -> None:
        if record is not None and record.content() == profile.content():
            logger.debug("Profile for user %s unchanged; skipping store write", key)
            return
        try:
            await self._store.put(key, profile)
        except StoreError as exc:
            logger.warning("Persistent write for user %s failed: %s", key, exc)

    # ------------------------------------------------------------------ #
    # FALLBACK
    # ------------------------------------------------------------------ #

    def _fallback(
        self,
        key: str,
        record: NormalizedProfile | None,
        outcome: FetchResult,
    ) -> Resolution:
        if record is None:
            if isinstance(outcome, NotFound):
                logger.info("User %s not found upstream", key)
                raise NotFoundError(key)
            logger.warning("Upstream failed for user %s with no cached copy: %s", key, outcome.detail)
            raise UpstreamError(outcome.detail)

        # An expired memory entry can be newer than the record if a write failed.
        # Only tiers that expose ``peek`` keep expired entries around.
        peek = getattr(self._memory, "peek", None)
        current = peek(key) if peek is not None else None
        if current is not None and current.profile.fetched_at > record.fetched_at:
            record = current.profile

        now = self._clock()
        reason = "not found" if isinstance(outcome, NotFound) else outcome.detail
        logger.warning(
            "Serving stale profile for user %s (age %ss) after upstream %s",
            key,
            _age_seconds(now, record.fetched_at),
            reason,
        )
        profile = record.with_presence(self._presence.snapshot(key))
        self._memory.set(key, CacheEntry(profile, now + self._stale_ms))
        return Resolution(
            profile=profile,
            cached=True,
            ttl_remaining=self._stale_ms // 1000,
            source="stale",
        )


__all__ = ["ProfileCache", "Resolution"]
