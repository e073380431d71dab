"""
Persistent profile records in a Firebase Realtime Database.

Records live under ``users/<id>`` with the layout::

    {"cached_at": <fetched_at ms>, "data": <NormalizedProfile.to_dict() minus presence>}

The database is addressed over its REST API (``<path>.json?auth=<secret>``).
:meth:`FirebaseStore.get` returns ``None`` for absent or unreadable records and
:meth:`FirebaseStore.put` overwrites unconditionally; any transport or HTTP
failure surfaces as :class:`StoreError` so the cache manager can decide how
much it matters.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from typing import Protocol

import aiohttp

from ..profiles.decoder import BADGE_TABLE, decode_badges, decode_creation_time, media_url
from ..profiles.errors import StoreError
from ..profiles.model import Media, NormalizedProfile

logger = logging.getLogger(__name__)


class ProfileStore(Protocol):
    async def get(self, key: str) -> NormalizedProfile | None: ...

    async def put(self, key: str, profile: NormalizedProfile) -> None: ...


def to_record(profile: NormalizedProfile) -> dict:
    return {
        "cached_at": profile.fetched_at,
        "data": profile.to_dict(include_presence=False),
    }


# Legacy records name the HypeSquad houses differently.
_LEGACY_BADGE_NAMES = {
    "house_bravery": "hypesquad_bravery",
    "house_brilliance": "hypesquad_brilliance",
    "house_balance": "hypesquad_balance",
}
_BADGE_BITS = {name: bit for bit, name in BADGE_TABLE}
_LEGACY_KEYS = ("global_name", "public_flags", "created_timestamp", "created_date")


def _is_legacy(data: dict) -> bool:
    return (
        any(name in data for name in _LEGACY_KEYS)
        or isinstance(data.get("avatar"), str)
        or isinstance(data.get("banner"), str)
    )


def _upgrade_legacy(data: dict) -> dict:
    """Map a legacy ``users/<id>`` record onto the :meth:`NormalizedProfile.to_dict` layout.

    Legacy records keep ``global_name``, media as bare URL strings and badges as
    a list of names. Image hashes were never stored, so media come back with
    ``hash=None``.
    """
    upgraded = {key: value for key, value in data.items() if key not in _LEGACY_KEYS}
    if "display_name" not in data:
        upgraded["display_name"] = data.get("global_name")
    for kind in ("avatar", "banner"):
        value = data.get(kind)
        if value is None or isinstance(value, str):
            upgraded[kind] = {"hash": None, "url": value}
    names = data.get("public_flags")
    if "badges" not in data and isinstance(names, list):
        raw = 0
        for name in names:
            if isinstance(name, str):
                raw |= _BADGE_BITS.get(_LEGACY_BADGE_NAMES.get(name, name), 0)
        upgraded["badges"] = {"raw": raw, "decoded": decode_badges(raw)}
    return upgraded


def from_record(record: dict) -> NormalizedProfile:
    """Rebuild a profile from a stored record.

    Fields derived from the id (creation time and the default avatar) are
    recomputed rather than trusted.

    :raises ValueError: when the record does not hold a usable profile.
    """
    data = record.get("data")
    if not isinstance(data, dict):
        raise ValueError("record has no 'data' object")
    if _is_legacy(data):
        data = _upgrade_legacy(data)
    if "fetched_at" not in data and "cached_at" in record:
        # Legacy records only carry ``cached_at``.
        data = {**data, "fetched_at": record["cached_at"]}

    profile = NormalizedProfile.from_dict(data)
    avatar = profile.avatar
    if avatar.url is None:
        avatar = Media(avatar.hash, media_url("avatar", profile.id, avatar.hash))
    return replace(profile, avatar=avatar, created_at=decode_creation_time(profile.id))


class FirebaseStore:
    """Keyed get/put of profile records over the Firebase REST API."""

    def __init__(
        self,
        database_url: str,
        secret: str,
        *,
        timeout: float = 10.0,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        self._base = database_url.rstrip("/")
        self._secret = secret
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._session = session
        self._owns_session = session is None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self._session

    def _url(self, key: str) -> str:
        return f"{self._base}/users/{key}.json"

    async def get(self, key: str) -> NormalizedProfile | None:
        session = self._get_session()
        try:
            async with session.get(
                self._url(key), params={"auth": self._secret}, timeout=self._timeout
            ) as resp:
                if resp.status != 200:
                    raise StoreError(f"store read for {key} returned {resp.status}")
                record = await resp.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as exc:
            raise StoreError(f"store read for {key} failed: {exc.__class__.__name__}") from exc

        if record is None:
            return None
        if not isinstance(record, dict):
            logger.warning("Ignoring non-object store record for user %s", key)
            return None
        try:
            return from_record(record)
        except ValueError as exc:
            logger.warning("Ignoring unreadable store record for user %s: %s", key, exc)
            return None

    async def put(self, key: str, profile: NormalizedProfile) -> None:
        session = self._get_session()
        try:
            async with session.put(
                self._url(key),
                params={"auth": self._secret},
                json=to_record(profile),
                timeout=self._timeout,
            ) as resp:
                if resp.status != 200:
                    raise StoreError(f"store write for {key} returned {resp.status}")
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise StoreError(f"store write for {key} failed: {exc.__class__.__name__}") from exc

    async def close(self) -> None:
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()


__all__ = ["FirebaseStore", "ProfileStore", "to_record", "from_record"]
