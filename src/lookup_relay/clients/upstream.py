"""
Discord REST client for single-user lookups.

Pipeline
========
1. ``GET {api_base}/users/{id}`` with the bot token.
2. Classify the HTTP outcome:
    a. ``404`` -> :class:`NotFound`
    b. any other non-2xx status -> :class:`TransientError`
    c. a 2xx whose content type is not JSON (Cloudflare and gateway error
       pages arrive as HTML with a 200) -> :class:`TransientError`
    d. otherwise -> :class:`Success` carrying a validated :class:`RawProfile`
3. Transport failures and timeouts are :class:`TransientError` too.

NOTE: The client never retries; that decision belongs to the cache manager.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Union

import aiohttp

from ..profiles.model import RawProfile

logger = logging.getLogger(__name__)

JSON_CONTENT_TYPE = "application/json"
USER_AGENT = "DiscordBot (https://github.com/lookup-relay/lookup-relay, 0.1.0)"


@dataclass(slots=True, frozen=True)
class Success:
    raw: RawProfile


@dataclass(slots=True, frozen=True)
class NotFound:
    pass


@dataclass(slots=True, frozen=True)
class TransientError:
    detail: str


FetchResult = Union[Success, NotFound, TransientError]


class UpstreamClient:
    """Fetch raw user objects from the Discord API."""

    def __init__(
        self,
        token: str,
        *,
        api_base: str,
        timeout: float = 10.0,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        self._token = token
        self._api_base = api_base.rstrip("/")
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._session = session
        self._owns_session = session is None

    # ---------- low-level helpers ------------------------------------ #

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self._session

    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Bot {self._token}", "User-Agent": USER_AGENT}

    # ---------- public contract -------------------------------------- #

    async def fetch(self, key: str) -> FetchResult:
        """Issue one GET for ``key`` and classify the response."""

        url = f"{self._api_base}/users/{key}"
        session = self._get_session()
        try:
            async with session.get(url, headers=self._headers(), timeout=self._timeout) as resp:
                if resp.status == 404:
                    return NotFound()
                if not 200 <= resp.status < 300:
                    return TransientError(f"upstream status {resp.status}")
                if resp.content_type != JSON_CONTENT_TYPE:
                    return TransientError(f"unexpected content type {resp.content_type!r}")
                payload = await resp.json()
        except asyncio.TimeoutError:
            return TransientError("upstream timed out")
        except aiohttp.ClientError as exc:
            return TransientError(f"transport error: {exc.__class__.__name__}")
        except ValueError:
            return TransientError("malformed JSON body")

        if not isinstance(payload, dict):
            return TransientError("JSON body is not an object")

        logger.debug("Fetched user %s from upstream", key)
        return Success(RawProfile.from_payload(payload))

    async def close(self) -> None:
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()


__all__ = [
    "UpstreamClient",
    "FetchResult",
    "Success",
    "NotFound",
    "TransientError",
]
