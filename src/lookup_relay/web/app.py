"""
HTTP surface for profile lookups.

Routes
======

``GET /v1/user/{id}[?force=true]``
    Resolve a user through the profile cache. Success bodies are
    ``{"success": true, "cached": bool, "cache_ttl_remaining": int, ...profile}``;
    failures are ``{"success": false, "error": "<code>"}`` with the status the
    error class declares.
``GET /healthz``
    Liveness probe; never requires an API key.

When API keys are configured every other route requires one, sent as
``X-API-Key: <key>`` or ``Authorization: Bearer <key>``.
"""

from __future__ import annotations

import hmac
import logging
from typing import Awaitable, Callable, Iterable

from aiohttp import web

from ..cache.manager import ProfileCache
from ..profiles.errors import RelayError

logger = logging.getLogger(__name__)

RESOLVER_KEY = web.AppKey("resolver", ProfileCache)
API_KEYS_KEY = web.AppKey("api_keys", tuple)

_TRUTHY = {"1", "true", "yes", "on"}
_PUBLIC_PATHS = {"/healthz"}

Handler = Callable[[web.Request], Awaitable[web.StreamResponse]]


def _error(code: str, status: int) -> web.Response:
    return web.json_response({"success": False, "error": code}, status=status)


def _presented_key(request: web.Request) -> str | None:
    header = request.headers.get("X-API-Key")
    if header:
        return header.strip()
    auth = request.headers.get("Authorization", "")
    scheme, _, token = auth.partition(" ")
    if scheme.lower() == "bearer" and token.strip():
        return token.strip()
    return None


@web.middleware
async def error_middleware(request: web.Request, handler: Handler) -> web.StreamResponse:
    """Render relay errors as envelopes; never leak exception text."""

    try:
        return await handler(request)
    except RelayError as exc:
        return _error(exc.code, exc.status)
    except web.HTTPException:
        raise
    except Exception:
        logger.exception("Unhandled error serving %s", request.path)
        return _error("internal_error", 500)


@web.middleware
async def api_key_middleware(request: web.Request, handler: Handler) -> web.StreamResponse:
    keys: tuple[str, ...] = request.app[API_KEYS_KEY]
    if not keys or request.path in _PUBLIC_PATHS:
        return await handler(request)

    presented = _presented_key(request)
    if presented is None or not any(
        hmac.compare_digest(presented.encode(), key.encode()) for key in keys
    ):
        return _error("unauthorized", 401)
    return await handler(request)


async def get_user(request: web.Request) -> web.Response:
    key = request.match_info["id"]
    force = request.query.get("force", "").strip().lower() in _TRUTHY

    resolution = await request.app[RESOLVER_KEY].resolve(key, force_refresh=force)
    body = {
        "success": True,
        "cached": resolution.cached,
        "cache_ttl_remaining": resolution.ttl_remaining,
        **resolution.profile.to_dict(),
    }
    return web.json_response(body)


async def healthz(request: web.Request) -> web.Response:
    return web.json_response({"success": True, "status": "ok"})


def create_app(resolver: ProfileCache, api_keys: Iterable[str] = ()) -> web.Application:
    """Build the aiohttp application serving ``resolver``."""

    app = web.Application(middlewares=[error_middleware, api_key_middleware])
    app[RESOLVER_KEY] = resolver
    app[API_KEYS_KEY] = tuple(api_keys)
    app.router.add_get("/v1/user/{id}", get_user)
    app.router.add_get("/healthz", healthz)
    return app


__all__ = ["create_app", "RESOLVER_KEY"]
