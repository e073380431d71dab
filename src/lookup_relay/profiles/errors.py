"""
Error taxonomy for profile resolution.

Every error carries a stable machine-readable ``code`` and the HTTP ``status``
the web layer answers with. Handlers surface the code, never ``str(exc)``.
"""

from __future__ import annotations


class RelayError(Exception):
    """Base class for errors that can reach a caller."""

    code = "internal_error"
    status = 500


class NotFoundError(RelayError):
    """The user does not exist upstream and nothing is cached for it."""

    code = "user_not_found"
    status = 404


class UpstreamError(RelayError):
    """Upstream failed transiently and nothing is cached for the key."""

    code = "upstream_unavailable"
    status = 502


class StoreError(RelayError):
    """The persistent tier could not be read or written."""

    code = "store_unavailable"
    status = 500


class MalformedIdentifier(RelayError):
    """An identifier is not a 64-bit unsigned integer."""

    code = "invalid_user_id"
    status = 400


__all__ = [
    "RelayError",
    "NotFoundError",
    "UpstreamError",
    "StoreError",
    "MalformedIdentifier",
]
