"""Profile models, decoding helpers and the error taxonomy."""

from .errors import MalformedIdentifier, NotFoundError, RelayError, StoreError, UpstreamError
from .model import NormalizedProfile, PresenceSnapshot, RawProfile

__all__ = [
    "RelayError",
    "NotFoundError",
    "UpstreamError",
    "StoreError",
    "MalformedIdentifier",
    "NormalizedProfile",
    "PresenceSnapshot",
    "RawProfile",
]
