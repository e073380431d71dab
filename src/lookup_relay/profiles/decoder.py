"""
Pure decoding helpers turning upstream attributes into normalized values.

Nothing here performs I/O or raises past its public surface: identifiers that
cannot be parsed degrade the affected fields to ``None``, unknown flag bits and
activity types are ignored or mapped to ``"unknown"``.
"""

from __future__ import annotations

import datetime
import logging
from typing import Literal, Optional, Tuple

from .errors import MalformedIdentifier
from .model import (
    ActivityKind,
    Badges,
    CreatedAt,
    Media,
    NormalizedProfile,
    PresenceSnapshot,
    RawProfile,
)

logger = logging.getLogger(__name__)

CDN_BASE = "https://cdn.discordapp.com"
IMAGE_SIZE = 4096

DISCORD_EPOCH_MS = 1420070400000
TIMESTAMP_SHIFT = 22
_SNOWFLAKE_MAX = (1 << 64) - 1

ANIMATED_HASH_PREFIX = "a_"
DEFAULT_AVATAR_COUNT = 5

BADGE_TABLE_VERSION = 2

# Ordered by bit position; decode order follows this tuple.
BADGE_TABLE: Tuple[Tuple[int, str], ...] = (
    (1 << 0, "discord_staff"),
    (1 << 1, "discord_partner"),
    (1 << 2, "hypesquad_events"),
    (1 << 3, "bug_hunter_level_1"),
    (1 << 6, "hypesquad_bravery"),
    (1 << 7, "hypesquad_brilliance"),
    (1 << 8, "hypesquad_balance"),
    (1 << 9, "early_supporter"),
    (1 << 10, "team_user"),
    (1 << 14, "bug_hunter_level_2"),
    (1 << 16, "verified_bot"),
    (1 << 17, "verified_developer"),
    (1 << 18, "certified_moderator"),
    (1 << 19, "bot_http_interactions"),
    (1 << 22, "active_developer"),
)

ACTIVITY_KINDS: Tuple[ActivityKind, ...] = (
    "game",
    "streaming",
    "listening",
    "watching",
    "custom",
    "competing",
)

NITRO_TIERS = {
    1: "nitro_classic",
    2: "nitro_boost",
    3: "nitro_basic",
}

MediaKind = Literal["avatar", "banner"]


# ---------- identifiers ------------------------------------------------------ #


def parse_snowflake(key: str) -> int:
    """Return ``key`` as an unsigned 64-bit integer.

    :raises MalformedIdentifier: for anything that is not a decimal string in range.
    """
    if not isinstance(key, str) or not (key.isascii() and key.isdigit()):
        raise MalformedIdentifier(f"not a numeric identifier: {key!r}")
    value = int(key)
    if value > _SNOWFLAKE_MAX:
        raise MalformedIdentifier(f"identifier out of 64-bit range: {key!r}")
    return value


def _iso8601(unix_millis: int) -> str:
    moment = datetime.datetime(1970, 1, 1, tzinfo=datetime.timezone.utc) + datetime.timedelta(
        milliseconds=unix_millis
    )
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


def decode_creation_time(key: str) -> CreatedAt:
    """Extract the creation timestamp embedded in ``key``."""

    try:
        snowflake = parse_snowflake(key)
    except MalformedIdentifier as exc:
        logger.debug("Skipping creation time: %s", exc)
        return CreatedAt(None, None)

    unix_millis = (snowflake >> TIMESTAMP_SHIFT) + DISCORD_EPOCH_MS
    return CreatedAt(unix_millis, _iso8601(unix_millis))


# ---------- flags ------------------------------------------------------------ #


def decode_badges(flags: int) -> list[str]:
    """Return badge names for every known bit set in ``flags``."""

    if isinstance(flags, bool) or not isinstance(flags, int) or flags <= 0:
        return []
    return [name for bit, name in BADGE_TABLE if flags & bit]


def decode_nitro(premium_type: Optional[int]) -> Optional[str]:
    return NITRO_TIERS.get(premium_type) if premium_type is not None else None


def decode_activity_kind(raw_kind: int) -> ActivityKind:
    if isinstance(raw_kind, bool) or not isinstance(raw_kind, int):
        return "unknown"
    if 0 <= raw_kind < len(ACTIVITY_KINDS):
        return ACTIVITY_KINDS[raw_kind]
    return "unknown"


# ---------- media ------------------------------------------------------------ #


def media_url(kind: MediaKind, key: str, image_hash: Optional[str]) -> Optional[str]:
    """Build the CDN URL for an avatar or banner.

    Banners without a hash have no URL. Avatars without a hash fall back to one
    of the default embed avatars picked by ``id mod 5``.
    """
    if not image_hash:
        if kind == "banner":
            return None
        try:
            index = parse_snowflake(key) % DEFAULT_AVATAR_COUNT
        except MalformedIdentifier:
            index = 0
        return f"{CDN_BASE}/embed/avatars/{index}.png"

    ext = "gif" if image_hash.startswith(ANIMATED_HASH_PREFIX) else "png"
    folder = "avatars" if kind == "avatar" else "banners"
    return f"{CDN_BASE}/{folder}/{key}/{image_hash}.{ext}?size={IMAGE_SIZE}"


def accent_hex(accent_color: Optional[int]) -> Optional[str]:
    if accent_color is None or not 0 <= accent_color <= 0xFFFFFF:
        return None
    return f"#{accent_color:06x}"


# ---------- profile ---------------------------------------------------------- #


def decode_profile(
    raw: RawProfile,
    key: str,
    *,
    presence: PresenceSnapshot | None,
    fetched_at: int,
) -> NormalizedProfile:
    """Assemble a :class:`NormalizedProfile` for ``key`` from ``raw``."""

    # The requested key is authoritative; upstream echoes it back.
    profile_id = key
    flags = raw.public_flags or 0

    return NormalizedProfile(
        id=profile_id,
        username=raw.username,
        display_name=raw.global_name,
        discriminator=raw.discriminator,
        avatar=Media(raw.avatar, media_url("avatar", profile_id, raw.avatar)),
        banner=Media(raw.banner, media_url("banner", profile_id, raw.banner)),
        accent_color=raw.accent_color,
        banner_color=accent_hex(raw.accent_color),
        created_at=decode_creation_time(profile_id),
        badges=Badges(raw=flags, decoded=tuple(decode_badges(flags))),
        nitro=decode_nitro(raw.premium_type),
        bot=bool(raw.bot),
        presence=presence or PresenceSnapshot.offline(),
        fetched_at=fetched_at,
    )


__all__ = [
    "BADGE_TABLE",
    "BADGE_TABLE_VERSION",
    "DISCORD_EPOCH_MS",
    "parse_snowflake",
    "decode_creation_time",
    "decode_badges",
    "decode_nitro",
    "decode_activity_kind",
    "media_url",
    "accent_hex",
    "decode_profile",
]
