from __future__ import annotations

"""Dataclass models for raw and normalized user profiles.

Profile schema (output of :meth:`NormalizedProfile.to_dict`):

```
{"id": "80351110224678912", "username": "nelly", "display_name": "Nelly",
 "discriminator": "0",
 "avatar": {"hash": "a_8342...", "url": "https://cdn.discordapp.com/..."},
 "banner": {"hash": null, "url": null},
 "accent_color": 16711680, "banner_color": "#ff0000",
 "created_at": {"unix_millis": 1439227640815, "iso8601": "2015-08-10T17:27:20.815Z"},
 "badges": {"raw": 64, "decoded": ["hypesquad_bravery"]},
 "nitro": null, "bot": false,
 "presence": {"status": "online", "activities": [...], "platforms": ["desktop"]},
 "fetched_at": 1700000000000}
```

Unlike fragment payloads, every key is always present and absent values are
``null`` so consumers see a total schema. :meth:`NormalizedProfile.from_dict`
tolerates missing keys because the persistent tier drops nulls on write.
"""

from dataclasses import dataclass, field, replace
from typing import Any, Dict, Literal, Mapping, Optional, Tuple

PresenceStatus = Literal["online", "idle", "dnd", "offline"]
ActivityKind = Literal[
    "game", "streaming", "listening", "watching", "custom", "competing", "unknown"
]

PRESENCE_STATUSES: Tuple[str, ...] = ("online", "idle", "dnd", "offline")


def _opt_str(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def _opt_int(value: Any) -> Optional[int]:
    # bool is an int subclass; a JSON true is never a number here.
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value


def _mapping(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


# --------------------------------------------------------------------------- #
# Upstream payload
# --------------------------------------------------------------------------- #


@dataclass(slots=True, frozen=True)
class RawProfile:
    """Upstream user object after type validation."""

    id: Optional[str] = None
    username: Optional[str] = None
    global_name: Optional[str] = None
    discriminator: Optional[str] = None
    avatar: Optional[str] = None
    banner: Optional[str] = None
    accent_color: Optional[int] = None
    public_flags: Optional[int] = None
    premium_type: Optional[int] = None
    bot: Optional[bool] = None

    @classmethod
    def from_payload(cls, payload: Any) -> "RawProfile":
        """Keep each known field only when it has the expected JSON type."""

        data = _mapping(payload)
        bot = data.get("bot")
        return cls(
            id=_opt_str(data.get("id")),
            username=_opt_str(data.get("username")),
            global_name=_opt_str(data.get("global_name")),
            discriminator=_opt_str(data.get("discriminator")),
            avatar=_opt_str(data.get("avatar")),
            banner=_opt_str(data.get("banner")),
            accent_color=_opt_int(data.get("accent_color")),
            public_flags=_opt_int(data.get("public_flags")),
            premium_type=_opt_int(data.get("premium_type")),
            bot=bot if isinstance(bot, bool) else None,
        )


# --------------------------------------------------------------------------- #
# Presence
# --------------------------------------------------------------------------- #


@dataclass(slots=True, frozen=True)
class ActivityTimestamps:
    start: Optional[int] = None
    end: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"start": self.start, "end": self.end}


@dataclass(slots=True, frozen=True)
class ActivityEmoji:
    name: Optional[str] = None
    id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "id": self.id}


@dataclass(slots=True, frozen=True)
class Activity:
    """One entry of a member's activity list."""

    kind: ActivityKind = "unknown"
    name: Optional[str] = None
    details: Optional[str] = None
    state: Optional[str] = None
    application_id: Optional[str] = None
    timestamps: Optional[ActivityTimestamps] = None
    emoji: Optional[ActivityEmoji] = None
    created_at: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "name": self.name,
            "details": self.details,
            "state": self.state,
            "application_id": self.application_id,
            "timestamps": self.timestamps.to_dict() if self.timestamps else None,
            "emoji": self.emoji.to_dict() if self.emoji else None,
            "created_at": self.created_at,
        }


@dataclass(slots=True, frozen=True)
class PresenceSnapshot:
    """Live status of a user as seen through the gateway."""

    status: PresenceStatus = "offline"
    activities: Tuple[Activity, ...] = ()
    platforms: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def offline(cls) -> "PresenceSnapshot":
        return cls()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status,
            "activities": [activity.to_dict() for activity in self.activities],
            "platforms": sorted(self.platforms),
        }


# --------------------------------------------------------------------------- #
# Normalized profile
# --------------------------------------------------------------------------- #


@dataclass(slots=True, frozen=True)
class Media:
    hash: Optional[str]
    url: Optional[str]

    def to_dict(self) -> Dict[str, Any]:
        return {"hash": self.hash, "url": self.url}


@dataclass(slots=True, frozen=True)
class CreatedAt:
    unix_millis: Optional[int]
    iso8601: Optional[str]

    def to_dict(self) -> Dict[str, Any]:
        return {"unix_millis": self.unix_millis, "iso8601": self.iso8601}


@dataclass(slots=True, frozen=True)
class Badges:
    raw: int = 0
    decoded: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {"raw": self.raw, "decoded": list(self.decoded)}


@dataclass(slots=True, frozen=True)
class NormalizedProfile:
    """The cached artifact served for one user."""

    id: str
    username: Optional[str]
    display_name: Optional[str]
    discriminator: Optional[str]
    avatar: Media
    banner: Media
    accent_color: Optional[int]
    banner_color: Optional[str]
    created_at: CreatedAt
    badges: Badges
    nitro: Optional[str]
    bot: bool
    presence: PresenceSnapshot
    fetched_at: int

    def content(self) -> Dict[str, Any]:
        """Return the fields that decide whether a persisted copy is stale.

        ``fetched_at`` changes on every fetch and presence is never persisted,
        so neither takes part in the comparison.
        """
        data = self.to_dict()
        data.pop("fetched_at")
        data.pop("presence")
        return data

    def with_presence(self, presence: PresenceSnapshot) -> "NormalizedProfile":
        return replace(self, presence=presence)

    def to_dict(self, *, include_presence: bool = True) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "username": self.username,
            "display_name": self.display_name,
            "discriminator": self.discriminator,
            "avatar": self.avatar.to_dict(),
            "banner": self.banner.to_dict(),
            "accent_color": self.accent_color,
            "banner_color": self.banner_color,
            "created_at": self.created_at.to_dict(),
            "badges": self.badges.to_dict(),
            "nitro": self.nitro,
            "bot": self.bot,
            "presence": self.presence.to_dict(),
            "fetched_at": self.fetched_at,
        }
        if not include_presence:
            data.pop("presence")
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "NormalizedProfile":
        """Rebuild a profile from :meth:`to_dict` output.

        Presence is not restored; stored records always come back offline
        until the caller overlays a live snapshot.

        :raises ValueError: when ``id`` or ``fetched_at`` is missing.
        """
        profile_id = _opt_str(data.get("id"))
        fetched_at = _opt_int(data.get("fetched_at"))
        if profile_id is None or fetched_at is None:
            raise ValueError("profile record requires 'id' and 'fetched_at'")

        avatar = _mapping(data.get("avatar"))
        banner = _mapping(data.get("banner"))
        created = _mapping(data.get("created_at"))
        badges = _mapping(data.get("badges"))
        decoded = badges.get("decoded") or []

        return cls(
            id=profile_id,
            username=_opt_str(data.get("username")),
            display_name=_opt_str(data.get("display_name")),
            discriminator=_opt_str(data.get("discriminator")),
            avatar=Media(_opt_str(avatar.get("hash")), _opt_str(avatar.get("url"))),
            banner=Media(_opt_str(banner.get("hash")), _opt_str(banner.get("url"))),
            accent_color=_opt_int(data.get("accent_color")),
            banner_color=_opt_str(data.get("banner_color")),
            created_at=CreatedAt(
                _opt_int(created.get("unix_millis")), _opt_str(created.get("iso8601"))
            ),
            badges=Badges(
                raw=_opt_int(badges.get("raw")) or 0,
                decoded=tuple(name for name in decoded if isinstance(name, str)),
            ),
            nitro=_opt_str(data.get("nitro")),
            bot=data.get("bot") is True,
            presence=PresenceSnapshot.offline(),
            fetched_at=fetched_at,
        )


__all__ = [
    "RawProfile",
    "Activity",
    "ActivityEmoji",
    "ActivityTimestamps",
    "PresenceSnapshot",
    "PRESENCE_STATUSES",
    "Media",
    "CreatedAt",
    "Badges",
    "NormalizedProfile",
]
