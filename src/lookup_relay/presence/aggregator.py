"""
Presence lookup over the gateway's member cache.

The Discord client keeps a per-guild member cache up to date from the
``PRESENCE_UPDATE`` feed. :class:`PresenceAggregator` scans the guilds the bot
shares with a user and projects the first live presence it finds into a
:class:`PresenceSnapshot`. Guild order is whatever the client reports; a user's
presence is the same in every guild, so the first match is as good as any.
"""

from __future__ import annotations

import datetime
import logging
from typing import Any, Callable, Iterable, Optional

from ..profiles.decoder import decode_activity_kind, parse_snowflake
from ..profiles.errors import MalformedIdentifier
from ..profiles.model import (
    PRESENCE_STATUSES,
    Activity,
    ActivityEmoji,
    ActivityTimestamps,
    PresenceSnapshot,
)

logger = logging.getLogger(__name__)

_PLATFORM_ATTRS = (
    ("desktop_status", "desktop"),
    ("mobile_status", "mobile"),
    ("web_status", "web"),
)


def _status_name(status: Any) -> str:
    """Map a ``discord.Status`` (or its string value) onto the snapshot enum."""

    value = getattr(status, "value", status)
    value = str(value) if value is not None else "offline"
    # "invisible" is how the gateway reports the bot's own hidden status.
    return value if value in PRESENCE_STATUSES else "offline"


def _millis(moment: Any) -> Optional[int]:
    if isinstance(moment, datetime.datetime):
        if moment.tzinfo is None:
            moment = moment.replace(tzinfo=datetime.timezone.utc)
        return int(moment.timestamp() * 1000)
    if isinstance(moment, int) and not isinstance(moment, bool):
        return moment
    return None


def _opt_text(value: Any) -> Optional[str]:
    return value if isinstance(value, str) and value else None


def _timestamps(activity: Any) -> Optional[ActivityTimestamps]:
    raw = getattr(activity, "timestamps", None)
    if isinstance(raw, dict) and raw:
        start, end = _millis(raw.get("start")), _millis(raw.get("end"))
    else:
        # Game and Spotify expose parsed datetimes instead of the raw dict.
        start = _millis(getattr(activity, "start", None))
        end = _millis(getattr(activity, "end", None))
    if start is None and end is None:
        return None
    return ActivityTimestamps(start=start, end=end)


def _emoji(activity: Any) -> Optional[ActivityEmoji]:
    emoji = getattr(activity, "emoji", None)
    if emoji is None:
        return None
    emoji_id = getattr(emoji, "id", None)
    return ActivityEmoji(
        name=_opt_text(getattr(emoji, "name", None)),
        id=str(emoji_id) if emoji_id is not None else None,
    )


def project_activity(activity: Any) -> Activity:
    """Project a discord.py activity object onto :class:`Activity`."""

    kind = getattr(activity, "type", None)
    application_id = getattr(activity, "application_id", None)
    details = getattr(activity, "details", None)
    if details is None:
        # Spotify keeps the track title under ``title``.
        details = getattr(activity, "title", None)

    return Activity(
        kind=decode_activity_kind(getattr(kind, "value", kind)),
        name=_opt_text(getattr(activity, "name", None)),
        details=_opt_text(details),
        state=_opt_text(getattr(activity, "state", None)),
        application_id=str(application_id) if application_id is not None else None,
        timestamps=_timestamps(activity),
        emoji=_emoji(activity),
        created_at=_millis(getattr(activity, "created_at", None)),
    )


def project_member(member: Any) -> PresenceSnapshot:
    """Project a cached ``discord.Member`` onto :class:`PresenceSnapshot`."""

    platforms = frozenset(
        label
        for attr, label in _PLATFORM_ATTRS
        if _status_name(getattr(member, attr, None)) != "offline"
    )
    activities = tuple(project_activity(a) for a in (getattr(member, "activities", None) or ()))
    return PresenceSnapshot(
        status=_status_name(getattr(member, "status", None)),
        activities=activities,
        platforms=platforms,
    )


class PresenceAggregator:
    """Resolve the freshest known presence of a user across shared guilds."""

    def __init__(self, guilds: Callable[[], Iterable[Any]]) -> None:
        self._guilds = guilds

    def snapshot(self, key: str) -> PresenceSnapshot:
        """Return the first live presence for ``key`` or the offline snapshot."""

        try:
            user_id = parse_snowflake(key)
        except MalformedIdentifier:
            return PresenceSnapshot.offline()

        try:
            for guild in self._guilds():
                member = guild.get_member(user_id)
                if member is None:
                    continue
                snapshot = project_member(member)
                if snapshot.status != "offline" or snapshot.activities:
                    return snapshot
        except Exception:
            # Presence is decoration; a broken member cache must not fail a lookup.
            logger.exception("Presence scan failed for user %s", key)

        return PresenceSnapshot.offline()


__all__ = ["PresenceAggregator", "project_activity", "project_member"]
