import datetime
from types import SimpleNamespace

import discord

from lookup_relay.presence.aggregator import PresenceAggregator, project_activity
from lookup_relay.profiles.model import ActivityEmoji, ActivityTimestamps, PresenceSnapshot


def _member(status=discord.Status.online, activities=(), desktop=None, mobile=None, web=None):
    return SimpleNamespace(
        status=status,
        activities=activities,
        desktop_status=desktop or discord.Status.offline,
        mobile_status=mobile or discord.Status.offline,
        web_status=web or discord.Status.offline,
    )


class _Guild:
    def __init__(self, members):
        self._members = members
        self.lookups = []

    def get_member(self, user_id):
        self.lookups.append(user_id)
        return self._members.get(user_id)


def test_snapshot_returns_offline_when_no_guild_knows_user():
    aggregator = PresenceAggregator(lambda: [_Guild({}), _Guild({})])
    assert aggregator.snapshot("42") == PresenceSnapshot.offline()


def test_snapshot_short_circuits_on_first_live_presence():
    first = _Guild({42: _member(status=discord.Status.idle, desktop=discord.Status.idle)})
    second = _Guild({42: _member(status=discord.Status.dnd)})
    aggregator = PresenceAggregator(lambda: [first, second])

    snapshot = aggregator.snapshot("42")

    assert snapshot.status == "idle"
    assert snapshot.platforms == frozenset({"desktop"})
    assert second.lookups == []


def test_snapshot_skips_offline_members():
    offline = _Guild({42: _member(status=discord.Status.offline)})
    online = _Guild({42: _member(status=discord.Status.online, mobile=discord.Status.online)})
    aggregator = PresenceAggregator(lambda: [offline, online])

    snapshot = aggregator.snapshot("42")

    assert snapshot.status == "online"
    assert snapshot.platforms == frozenset({"mobile"})


def test_snapshot_maps_invisible_to_offline():
    aggregator = PresenceAggregator(lambda: [_Guild({42: _member(status=discord.Status.invisible)})])
    assert aggregator.snapshot("42").status == "offline"


def test_snapshot_for_malformed_key_is_offline():
    def _guilds():
        raise AssertionError("guilds must not be scanned")

    assert PresenceAggregator(_guilds).snapshot("not-an-id") == PresenceSnapshot.offline()


def test_snapshot_never_raises():
    class _Broken:
        def get_member(self, user_id):
            raise RuntimeError("member cache gone")

    assert PresenceAggregator(lambda: [_Broken()]).snapshot("42") == PresenceSnapshot.offline()


def test_project_discord_activity():
    activity = discord.Activity(
        type=discord.ActivityType.playing,
        name="Chess",
        details="Ranked",
        state="Move 12",
        application_id="123",
        timestamps={"start": 1700000000000},
        emoji={"name": "fire"},
        created_at=1700000000000,
    )

    projected = project_activity(activity)

    assert projected.kind == "game"
    assert projected.name == "Chess"
    assert projected.details == "Ranked"
    assert projected.state == "Move 12"
    assert projected.application_id == "123"
    assert projected.timestamps == ActivityTimestamps(start=1700000000000, end=None)
    assert projected.emoji == ActivityEmoji(name="fire", id=None)
    assert projected.created_at == 1700000000000


def test_project_activity_with_datetimes_and_unknown_type():
    start = datetime.datetime(2024, 1, 1, tzinfo=datetime.timezone.utc)
    activity = SimpleNamespace(
        type=SimpleNamespace(value=42),
        name="Spotify",
        title="Song",
        start=start,
        end=None,
    )

    projected = project_activity(activity)

    assert projected.kind == "unknown"
    assert projected.details == "Song"
    assert projected.timestamps == ActivityTimestamps(start=1704067200000, end=None)
    assert projected.emoji is None
    assert projected.application_id is None


def test_member_with_only_activities_counts_as_live():
    custom = SimpleNamespace(type=discord.ActivityType.custom, name="Custom Status", state="brb")
    guild = _Guild({42: _member(status=discord.Status.offline, activities=(custom,))})

    snapshot = PresenceAggregator(lambda: [guild]).snapshot("42")

    assert snapshot.status == "offline"
    assert snapshot.activities[0].kind == "custom"
    assert snapshot.activities[0].state == "brb"
