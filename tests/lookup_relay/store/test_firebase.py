import asyncio

from aiohttp import web
from aiohttp.test_utils import TestServer
import pytest

from lookup_relay.profiles.decoder import decode_profile
from lookup_relay.profiles.errors import StoreError
from lookup_relay.profiles.model import PresenceSnapshot, RawProfile
from lookup_relay.store.firebase import FirebaseStore, from_record, to_record


def _profile(fetched_at=1000):
    raw = RawProfile.from_payload({"id": "42", "username": "nelly", "public_flags": 64})
    return decode_profile(
        raw, "42", presence=PresenceSnapshot(status="online"), fetched_at=fetched_at
    )


def _firebase_app(db: dict, seen: list, status: int = 200) -> web.Application:
    async def read(request):
        seen.append(("GET", request.match_info["id"], request.query.get("auth")))
        if status != 200:
            return web.json_response({"error": "Permission denied"}, status=status)
        return web.json_response(db.get(request.match_info["id"]))

    async def write(request):
        seen.append(("PUT", request.match_info["id"], request.query.get("auth")))
        if status != 200:
            return web.json_response({"error": "Permission denied"}, status=status)
        body = await request.json()
        db[request.match_info["id"]] = body
        return web.json_response(body)

    app = web.Application()
    app.router.add_get("/users/{id}.json", read)
    app.router.add_put("/users/{id}.json", write)
    return app


async def _with_store(app, action):
    async with TestServer(app) as server:
        store = FirebaseStore(str(server.make_url("/")), "s3cret", timeout=5.0)
        try:
            return await action(store)
        finally:
            await store.close()


def test_put_then_get_round_trips_without_presence():
    db, seen = {}, []
    profile = _profile()

    async def action(store):
        await store.put("42", profile)
        return await store.get("42")

    restored = asyncio.run(_with_store(_firebase_app(db, seen), action))

    assert db["42"]["cached_at"] == 1000
    assert "presence" not in db["42"]["data"]
    assert restored.content() == profile.content()
    assert restored.presence == PresenceSnapshot.offline()
    assert seen == [("PUT", "42", "s3cret"), ("GET", "42", "s3cret")]


def test_get_missing_record_is_none():
    async def action(store):
        return await store.get("42")

    assert asyncio.run(_with_store(_firebase_app({}, []), action)) is None


def test_unreadable_record_is_none():
    db = {"42": {"cached_at": 1, "data": "garbage"}}

    async def action(store):
        return await store.get("42")

    assert asyncio.run(_with_store(_firebase_app(db, []), action)) is None


def test_denied_read_raises_store_error():
    async def action(store):
        return await store.get("42")

    with pytest.raises(StoreError):
        asyncio.run(_with_store(_firebase_app({}, [], status=401), action))


def test_denied_write_raises_store_error():
    async def action(store):
        await store.put("42", _profile())

    with pytest.raises(StoreError):
        asyncio.run(_with_store(_firebase_app({}, [], status=401), action))


def test_unreachable_store_raises_store_error():
    async def _run():
        store = FirebaseStore("http://127.0.0.1:1", "s3cret", timeout=1.0)
        try:
            return await store.get("42")
        finally:
            await store.close()

    with pytest.raises(StoreError):
        asyncio.run(_run())


def test_record_without_fetched_at_uses_cached_at():
    record = to_record(_profile(fetched_at=77))
    del record["data"]["fetched_at"]

    assert from_record(record).fetched_at == 77


def test_legacy_record_is_upgraded():
    record = {
        "cached_at": 5000,
        "data": {
            "id": "100000000000000000",
            "username": "nelly",
            "global_name": "Nelly",
            "avatar": "https://cdn.discordapp.com/avatars/100000000000000000/abc.png?size=4096",
            "banner": None,
            "banner_color": "#ff00ff",
            "created_timestamp": 1,
            "created_date": "1970-01-01T00:00:00.001Z",
            "public_flags": ["house_bravery", "early_supporter", "mystery"],
            "nitro": "nitro_boost",
        },
    }

    profile = from_record(record)

    assert profile.display_name == "Nelly"
    assert profile.avatar.url.endswith("/abc.png?size=4096")
    assert profile.banner.url is None
    assert profile.created_at.iso8601 == "2015-10-03T22:44:17.910Z"
    assert profile.badges.raw == 64 | 512
    assert profile.badges.decoded == ("hypesquad_bravery", "early_supporter")
    assert profile.nitro == "nitro_boost"
    assert profile.fetched_at == 5000


def test_record_fields_derived_from_id_are_recomputed():
    record = to_record(_profile())
    record["data"]["created_at"] = {"unix_millis": None, "iso8601": None}
    record["data"]["avatar"] = {"hash": None, "url": None}

    profile = from_record(record)

    assert profile.created_at == _profile().created_at
    assert profile.avatar.url == "https://cdn.discordapp.com/embed/avatars/2.png"
