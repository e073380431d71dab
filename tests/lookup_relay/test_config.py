import pytest

from lookup_relay.config.cache import Cache
from lookup_relay.config.core import Core
from lookup_relay.config.loader import load_raw_config
from lookup_relay.config.server import Server


def test_core_reads_environment(monkeypatch):
    monkeypatch.setenv("BOT_TOKEN", "tok")
    monkeypatch.setenv("FIREBASE_URL", "https://db.example.com/")
    monkeypatch.setenv("FIREBASE_SECRET", "sec")

    core = Core({})

    assert core.BOT_TOKEN == "tok"
    assert core.FIREBASE_URL == "https://db.example.com"
    assert core.DISCORD_API_BASE == "https://discord.com/api/v10"


def test_core_missing_credentials(monkeypatch):
    monkeypatch.delenv("BOT_TOKEN", raising=False)
    monkeypatch.delenv("FIREBASE_SECRET", raising=False)
    monkeypatch.setenv("FIREBASE_URL", "https://db.example.com")

    with pytest.raises(ValueError) as excinfo:
        Core({})
    assert "BOT_TOKEN" in str(excinfo.value)
    assert "FIREBASE_SECRET" in str(excinfo.value)


def test_core_token_env_is_configurable(monkeypatch):
    monkeypatch.setenv("OTHER_TOKEN", "from-other")
    monkeypatch.setenv("FIREBASE_URL", "https://db.example.com")
    monkeypatch.setenv("FIREBASE_SECRET", "sec")

    core = Core({"lookup_relay": {"discord": {"token_env": "OTHER_TOKEN"}}})

    assert core.BOT_TOKEN == "from-other"


def test_cache_defaults_and_overrides(monkeypatch):
    for name in ("CACHE_TTL_SECONDS", "STALE_TTL_SECONDS", "UPSTREAM_TIMEOUT"):
        monkeypatch.delenv(name, raising=False)

    defaults = Cache({})
    assert (defaults.TTL_SECONDS, defaults.STALE_TTL_SECONDS, defaults.UPSTREAM_TIMEOUT) == (300, 30, 10.0)

    tuned = Cache({"lookup_relay": {"cache": {"ttl_seconds": 120, "stale_ttl_seconds": 600}}})
    assert tuned.TTL_SECONDS == 120
    assert tuned.STALE_TTL_SECONDS == 120


def test_cache_rejects_non_positive_ttl():
    with pytest.raises(ValueError):
        Cache({"lookup_relay": {"cache": {"ttl_seconds": 0}}})


def test_server_api_keys_from_env(monkeypatch):
    monkeypatch.setenv("API_KEYS", " a, b ,,c ")
    monkeypatch.delenv("PORT", raising=False)

    server = Server({})

    assert server.API_KEYS == ["a", "b", "c"]
    assert server.PORT == 3000


def test_load_raw_config(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text('[lookup_relay.server]\nport = 8080\napi_keys = ["x"]\n', encoding="utf-8")

    raw = load_raw_config(path)
    server = Server(raw)

    assert server.PORT == 8080
    assert server.API_KEYS == ["x"]
    assert load_raw_config(tmp_path / "missing.toml") == {}
