"""Discord bot bootstrap utilities."""

from __future__ import annotations

import logging

import discord
from aiohttp import web
from discord.ext import commands as discord_commands

from lookup_relay import commands as lr_commands
from lookup_relay.cache import ProfileCache
from lookup_relay.clients.upstream import UpstreamClient
from lookup_relay.config import cache, core, server
from lookup_relay.event_hooks import ready_hook
from lookup_relay.presence import PresenceAggregator
from lookup_relay.store import FirebaseStore
from lookup_relay.web import create_app

logger = logging.getLogger(__name__)

# --- Intents --------------------------------------------------------------- #
# Members and presences feed the presence aggregator's guild member cache.
intents = discord.Intents.default()
intents.members = True
intents.presences = True


class RelayBot(discord_commands.Bot):
    """Gateway client that owns the profile cache and serves it over HTTP."""

    def __init__(self) -> None:
        super().__init__(command_prefix=discord_commands.when_mentioned, intents=intents)
        self.upstream = UpstreamClient(
            core.BOT_TOKEN,
            api_base=core.DISCORD_API_BASE,
            timeout=cache.UPSTREAM_TIMEOUT,
        )
        self.store = FirebaseStore(
            core.FIREBASE_URL,
            core.FIREBASE_SECRET,
            timeout=cache.UPSTREAM_TIMEOUT,
        )
        self.profiles = ProfileCache(
            self.upstream,
            self.store,
            PresenceAggregator(lambda: self.guilds),
            ttl_seconds=cache.TTL_SECONDS,
            stale_ttl_seconds=cache.STALE_TTL_SECONDS,
            upstream_timeout=cache.UPSTREAM_TIMEOUT,
        )
        self._runner: web.AppRunner | None = None

    async def setup_hook(self) -> None:
        """Register slash commands and start the HTTP API."""

        await lr_commands.setup(self)

        try:
            synced = await self.tree.sync()
            logger.info("Synced %d application command(s)", len(synced))
        except discord.HTTPException:
            logger.exception("Failed to sync application commands")

        self._runner = web.AppRunner(create_app(self.profiles, server.API_KEYS))
        await self._runner.setup()
        await web.TCPSite(self._runner, server.HOST, server.PORT).start()
        logger.info(
            "API running on %s:%d (%s)",
            server.HOST,
            server.PORT,
            "api keys required" if server.API_KEYS else "open",
        )

    async def close(self) -> None:
        if self._runner is not None:
            await self._runner.cleanup()
            self._runner = None
        await self.upstream.close()
        await self.store.close()
        await super().close()


bot = RelayBot()


@bot.event
async def on_ready() -> None:
    await ready_hook.handle(bot)


def run() -> None:
    """Start the bot and its HTTP API using configuration from the environment."""

    try:
        bot.run(core.BOT_TOKEN, log_handler=None)
    except discord.LoginFailure as exc:
        logger.error("Login failed: %s", exc)
    except discord.PrivilegedIntentsRequired as exc:
        logger.error("Enable the members and presences intents for this bot: %s", exc)
