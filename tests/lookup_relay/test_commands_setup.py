import asyncio

import discord
from discord.ext import commands as discord_commands

from lookup_relay import commands as lr_commands
from lookup_relay.commands.handlers.lookup import build_embed
from lookup_relay.profiles.decoder import decode_profile
from lookup_relay.profiles.model import Activity, PresenceSnapshot, RawProfile


async def _collect_cogs():
    bot = discord_commands.Bot(command_prefix="!", intents=discord.Intents.none())
    try:
        await lr_commands.setup(bot)
        return set(bot.cogs.keys()), {cmd.name for cmd in bot.tree.get_commands()}
    finally:
        await bot.close()


def test_setup_registers_lookup_cog():
    cogs, commands = asyncio.run(_collect_cogs())
    assert "Lookup" in cogs
    assert "lookup" in commands


def test_build_embed_summarizes_profile():
    raw = RawProfile.from_payload(
        {"id": "100000000000000000", "username": "nelly", "banner": "a_b", "public_flags": 64 | 512}
    )
    presence = PresenceSnapshot(status="dnd", activities=(Activity(kind="custom", state="busy"),))
    profile = decode_profile(raw, "100000000000000000", presence=presence, fetched_at=1)

    embed = build_embed(profile, cached=True)
    fields = {field.name: field.value for field in embed.fields}

    assert embed.title == "nelly"
    assert embed.image.url.endswith("a_b.gif?size=4096")
    assert fields["Badges"] == "hypesquad_bravery, early_supporter"
    assert fields["Status"] == "Do Not Disturb - busy"
    assert fields["Created"] == "<t:1443912257:D>"
    assert embed.footer.text == "cached"


def test_setup_skips_cogs_already_loaded():
    async def _twice():
        bot = discord_commands.Bot(command_prefix="!", intents=discord.Intents.none())
        try:
            await lr_commands.setup(bot)
            first = bot.get_cog("Lookup")
            await lr_commands.setup(bot)
            return first, bot.get_cog("Lookup")
        finally:
            await bot.close()

    first, second = asyncio.run(_twice())
    assert first is second
