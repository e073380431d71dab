from __future__ import annotations

import discord
from discord import app_commands
from discord.ext import commands

from ...profiles.errors import RelayError
from ...profiles.model import NormalizedProfile
from .. import register_cog

_STATUS_LABELS = {
    "online": "Online",
    "idle": "Idle",
    "dnd": "Do Not Disturb",
    "offline": "Offline",
}


def build_embed(profile: NormalizedProfile, *, cached: bool) -> discord.Embed:
    """Render ``profile`` as a compact embed."""

    title = profile.display_name or profile.username or profile.id
    embed = discord.Embed(title=title, colour=profile.accent_color)
    embed.set_thumbnail(url=profile.avatar.url)
    if profile.banner.url:
        embed.set_image(url=profile.banner.url)

    embed.add_field(name="Username", value=profile.username or "unknown", inline=True)
    embed.add_field(name="ID", value=profile.id, inline=True)
    if profile.created_at.unix_millis is not None:
        created = profile.created_at.unix_millis // 1000
        embed.add_field(name="Created", value=f"<t:{created}:D>", inline=True)

    badges = ", ".join(profile.badges.decoded) or "none"
    embed.add_field(name="Badges", value=badges, inline=False)

    status = _STATUS_LABELS.get(profile.presence.status, profile.presence.status)
    if profile.presence.activities:
        first = profile.presence.activities[0]
        status = f"{status} - {first.state or first.name or first.kind}"
    embed.add_field(name="Status", value=status, inline=False)

    embed.set_footer(text="cached" if cached else "fresh")
    return embed


@register_cog
class Lookup(commands.Cog):
    """Look up a user's public profile through the relay cache."""

    def __init__(self, bot: commands.Bot):
        self.bot = bot

    @app_commands.command(name="lookup", description="Show a user's public profile.")
    @app_commands.describe(user="User to look up", force="Bypass the cache")
    async def lookup(
        self, interaction: discord.Interaction, user: discord.User, force: bool = False
    ) -> None:
        await interaction.response.defer(ephemeral=True)
        try:
            resolution = await self.bot.profiles.resolve(str(user.id), force_refresh=force)
        except RelayError as exc:
            await interaction.followup.send(f"Lookup failed: `{exc.code}`", ephemeral=True)
            return

        embed = build_embed(resolution.profile, cached=resolution.cached)
        await interaction.followup.send(embed=embed, ephemeral=True)
