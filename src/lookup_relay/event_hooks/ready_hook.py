import discord

import logging

logger = logging.getLogger(__name__)


async def handle(client: discord.Client):
    """Report what the presence feed can see once the gateway is ready."""
    logger.info(f"Logged in as {client.user.name} (ID: {client.user.id})")

    if not client.intents.presences:
        # Without the privileged intent every snapshot resolves offline.
        logger.warning("Presence intent disabled; presence will always be offline")

    members = sum(len(guild.members) for guild in client.guilds)
    logger.info(
        "Presence feed covers %d guild(s) and %d cached member(s)",
        len(client.guilds),
        members,
    )
