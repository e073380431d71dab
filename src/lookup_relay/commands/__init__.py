"""
Slash command cogs.

Handler modules under ``commands/handlers`` mark their cog with
:func:`register_cog`; they are imported when this package loads, and
:func:`setup` attaches one instance of each to the bot. Cogs reach the profile
cache through ``bot.profiles``.
"""

from __future__ import annotations

import logging
from importlib import import_module
from pathlib import Path
from pkgutil import iter_modules
from typing import Dict, Type

from discord.ext import commands as commands_ext

logger = logging.getLogger(__name__)

# Keyed by cog name, which is also how discord.py identifies loaded cogs.
_COGS: Dict[str, Type[commands_ext.Cog]] = {}


def register_cog(cog_cls: Type[commands_ext.Cog]) -> Type[commands_ext.Cog]:
    _COGS[cog_cls.__cog_name__] = cog_cls
    return cog_cls


async def setup(bot: commands_ext.Bot) -> None:
    """Attach every registered cog the bot does not already have."""

    for name, cog_cls in _COGS.items():
        if bot.get_cog(name) is None:
            await bot.add_cog(cog_cls(bot))
    logger.info("Command cogs loaded: %s", ", ".join(sorted(_COGS)) or "none")


for _module in iter_modules([str(Path(__file__).resolve().parent / "handlers")]):
    if not _module.name.startswith("_"):
        import_module(f"{__name__}.handlers.{_module.name}")


__all__ = ["register_cog", "setup"]
