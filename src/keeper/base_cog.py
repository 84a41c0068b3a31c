from __future__ import annotations

import logging

import discord
from discord.ext import commands

from .utils import error_embed


class BaseCog(commands.Cog):
    """Base class for all cogs with common functionality."""

    def __init__(self, bot: commands.Bot) -> None:
        self.bot = bot
        self.log = logging.getLogger(f"keeper.cog.{self.__class__.__name__.lower()}")

    async def cog_load(self) -> None:
        self.log.info(f"Loaded {self.__class__.__name__}")

    async def cog_unload(self) -> None:
        self.log.info(f"Unloaded {self.__class__.__name__}")

    def error_embed(self, message: str) -> discord.Embed:
        return error_embed(message)
