from __future__ import annotations

import logging

import discord
from discord import app_commands
from discord.ext import commands

from .constants import ERROR_MESSAGES
from .utils import error_embed, safe_response

log = logging.getLogger("keeper.error_handlers")


class ErrorHandler(commands.Cog):
    """Centralized error handling for the bot."""

    def __init__(self, bot: commands.Bot) -> None:
        self.bot = bot
        self._previous_tree_handler = bot.tree.on_error
        bot.tree.on_error = self.on_app_command_error

    async def cog_unload(self) -> None:
        self.bot.tree.on_error = self._previous_tree_handler

    @commands.Cog.listener()
    async def on_command_error(self, ctx: commands.Context, error: commands.CommandError) -> None:
        """Handle prefix command errors."""
        if isinstance(error, commands.CommandNotFound):
            return

        if isinstance(error, (commands.MissingPermissions, commands.CheckFailure)):
            await safe_response(ctx, embed=error_embed(ERROR_MESSAGES["missing_permissions"]))
            return

        if isinstance(error, commands.MissingRequiredArgument):
            await safe_response(ctx, embed=error_embed(f"Missing required argument: {error.param.name}"))
            return

        if isinstance(error, commands.BadArgument):
            await safe_response(ctx, embed=error_embed(f"Invalid argument: {error}"))
            return

        if isinstance(error, commands.BotMissingPermissions):
            await safe_response(ctx, embed=error_embed("The bot lacks required permissions to run this command."))
            return

        log.error(f"Unexpected error in command {ctx.command}: {error}", exc_info=error)
        await safe_response(ctx, embed=error_embed(ERROR_MESSAGES["unexpected"]))

    async def on_app_command_error(
        self,
        interaction: discord.Interaction,
        error: app_commands.AppCommandError,
    ) -> None:
        """Handle application command errors."""
        if isinstance(error, (app_commands.MissingPermissions, app_commands.CheckFailure)):
            await safe_response(interaction, embed=error_embed(ERROR_MESSAGES["missing_permissions"]), ephemeral=True)
            return

        if isinstance(error, app_commands.BotMissingPermissions):
            await safe_response(interaction, embed=error_embed("The bot lacks required permissions to run this command."), ephemeral=True)
            return

        log.error(f"Unexpected error in app command {interaction.command}: {error}", exc_info=error)
        await safe_response(interaction, embed=error_embed(ERROR_MESSAGES["unexpected"]), ephemeral=True)


async def setup_error_handlers(bot: commands.Bot) -> None:
    """Setup error handlers for the bot."""
    await bot.add_cog(ErrorHandler(bot))
