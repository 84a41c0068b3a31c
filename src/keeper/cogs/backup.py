from __future__ import annotations

import time
from typing import List

import discord
from discord import app_commands
from discord.ext import commands

from ..backup.progress import MessageProgress
from ..backup.reporting import chunk_lines, format_backup_line, format_restore_report
from ..backup.service import BackupService
from ..base_cog import BaseCog
from ..constants import ERROR_MESSAGES
from ..errors import FetchError, KeeperError, NotFoundError, ValidationError
from ..permissions import actor_of, can_manage_backups


def describe_error(error: KeeperError) -> str:
    if isinstance(error, NotFoundError):
        return ERROR_MESSAGES["not_found"]
    if isinstance(error, ValidationError):
        return f"Backup is invalid: {error}"
    if isinstance(error, FetchError):
        return f"Could not read server structure: {error}"
    return str(error)


class BackupCog(BaseCog):
    """Create, list, load and delete server structure backups."""

    backup = app_commands.Group(name="backup", description="Manage server backups", guild_only=True)

    def __init__(self, bot: commands.Bot, service: BackupService, list_limit: int = 25, owner_id: int = 0) -> None:
        super().__init__(bot)
        self.service = service
        self.list_limit = list_limit
        self.owner_id = owner_id

    def _authorized(self, target: discord.Interaction | commands.Context) -> bool:
        return target.guild is not None and can_manage_backups(actor_of(target), self.owner_id)

    async def interaction_check(self, interaction: discord.Interaction) -> bool:
        # A False result surfaces as CheckFailure, answered by the tree error handler
        return self._authorized(interaction)

    async def cog_check(self, ctx: commands.Context) -> bool:
        if ctx.guild is None:
            raise commands.NoPrivateMessage(ERROR_MESSAGES["guild_only"])
        if not self._authorized(ctx):
            raise commands.CheckFailure(ERROR_MESSAGES["missing_permissions"])
        return True

    async def _list_lines(self, guild_id: int) -> List[str]:
        records = await self.service.list_backups(guild_id, self.list_limit)
        return [format_backup_line(r) for r in records]

    # Slash commands

    @backup.command(name="create", description="Create a backup of this server's roles and channels")
    @app_commands.describe(name="Backup name")
    async def backup_create(self, interaction: discord.Interaction, name: str) -> None:
        assert interaction.guild is not None
        await interaction.response.defer(ephemeral=True, thinking=True)
        try:
            record_id = await self.service.create_backup(interaction.guild.id, name)
        except KeeperError as e:
            await interaction.followup.send(embed=self.error_embed(describe_error(e)), ephemeral=True)
            return
        await interaction.followup.send(f"Backup created. ID: {record_id}", ephemeral=True)

    @backup.command(name="list", description="List this server's backups")
    async def backup_list(self, interaction: discord.Interaction) -> None:
        assert interaction.guild is not None
        lines = await self._list_lines(interaction.guild.id)
        if not lines:
            await interaction.response.send_message("No backups found.", ephemeral=True)
            return
        chunks = chunk_lines(lines)
        await interaction.response.send_message(chunks[0], ephemeral=True)
        for chunk in chunks[1:]:
            await interaction.followup.send(chunk, ephemeral=True)

    @backup.command(name="load", description="Restore a backup's roles and channels into this server")
    @app_commands.describe(id="Backup ID")
    async def backup_load(self, interaction: discord.Interaction, id: int) -> None:
        assert interaction.guild is not None
        await interaction.response.defer(ephemeral=True, thinking=True)
        try:
            report = await self.service.load_backup(id, interaction.guild.id, MessageProgress(interaction))
        except KeeperError as e:
            await interaction.followup.send(embed=self.error_embed(describe_error(e)), ephemeral=True)
            return
        for chunk in chunk_lines(format_restore_report(id, report).splitlines()):
            await interaction.followup.send(chunk, ephemeral=True)

    @backup.command(name="delete", description="Delete one of this server's backups")
    @app_commands.describe(id="Backup ID")
    async def backup_delete(self, interaction: discord.Interaction, id: int) -> None:
        assert interaction.guild is not None
        try:
            await self.service.delete_backup(id, interaction.guild.id)
        except NotFoundError:
            await interaction.response.send_message("Not found", ephemeral=True)
            return
        await interaction.response.send_message("Deleted.", ephemeral=True)

    # Prefix commands

    @commands.group(name="backup", invoke_without_command=True)
    async def backup_prefix(self, ctx: commands.Context) -> None:
        await ctx.reply(f"Usage: {ctx.clean_prefix}backup <create|list|load|delete>")

    @backup_prefix.command(name="create")
    async def backup_prefix_create(self, ctx: commands.Context, *, name: str = "") -> None:
        assert ctx.guild is not None
        name = name.strip() or f"backup-{int(time.time() * 1000)}"
        try:
            record_id = await self.service.create_backup(ctx.guild.id, name)
        except KeeperError as e:
            await ctx.reply(embed=self.error_embed(describe_error(e)))
            return
        await ctx.reply(f"Backup created. ID: {record_id}")

    @backup_prefix.command(name="list")
    async def backup_prefix_list(self, ctx: commands.Context) -> None:
        assert ctx.guild is not None
        lines = await self._list_lines(ctx.guild.id)
        if not lines:
            await ctx.reply("No backups found.")
            return
        for chunk in chunk_lines(lines):
            await ctx.reply(chunk)

    @backup_prefix.command(name="load")
    async def backup_prefix_load(self, ctx: commands.Context, record_id: int) -> None:
        assert ctx.guild is not None
        try:
            async with ctx.typing():
                report = await self.service.load_backup(record_id, ctx.guild.id)
        except KeeperError as e:
            await ctx.reply(embed=self.error_embed(describe_error(e)))
            return
        for chunk in chunk_lines(format_restore_report(record_id, report).splitlines()):
            await ctx.reply(chunk)

    @backup_prefix.command(name="delete")
    async def backup_prefix_delete(self, ctx: commands.Context, record_id: int) -> None:
        assert ctx.guild is not None
        try:
            await self.service.delete_backup(record_id, ctx.guild.id)
        except NotFoundError:
            await ctx.reply("Not found")
            return
        await ctx.reply("Deleted.")
