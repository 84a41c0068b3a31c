from __future__ import annotations

import asyncio
import logging

import discord
from discord.ext import commands

from .backup.client import DiscordServerClient
from .backup.rate_limiter import RateLimiter
from .backup.service import BackupService
from .cogs.backup import BackupCog
from .config import Settings
from .constants import CACHE_TTL_SECONDS
from .database import initialize_database
from .error_handlers import setup_error_handlers
from .services.backup_store import BackupStore

log = logging.getLogger("keeper.bot")


class _CommandSyncManager:
    def __init__(self, bot: "KeeperBot") -> None:
        self.bot = bot
        self._lock = asyncio.Lock()

    async def sync_startup(self) -> None:
        if self.bot.settings.sync_guild_id:
            await self.sync_guild(self.bot.settings.sync_guild_id)
        else:
            await self.sync_global()

    async def sync_global(self) -> None:
        async with self._lock:
            await self.bot.tree.sync()
            log.info("Commands synced globally")
            self._log_tree()

    async def sync_guild(self, guild_id: int) -> None:
        async with self._lock:
            guild = discord.Object(id=guild_id)
            self.bot.tree.copy_global_to(guild=guild)
            await self.bot.tree.sync(guild=guild)
            log.info("Commands synced to guild %d", guild_id)
            self._log_tree()

    def _log_tree(self) -> None:
        cmds = self.bot.tree.get_commands()
        log.info("Tree commands loaded: %d", len(cmds))
        for c in cmds:
            log.info(" - /%s", c.name)


class KeeperBot(commands.Bot):
    def __init__(self, settings: Settings) -> None:
        intents = discord.Intents.default()
        # Prefix commands need message content; slash commands do not.
        intents.message_content = bool(settings.message_content_intent)

        log.info("INTENTS: guilds=%s message_content=%s", intents.guilds, intents.message_content)

        super().__init__(
            command_prefix=commands.when_mentioned_or(settings.prefix),
            intents=intents,
            allowed_mentions=discord.AllowedMentions.none(),
            help_command=None,
        )

        self.settings = settings
        self.owner_id = settings.owner_id or None

        cache_ttl = settings.cache_default_ttl_seconds or CACHE_TTL_SECONDS
        self.backup_store = BackupStore(settings.sqlite_path, cache_ttl)

        # One client handle, injected into the builder and restore engine
        self.server_client = DiscordServerClient(
            self,
            RateLimiter(settings.restore_min_interval_ms, settings.restore_max_retries),
            reason=settings.audit_reason,
        )
        self.backup_service = BackupService(self.server_client, self.backup_store)
        self._sync_mgr = _CommandSyncManager(self)

    async def setup_hook(self) -> None:
        await initialize_database(self.settings.sqlite_path, [self.backup_store])
        await setup_error_handlers(self)

        await self.add_cog(
            BackupCog(
                self,
                self.backup_service,
                list_limit=self.settings.backup_list_limit,
                owner_id=self.settings.owner_id,
            )
        )

        if not self.settings.prefix_commands_enabled:
            self.remove_command("backup")
        elif not self.intents.message_content:
            log.warning("PREFIX_COMMANDS_ENABLED but message_content intent is disabled; prefix commands will remain unavailable")

        await self._sync_mgr.sync_startup()
        log.info("Command sync complete")

    async def on_ready(self) -> None:
        log.info("Logged in as %s (%s) in %d guild(s)", self.user, getattr(self.user, "id", "?"), len(self.guilds))
