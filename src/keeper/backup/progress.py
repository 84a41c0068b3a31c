from __future__ import annotations

import logging
import time
from typing import Optional

import discord

from ..constants import MAX_MESSAGE_LENGTH, PROGRESS_UPDATE_INTERVAL_SECONDS

log = logging.getLogger("keeper.backup.progress")


class MessageProgress:
    """Shows restore progress by editing a single message (debounced)."""

    def __init__(self, interaction: discord.Interaction, title: str = "Restoring backup") -> None:
        self.interaction = interaction
        self.title = title
        self.message: Optional[discord.WebhookMessage] = None
        self.start_time = time.monotonic()
        self.last_update = 0.0
        self.last_phase = ""
        self.update_interval = PROGRESS_UPDATE_INTERVAL_SECONDS

    async def update(self, phase: str, done: int, total: int) -> None:
        now = time.monotonic()
        should_update = (
            self.last_phase != phase
            or done == total
            or now - self.last_update >= self.update_interval
        )
        if not should_update:
            return
        self.last_update = now
        self.last_phase = phase
        await self._edit(self._format(phase, done, total))

    def _format(self, phase: str, done: int, total: int) -> str:
        elapsed = int(time.monotonic() - self.start_time)
        content = (
            f"**{self.title}**\n"
            f"Phase: {phase} ({done}/{total})\n"
            f"Elapsed: {elapsed // 60:02d}:{elapsed % 60:02d}"
        )
        return content[:MAX_MESSAGE_LENGTH]

    async def _edit(self, content: str) -> None:
        try:
            if self.message is None:
                self.message = await self.interaction.followup.send(content, ephemeral=True, wait=True)
            else:
                await self.message.edit(content=content)
        except discord.HTTPException as e:
            log.debug("Failed to update progress message: %s", e)
