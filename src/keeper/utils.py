from __future__ import annotations

import logging
from typing import Any

import discord
from discord.ext import commands

from .constants import COLORS, MAX_EMBED_DESCRIPTION, MAX_EMBED_TITLE

log = logging.getLogger("keeper.utils")


def safe_embed(title: str, description: str, color: int = COLORS["default"]) -> discord.Embed:
    """Create an embed with safe length limits."""
    if len(title) > MAX_EMBED_TITLE:
        title = title[:MAX_EMBED_TITLE - 1] + "…"
    if len(description) > MAX_EMBED_DESCRIPTION:
        description = description[:MAX_EMBED_DESCRIPTION - 1] + "…"

    return discord.Embed(title=title, description=description, color=color)


def error_embed(message: str) -> discord.Embed:
    return safe_embed("Error", message, COLORS["error"])


async def safe_response(
    target: discord.Interaction | commands.Context,
    content: str | None = None,
    embed: discord.Embed | None = None,
    ephemeral: bool = False,
    **kwargs: Any,
) -> bool:
    """Respond to an interaction or context; uses a followup when the interaction was already answered."""
    try:
        if isinstance(target, discord.Interaction):
            if target.response.is_done():
                await target.followup.send(content=content, embed=embed, ephemeral=ephemeral, **kwargs)
            else:
                await target.response.send_message(content=content, embed=embed, ephemeral=ephemeral, **kwargs)
        else:
            await target.reply(content=content, embed=embed, **kwargs)
        return True
    except discord.HTTPException as e:
        log.error(f"Failed to send response: {e}")
        return False
