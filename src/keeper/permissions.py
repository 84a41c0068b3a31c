from __future__ import annotations

import discord
from discord.ext import commands


def can_manage_backups(member: discord.abc.User | None, owner_id: int = 0) -> bool:
    """Owner, or a member with Administrator, Manage Server or Manage Roles."""
    if member is None:
        return False
    if owner_id and member.id == owner_id:
        return True
    perms = getattr(member, "guild_permissions", None)
    if perms is None:
        return False
    return bool(perms.administrator or perms.manage_guild or perms.manage_roles)


def actor_of(target: discord.Interaction | commands.Context) -> discord.abc.User:
    return target.user if isinstance(target, discord.Interaction) else target.author
