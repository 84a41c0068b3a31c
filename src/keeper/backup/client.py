"""
Remote server API used by the snapshot builder and the restore engine.

``ServerClient`` is the contract; ``DiscordServerClient`` implements it on
top of a connected discord.py client. Live state is handed back as small
frozen records so the core never touches discord.py objects directly.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Protocol, Tuple, runtime_checkable

import discord

from .models import ChannelKind, ChannelSpec, RoleSpec, TargetKind
from .rate_limiter import RateLimiter


@dataclass(frozen=True)
class LiveRole:
    id: int
    name: str
    color: int
    hoist: bool
    position: int
    permissions: int
    mentionable: bool
    is_default: bool = False


@dataclass(frozen=True)
class LiveOverwrite:
    target_id: int
    target_kind: TargetKind
    allow: int
    deny: int


@dataclass(frozen=True)
class LiveChannel:
    id: int
    name: str
    kind: ChannelKind
    position: int
    parent_id: Optional[int] = None
    nsfw: bool = False
    bitrate: Optional[int] = None
    user_limit: Optional[int] = None
    topic: Optional[str] = None
    overwrites: Tuple[LiveOverwrite, ...] = ()


@dataclass(frozen=True)
class LiveServer:
    id: int
    name: str


@runtime_checkable
class ServerClient(Protocol):
    """Operations the core needs from the chat platform. Any call may raise."""

    async def get_server(self, server_id: int) -> LiveServer:
        ...

    async def list_roles(self, server_id: int) -> List[LiveRole]:
        ...

    async def list_channels(self, server_id: int) -> List[LiveChannel]:
        ...

    async def create_role(self, server_id: int, role: RoleSpec) -> int:
        ...

    async def create_category(self, server_id: int, name: str) -> int:
        ...

    async def create_channel(self, server_id: int, channel: ChannelSpec, parent_id: Optional[int]) -> int:
        ...

    async def create_overwrite(
        self,
        channel_id: int,
        target_id: int,
        target_kind: TargetKind,
        allow: int,
        deny: int,
    ) -> None:
        ...


_KIND_BY_TYPE = {
    discord.ChannelType.category: ChannelKind.CATEGORY,
    discord.ChannelType.text: ChannelKind.TEXT,
    discord.ChannelType.voice: ChannelKind.VOICE,
    discord.ChannelType.news: ChannelKind.NEWS,
    discord.ChannelType.stage_voice: ChannelKind.STAGE,
    discord.ChannelType.forum: ChannelKind.FORUM,
}

# Discord's overwrite "type" field
_OVERWRITE_TYPE = {TargetKind.ROLE: 0, TargetKind.MEMBER: 1}


def channel_kind(channel_type: discord.ChannelType) -> ChannelKind:
    # Unknown guild channel types are restored as plain text channels
    return _KIND_BY_TYPE.get(channel_type, ChannelKind.TEXT)


def _capture_overwrites(channel: discord.abc.GuildChannel) -> Tuple[LiveOverwrite, ...]:
    result = []
    for target, ow in channel.overwrites.items():
        allow, deny = ow.pair()
        is_role = isinstance(target, discord.Role) or getattr(target, "type", None) is discord.Role
        result.append(
            LiveOverwrite(
                target_id=target.id,
                target_kind=TargetKind.ROLE if is_role else TargetKind.MEMBER,
                allow=allow.value,
                deny=deny.value,
            )
        )
    return tuple(result)


class DiscordServerClient:
    """ServerClient backed by discord.py. Reads always go to the API, not the cache."""

    def __init__(self, bot: discord.Client, rate_limiter: Optional[RateLimiter] = None, reason: Optional[str] = None) -> None:
        self.bot = bot
        self.rate_limiter = rate_limiter or RateLimiter()
        self.reason = reason
        # Channels created here, so overwrite calls pace with their server
        self._channel_servers: Dict[int, int] = {}

    async def _guild(self, server_id: int) -> discord.Guild:
        guild = self.bot.get_guild(server_id)
        if guild is None:
            guild = await self.bot.fetch_guild(server_id)
        return guild

    async def get_server(self, server_id: int) -> LiveServer:
        guild = await self.bot.fetch_guild(server_id)
        return LiveServer(id=guild.id, name=guild.name)

    async def list_roles(self, server_id: int) -> List[LiveRole]:
        guild = await self._guild(server_id)
        roles = await guild.fetch_roles()
        return [
            LiveRole(
                id=r.id,
                name=r.name,
                color=r.colour.value,
                hoist=r.hoist,
                position=r.position,
                permissions=r.permissions.value,
                mentionable=r.mentionable,
                is_default=r.is_default(),
            )
            for r in roles
        ]

    async def list_channels(self, server_id: int) -> List[LiveChannel]:
        guild = await self._guild(server_id)
        channels = await guild.fetch_channels()
        return [
            LiveChannel(
                id=ch.id,
                name=ch.name,
                kind=channel_kind(ch.type),
                position=ch.position,
                parent_id=getattr(ch, "category_id", None),
                nsfw=bool(getattr(ch, "nsfw", False)),
                bitrate=getattr(ch, "bitrate", None),
                user_limit=getattr(ch, "user_limit", None),
                topic=getattr(ch, "topic", None),
                overwrites=_capture_overwrites(ch),
            )
            for ch in channels
        ]

    async def create_role(self, server_id: int, role: RoleSpec) -> int:
        guild = await self._guild(server_id)
        kwargs = {
            "name": role.name,
            "colour": discord.Colour(role.color) if role.color else discord.Colour.default(),
            "hoist": role.hoist,
            "mentionable": role.mentionable,
            "reason": self.reason,
        }
        # An all-zero mask is left out so the platform applies its own default
        if role.permissions:
            kwargs["permissions"] = discord.Permissions(role.permissions)
        created = await self.rate_limiter.execute(server_id, guild.create_role, **kwargs)
        return created.id

    async def create_category(self, server_id: int, name: str) -> int:
        guild = await self._guild(server_id)
        created = await self.rate_limiter.execute(server_id, guild.create_category, name, reason=self.reason)
        self._channel_servers[created.id] = server_id
        return created.id

    async def create_channel(self, server_id: int, channel: ChannelSpec, parent_id: Optional[int]) -> int:
        guild = await self._guild(server_id)
        # discord.py only reads ``.id`` from the category, which may not be cached yet
        category = discord.Object(id=parent_id) if parent_id is not None else None
        kwargs = {"category": category, "nsfw": channel.nsfw, "reason": self.reason}

        if channel.kind in (ChannelKind.VOICE, ChannelKind.STAGE):
            if channel.bitrate is not None:
                kwargs["bitrate"] = channel.bitrate
            if channel.user_limit is not None:
                kwargs["user_limit"] = channel.user_limit
            if channel.kind is ChannelKind.STAGE:
                create = guild.create_stage_channel
            else:
                create = guild.create_voice_channel
        elif channel.kind is ChannelKind.FORUM:
            if channel.topic:
                kwargs["topic"] = channel.topic
            create = guild.create_forum
        else:
            if channel.topic:
                kwargs["topic"] = channel.topic
            kwargs["news"] = channel.kind is ChannelKind.NEWS
            create = guild.create_text_channel

        created = await self.rate_limiter.execute(server_id, create, channel.name, **kwargs)
        self._channel_servers[created.id] = server_id
        return created.id

    async def create_overwrite(
        self,
        channel_id: int,
        target_id: int,
        target_kind: TargetKind,
        allow: int,
        deny: int,
    ) -> None:
        # Raw route: the target may be a role that is not in the gateway cache yet,
        # and both masks are always sent even when zero.
        await self.rate_limiter.execute(
            self._channel_servers.get(channel_id, channel_id),
            self.bot.http.edit_channel_permissions,
            channel_id,
            target_id,
            str(allow),
            str(deny),
            _OVERWRITE_TYPE[target_kind],
            reason=self.reason,
        )
