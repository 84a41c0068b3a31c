from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Dict, Iterable, List

from ..errors import FetchError
from .client import LiveChannel, LiveRole, ServerClient
from .models import (
    DEFAULT_ROLE_NAME,
    ChannelKind,
    ChannelSpec,
    DocumentMetadata,
    PermissionOverwrite,
    RoleSpec,
    TargetKind,
    TopologyDocument,
)

log = logging.getLogger("keeper.backup.builder")


class SnapshotBuilder:
    """Captures a live server's roles and channels into a TopologyDocument."""

    def __init__(self, client: ServerClient) -> None:
        self.client = client

    async def build(self, server_id: int) -> TopologyDocument:
        """
        Read the server's current roles and channels and return a document.

        All remote reads happen before anything is assembled, so a failure
        raises FetchError and never yields a partial document.
        """
        try:
            server = await self.client.get_server(server_id)
            live_roles = await self.client.list_roles(server_id)
            live_channels = await self.client.list_channels(server_id)
        except Exception as e:
            log.error("Failed to enumerate server %s: %s", server_id, e)
            raise FetchError(f"could not read roles and channels of server {server_id}: {e}") from e

        roles = self._role_specs(live_roles)
        role_names = {r.id: DEFAULT_ROLE_NAME if r.is_default else r.name for r in live_roles}
        channels = [self._channel_spec(ch, role_names) for ch in live_channels]
        channels.sort(key=lambda ch: ch.position)

        document = TopologyDocument(
            metadata=DocumentMetadata(
                server_name=server.name,
                server_id=server.id,
                captured_at=datetime.now(tz=timezone.utc),
            ),
            roles=tuple(roles),
            channels=tuple(channels),
        )
        log.info("Captured snapshot of %s (%s)", server.id, document.summary())
        return document

    @staticmethod
    def _role_specs(live_roles: Iterable[LiveRole]) -> List[RoleSpec]:
        # The default role is implicit in every server and never recreated
        ordered = sorted((r for r in live_roles if not r.is_default), key=lambda r: r.position)
        return [
            RoleSpec(
                name=r.name,
                color=r.color or None,
                hoist=r.hoist,
                position=r.position,
                permissions=r.permissions,
                mentionable=r.mentionable,
            )
            for r in ordered
        ]

    @staticmethod
    def _channel_spec(channel: LiveChannel, role_names: Dict[int, str]) -> ChannelSpec:
        overwrites = []
        for ow in channel.overwrites:
            if ow.target_kind is TargetKind.ROLE and ow.target_id in role_names:
                target = role_names[ow.target_id]
            else:
                target = str(ow.target_id)
            overwrites.append(
                PermissionOverwrite(
                    target_source_id=target,
                    target_kind=ow.target_kind,
                    allow=ow.allow,
                    deny=ow.deny,
                )
            )

        is_category = channel.kind is ChannelKind.CATEGORY
        return ChannelSpec(
            source_id=str(channel.id),
            name=channel.name,
            kind=channel.kind,
            position=channel.position,
            parent_source_id=None if is_category or channel.parent_id is None else str(channel.parent_id),
            nsfw=channel.nsfw,
            bitrate=channel.bitrate,
            user_limit=channel.user_limit,
            topic=channel.topic,
            overwrites=tuple(overwrites),
        )
