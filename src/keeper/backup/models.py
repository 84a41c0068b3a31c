"""
Server topology document.

A snapshot of a server's roles and channels that does not depend on the
server it was taken from. Roles are matched by name on restore and
channels reference each other through ``source_id`` values that only
mean something inside one document.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from ..errors import ValidationError

DOCUMENT_VERSION = 1

# Overwrites on the implicit default role use this name as their target
DEFAULT_ROLE_NAME = "@everyone"


class ChannelKind(Enum):
    CATEGORY = "category"
    TEXT = "text"
    VOICE = "voice"
    NEWS = "news"
    STAGE = "stage"
    FORUM = "forum"


class TargetKind(Enum):
    ROLE = "role"
    MEMBER = "member"


@dataclass(frozen=True)
class RoleSpec:
    name: str
    # 0xRRGGBB, or None for the platform's "no colour"
    color: Optional[int]
    hoist: bool
    position: int
    permissions: int
    mentionable: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "color": self.color,
            "hoist": self.hoist,
            "position": self.position,
            "permissions": str(self.permissions),
            "mentionable": self.mentionable,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> RoleSpec:
        color = data.get("color")
        return cls(
            name=str(data["name"]),
            color=None if color is None else int(color),
            hoist=bool(data.get("hoist", False)),
            position=int(data.get("position", 0)),
            permissions=int(data.get("permissions", 0)),
            mentionable=bool(data.get("mentionable", False)),
        )


@dataclass(frozen=True)
class PermissionOverwrite:
    """
    One allow/deny rule on a channel.

    For role targets ``target_source_id`` is the role *name*; for member
    targets it is the member id as a string. Overlapping allow and deny
    bits are kept as captured.
    """

    target_source_id: str
    target_kind: TargetKind
    allow: int
    deny: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "target": self.target_source_id,
            "target_kind": self.target_kind.value,
            "allow": str(self.allow),
            "deny": str(self.deny),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> PermissionOverwrite:
        return cls(
            target_source_id=str(data["target"]),
            target_kind=TargetKind(data["target_kind"]),
            allow=int(data.get("allow", 0)),
            deny=int(data.get("deny", 0)),
        )


@dataclass(frozen=True)
class ChannelSpec:
    source_id: str
    name: str
    kind: ChannelKind
    position: int
    parent_source_id: Optional[str] = None
    nsfw: bool = False
    bitrate: Optional[int] = None
    user_limit: Optional[int] = None
    topic: Optional[str] = None
    overwrites: Tuple[PermissionOverwrite, ...] = ()

    @property
    def is_category(self) -> bool:
        return self.kind is ChannelKind.CATEGORY

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.source_id,
            "name": self.name,
            "kind": self.kind.value,
            "parent_id": self.parent_source_id,
            "position": self.position,
            "nsfw": self.nsfw,
            "bitrate": self.bitrate,
            "user_limit": self.user_limit,
            "topic": self.topic,
            "overwrites": [ow.to_dict() for ow in self.overwrites],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> ChannelSpec:
        parent = data.get("parent_id")
        bitrate = data.get("bitrate")
        user_limit = data.get("user_limit")
        return cls(
            source_id=str(data["id"]),
            name=str(data["name"]),
            kind=ChannelKind(data["kind"]),
            position=int(data.get("position", 0)),
            parent_source_id=None if parent is None else str(parent),
            nsfw=bool(data.get("nsfw", False)),
            bitrate=None if bitrate is None else int(bitrate),
            user_limit=None if user_limit is None else int(user_limit),
            topic=data.get("topic"),
            overwrites=tuple(PermissionOverwrite.from_dict(ow) for ow in data.get("overwrites", [])),
        )


@dataclass(frozen=True)
class DocumentMetadata:
    server_name: str
    server_id: int
    captured_at: datetime = field(default_factory=lambda: datetime.now(tz=timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "guild_name": self.server_name,
            "guild_id": str(self.server_id),
            "captured_at": self.captured_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> DocumentMetadata:
        captured_at = datetime.fromisoformat(data["captured_at"])
        if captured_at.tzinfo is None:
            captured_at = captured_at.replace(tzinfo=timezone.utc)
        return cls(
            server_name=str(data["guild_name"]),
            server_id=int(data["guild_id"]),
            captured_at=captured_at,
        )


@dataclass(frozen=True)
class TopologyDocument:
    metadata: DocumentMetadata
    roles: Tuple[RoleSpec, ...] = ()
    channels: Tuple[ChannelSpec, ...] = ()

    @property
    def categories(self) -> Tuple[ChannelSpec, ...]:
        return tuple(ch for ch in self.channels if ch.is_category)

    def summary(self) -> str:
        return (
            f"'{self.metadata.server_name}': "
            f"{len(self.roles)} roles, "
            f"{len(self.categories)} categories, "
            f"{len(self.channels) - len(self.categories)} channels"
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": DOCUMENT_VERSION,
            "meta": self.metadata.to_dict(),
            "roles": [r.to_dict() for r in self.roles],
            "channels": [c.to_dict() for c in self.channels],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> TopologyDocument:
        """Decode a stored payload, raising ValidationError if it is malformed."""
        try:
            return cls(
                metadata=DocumentMetadata.from_dict(data["meta"]),
                roles=tuple(RoleSpec.from_dict(r) for r in data.get("roles", [])),
                channels=tuple(ChannelSpec.from_dict(c) for c in data.get("channels", [])),
            )
        except KeyError as e:
            raise ValidationError([f"missing field {e.args[0]!r}"]) from e
        except (TypeError, ValueError) as e:
            raise ValidationError([f"malformed document: {e}"]) from e
