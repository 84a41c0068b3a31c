"""
Backup Package

Server topology snapshots: data model, snapshot builder, restore engine
and the remote client they talk through.
"""

from .builder import SnapshotBuilder
from .client import DiscordServerClient, ServerClient
from .models import ChannelKind, ChannelSpec, DocumentMetadata, PermissionOverwrite, RoleSpec, TargetKind, TopologyDocument
from .restore import EntityCreationWarning, EntityType, RestoreEngine, RestoreReport, RestoreState, validate_document

__all__ = [
    "SnapshotBuilder",
    "DiscordServerClient",
    "ServerClient",
    "ChannelKind",
    "ChannelSpec",
    "DocumentMetadata",
    "PermissionOverwrite",
    "RoleSpec",
    "TargetKind",
    "TopologyDocument",
    "EntityCreationWarning",
    "EntityType",
    "RestoreEngine",
    "RestoreReport",
    "RestoreState",
    "validate_document",
]
