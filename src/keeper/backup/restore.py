"""
Restore engine.

Recreates a TopologyDocument in a target server in strict phases: roles,
then categories, then every other channel with its overwrites applied
right after it is created. The document is validated up front and a
structurally broken document is rejected before any remote call. After
that the restore is best-effort and forward-only: a failed creation is
recorded as a warning and the run moves on. There is no retry and no
rollback.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Protocol, Sequence

from ..errors import ValidationError
from .client import ServerClient
from .models import DEFAULT_ROLE_NAME, ChannelSpec, PermissionOverwrite, TargetKind, TopologyDocument

log = logging.getLogger("keeper.backup.restore")


class RestoreState(Enum):
    VALIDATING = "validating"
    REJECTED = "rejected"
    RESTORING_ROLES = "restoring_roles"
    RESTORING_CATEGORIES = "restoring_categories"
    RESTORING_CHANNELS = "restoring_channels"
    COMPLETE = "complete"


_TRANSITIONS = {
    RestoreState.VALIDATING: {RestoreState.REJECTED, RestoreState.RESTORING_ROLES},
    RestoreState.RESTORING_ROLES: {RestoreState.RESTORING_CATEGORIES},
    RestoreState.RESTORING_CATEGORIES: {RestoreState.RESTORING_CHANNELS},
    RestoreState.RESTORING_CHANNELS: {RestoreState.COMPLETE},
    RestoreState.REJECTED: set(),
    RestoreState.COMPLETE: set(),
}


class EntityType(Enum):
    ROLE = "role"
    CATEGORY = "category"
    CHANNEL = "channel"
    OVERWRITE = "overwrite"


@dataclass(frozen=True)
class EntityCreationWarning:
    """One entity that could not be created; the restore carried on without it."""

    entity_type: EntityType
    name: str
    message: str

    def __str__(self) -> str:
        return f"{self.entity_type.value} {self.name}: {self.message}"


@dataclass
class RestoreReport:
    state: RestoreState = RestoreState.VALIDATING
    roles_created: int = 0
    categories_created: int = 0
    channels_created: int = 0
    overwrites_applied: int = 0
    warnings: List[EntityCreationWarning] = field(default_factory=list)
    # Name-keyed role map and category map built during the run
    role_ids: Dict[str, int] = field(default_factory=dict)
    category_ids: Dict[str, int] = field(default_factory=dict)

    @property
    def completed(self) -> bool:
        return self.state is RestoreState.COMPLETE

    def warn(self, entity_type: EntityType, name: str, error: BaseException | str) -> None:
        message = str(error) or type(error).__name__
        self.warnings.append(EntityCreationWarning(entity_type, name, message))
        log.warning("Restore: %s %r failed: %s", entity_type.value, name, message)

    def summary(self) -> str:
        return (
            f"roles={self.roles_created} categories={self.categories_created} "
            f"channels={self.channels_created} overwrites={self.overwrites_applied} "
            f"warnings={len(self.warnings)}"
        )


class RestoreProgress(Protocol):
    async def update(self, phase: str, done: int, total: int) -> None:
        ...


def validate_document(document: TopologyDocument) -> None:
    """Raise ValidationError if the document cannot be restored as-is."""
    problems: List[str] = []

    for role in document.roles:
        if not role.name:
            problems.append("role with an empty name")

    seen: set[str] = set()
    for ch in document.channels:
        if ch.source_id in seen:
            problems.append(f"duplicate channel id {ch.source_id}")
        seen.add(ch.source_id)

    category_ids = {ch.source_id for ch in document.channels if ch.is_category}
    for ch in document.channels:
        if ch.is_category:
            if ch.parent_source_id is not None:
                problems.append(f"category {ch.name!r} ({ch.source_id}) has a parent")
        elif ch.parent_source_id is not None and ch.parent_source_id not in category_ids:
            problems.append(
                f"channel {ch.name!r} ({ch.source_id}) references unknown category {ch.parent_source_id}"
            )

    if problems:
        raise ValidationError(problems)


class RestoreEngine:
    """
    Applies documents to servers through a ServerClient.

    The engine holds no per-restore state, so one instance can serve
    restores into different servers concurrently. Restoring into a server
    while a snapshot of that same server is being built is the caller's
    problem to avoid.
    """

    def __init__(self, client: ServerClient) -> None:
        self.client = client

    async def restore(
        self,
        server_id: int,
        document: TopologyDocument,
        progress: Optional[RestoreProgress] = None,
    ) -> RestoreReport:
        run = _RestoreRun(self.client, server_id, document, progress)
        return await run.execute()


class _RestoreRun:
    """State for a single restore invocation."""

    def __init__(
        self,
        client: ServerClient,
        server_id: int,
        document: TopologyDocument,
        progress: Optional[RestoreProgress],
    ) -> None:
        self.client = client
        self.server_id = server_id
        self.document = document
        self.progress = progress
        self.report = RestoreReport()
        # The default role is never created; it shares the server's id
        self.role_map: Dict[str, int] = {DEFAULT_ROLE_NAME: server_id}
        self.category_map: Dict[str, int] = {}

    def _transition(self, state: RestoreState) -> None:
        current = self.report.state
        if state not in _TRANSITIONS[current]:
            raise RuntimeError(f"illegal restore transition {current.value} -> {state.value}")
        log.debug("Restore into %s: %s -> %s", self.server_id, current.value, state.value)
        self.report.state = state

    async def _progress(self, phase: str, done: int, total: int) -> None:
        if self.progress is None:
            return
        try:
            await self.progress.update(phase, done, total)
        except Exception:
            log.debug("Progress update failed", exc_info=True)

    async def execute(self) -> RestoreReport:
        try:
            validate_document(self.document)
        except ValidationError:
            self._transition(RestoreState.REJECTED)
            log.warning("Rejected restore into %s: document is invalid", self.server_id)
            raise

        log.info("Restoring %s into server %s", self.document.summary(), self.server_id)

        self._transition(RestoreState.RESTORING_ROLES)
        await self._restore_roles()

        self._transition(RestoreState.RESTORING_CATEGORIES)
        await self._restore_categories()

        self._transition(RestoreState.RESTORING_CHANNELS)
        await self._restore_channels()

        self._transition(RestoreState.COMPLETE)
        self.report.role_ids = {k: v for k, v in self.role_map.items() if k != DEFAULT_ROLE_NAME}
        self.report.category_ids = dict(self.category_map)
        log.info("Restore into %s complete: %s", self.server_id, self.report.summary())
        return self.report

    async def _restore_roles(self) -> None:
        roles = self.document.roles
        for i, role in enumerate(roles, 1):
            try:
                new_id = await self.client.create_role(self.server_id, role)
            except Exception as e:
                self.report.warn(EntityType.ROLE, role.name, e)
            else:
                self.role_map[role.name] = new_id
                self.report.roles_created += 1
            await self._progress("Roles", i, len(roles))

    async def _restore_categories(self) -> None:
        categories = _by_position(ch for ch in self.document.channels if ch.is_category)
        for i, category in enumerate(categories, 1):
            try:
                new_id = await self.client.create_category(self.server_id, category.name)
            except Exception as e:
                self.report.warn(EntityType.CATEGORY, category.name, e)
            else:
                self.category_map[category.source_id] = new_id
                self.report.categories_created += 1
            await self._progress("Categories", i, len(categories))

    async def _restore_channels(self) -> None:
        channels = _by_position(ch for ch in self.document.channels if not ch.is_category)
        for i, channel in enumerate(channels, 1):
            # A category that failed to restore leaves its children at top level
            parent_id = None
            if channel.parent_source_id is not None:
                parent_id = self.category_map.get(channel.parent_source_id)
            try:
                new_id = await self.client.create_channel(self.server_id, channel, parent_id)
            except Exception as e:
                self.report.warn(EntityType.CHANNEL, channel.name, e)
            else:
                self.report.channels_created += 1
                await self._apply_overwrites(channel, new_id)
            await self._progress("Channels", i, len(channels))

    async def _apply_overwrites(self, channel: ChannelSpec, channel_id: int) -> None:
        for ow in channel.overwrites:
            label = f"#{channel.name} -> {ow.target_kind.value} {ow.target_source_id}"
            target_id = self._resolve_target(ow)
            if target_id is None:
                self.report.warn(EntityType.OVERWRITE, label, "target was not restored")
                continue
            try:
                await self.client.create_overwrite(channel_id, target_id, ow.target_kind, ow.allow, ow.deny)
            except Exception as e:
                self.report.warn(EntityType.OVERWRITE, label, e)
            else:
                self.report.overwrites_applied += 1

    def _resolve_target(self, ow: PermissionOverwrite) -> Optional[int]:
        # target_kind decides how the id is resolved; no guessing across kinds
        if ow.target_kind is TargetKind.ROLE:
            return self.role_map.get(ow.target_source_id)
        try:
            return int(ow.target_source_id)
        except ValueError:
            return None


def _by_position(channels) -> Sequence[ChannelSpec]:
    return sorted(channels, key=lambda ch: ch.position)
