from __future__ import annotations

import logging
from typing import List, Optional

from ..errors import NotFoundError
from ..services.backup_store import BackupRecord, BackupStore
from .builder import SnapshotBuilder
from .client import ServerClient
from .restore import RestoreEngine, RestoreProgress, RestoreReport

log = logging.getLogger("keeper.backup.service")


class BackupService:
    """What the command surface calls: build and save, list, load, delete."""

    def __init__(self, client: ServerClient, store: BackupStore) -> None:
        self.store = store
        self.builder = SnapshotBuilder(client)
        self.engine = RestoreEngine(client)

    async def create_backup(self, guild_id: int, name: str) -> int:
        document = await self.builder.build(guild_id)
        return await self.store.save(guild_id, name, document)

    async def list_backups(self, guild_id: int, limit: Optional[int] = None) -> List[BackupRecord]:
        return await self.store.list(guild_id, limit)

    async def load_backup(
        self,
        record_id: int,
        target_guild_id: int,
        progress: Optional[RestoreProgress] = None,
    ) -> RestoreReport:
        document = await self.store.get(record_id)
        if document is None:
            raise NotFoundError(record_id)
        log.info("Loading backup %d into guild %s", record_id, target_guild_id)
        return await self.engine.restore(target_guild_id, document, progress)

    async def delete_backup(self, record_id: int, guild_id: int) -> None:
        # Backups can be loaded anywhere but only deleted from the server that owns them
        record = await self.store.get_record(record_id)
        if record is None or record.guild_id != guild_id:
            raise NotFoundError(record_id)
        if not await self.store.delete(record_id):
            raise NotFoundError(record_id)
