from __future__ import annotations

import json
import time
from dataclasses import dataclass
from typing import List, Optional

import aiosqlite

from ..backup.models import TopologyDocument
from ..errors import ValidationError
from .base import BaseService


@dataclass(frozen=True)
class BackupRecord:
    id: int
    guild_id: int
    name: str
    created_at: int  # epoch milliseconds


class BackupStore(BaseService[TopologyDocument]):
    """Topology documents keyed by an autoincrement id."""

    def __init__(self, sqlite_path: str, cache_ttl: int = 300) -> None:
        super().__init__(sqlite_path, cache_ttl)

    async def _create_tables(self, db: aiosqlite.Connection) -> None:
        await db.execute(
            """
            CREATE TABLE IF NOT EXISTS backups (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                guild_id INTEGER NOT NULL,
                name TEXT NOT NULL,
                created_at INTEGER NOT NULL,
                payload_json TEXT NOT NULL
            )
            """
        )
        await db.execute("CREATE INDEX IF NOT EXISTS idx_backups_guild_created ON backups (guild_id, created_at)")

    def _from_row(self, row: aiosqlite.Row) -> TopologyDocument:
        try:
            data = json.loads(row["payload_json"])
        except json.JSONDecodeError as e:
            raise ValidationError([f"stored payload is not valid JSON: {e.msg}"]) from e
        return TopologyDocument.from_dict(data)

    @property
    def _get_query(self) -> str:
        return "SELECT payload_json FROM backups WHERE id = ?"

    async def save(self, guild_id: int, name: str, document: TopologyDocument) -> int:
        created_at = int(time.time() * 1000)
        payload_json = json.dumps(document.to_dict(), separators=(",", ":"), ensure_ascii=False)
        async with aiosqlite.connect(self._path) as db:
            cur = await db.execute(
                "INSERT INTO backups (guild_id, name, created_at, payload_json) VALUES (?, ?, ?, ?)",
                (int(guild_id), str(name), created_at, payload_json),
            )
            await db.commit()
            record_id = int(cur.lastrowid)
        self._logger.info("Saved backup %d (%s) for guild %s", record_id, name, guild_id)
        return record_id

    async def list(self, guild_id: int, limit: Optional[int] = None) -> List[BackupRecord]:
        query = "SELECT id, guild_id, name, created_at FROM backups WHERE guild_id = ? ORDER BY created_at DESC, id DESC"
        params: tuple = (int(guild_id),)
        if limit is not None:
            query += " LIMIT ?"
            params += (max(1, int(limit)),)
        async with aiosqlite.connect(self._path) as db:
            async with db.execute(query, params) as cur:
                rows = await cur.fetchall()
        return [BackupRecord(int(r[0]), int(r[1]), str(r[2]), int(r[3])) for r in rows]

    async def get_record(self, record_id: int) -> Optional[BackupRecord]:
        async with aiosqlite.connect(self._path) as db:
            async with db.execute(
                "SELECT id, guild_id, name, created_at FROM backups WHERE id = ?",
                (int(record_id),),
            ) as cur:
                row = await cur.fetchone()
        if not row:
            return None
        return BackupRecord(int(row[0]), int(row[1]), str(row[2]), int(row[3]))

    async def delete(self, record_id: int) -> bool:
        async with aiosqlite.connect(self._path) as db:
            cur = await db.execute("DELETE FROM backups WHERE id = ?", (int(record_id),))
            await db.commit()
            removed = cur.rowcount > 0
        self.invalidate(int(record_id))
        return removed
