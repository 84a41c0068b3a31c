from __future__ import annotations

import aiosqlite
import logging
from abc import ABC, abstractmethod
from typing import Generic, TypeVar, Optional

from .cache import TTLCache

T = TypeVar("T")


class BaseService(ABC, Generic[T]):
    """
    SQLite-backed store keyed by integer row id.

    Subclasses create their schema and decode a row; ``get`` serves decoded
    values from a TTL cache that writers must ``invalidate``.
    """

    def __init__(self, sqlite_path: str, cache_ttl_seconds: int = 120) -> None:
        self._path = sqlite_path
        self._cache: TTLCache[int, T] = TTLCache(default_ttl_seconds=cache_ttl_seconds)
        self._logger = logging.getLogger(f"keeper.{self.__class__.__name__.lower()}")

    async def init(self) -> None:
        async with aiosqlite.connect(self._path) as db:
            await self._create_tables(db)
            await db.commit()
        self._logger.debug("Schema ready at %s", self._path)

    @abstractmethod
    async def _create_tables(self, db: aiosqlite.Connection) -> None:
        ...

    @abstractmethod
    def _from_row(self, row: aiosqlite.Row) -> T:
        """Decode one row; raise a KeeperError if it is unreadable."""

    @property
    @abstractmethod
    def _get_query(self) -> str:
        """Single-row SELECT taking the row id as its only parameter."""

    def invalidate(self, key: int) -> None:
        self._cache.delete(key)

    async def get(self, key: int) -> Optional[T]:
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        async with aiosqlite.connect(self._path) as db:
            db.row_factory = aiosqlite.Row
            async with db.execute(self._get_query, (int(key),)) as cur:
                row = await cur.fetchone()
        if row is None:
            return None

        data = self._from_row(row)
        self._cache.set(key, data)
        return data
